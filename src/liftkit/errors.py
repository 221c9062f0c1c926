"""Exceptions raised by liftkit operations."""

from __future__ import annotations


class LiftkitError(RuntimeError):
    """Base error for liftkit operations."""


class RegistryValidationError(LiftkitError):
    """Raised when a registry item does not match the registry schema."""

    def __init__(self, name: str, errors: list[str], warnings: list[str] | None = None):
        self.name = name
        self.errors = errors
        self.warnings = warnings or []
        label = f"'{name}'" if name else "registry item"
        super().__init__(f"Invalid {label}: {'; '.join(errors)}")


class CircularDependencyError(LiftkitError):
    """Raised when a registry dependency leads back to one of its ancestors."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Circular dependency detected: {name}")


class FetchError(LiftkitError):
    """Raised when a schema, index or item cannot be retrieved or decoded."""

    def __init__(self, url: str, reason: str, status: int | None = None, name: str | None = None):
        self.url = url
        self.reason = reason
        self.status = status
        self.name = name
        if name is not None:
            message = f"Failed to fetch registry item '{name}': {status if status is not None else reason}"
        else:
            message = f"Failed to fetch {url}: {reason}"
        super().__init__(message)


class UserCancelledError(LiftkitError):
    """Raised when the user declines to overwrite conflicting files."""

    def __init__(self, paths: list[str] | None = None):
        self.paths = paths or []
        super().__init__("User cancelled file overwrite")


class InstallError(LiftkitError):
    """Raised when the package manager fails."""

    def __init__(self, command: list[str], output: str = ""):
        self.command = command
        self.output = output
        super().__init__(f"Failed to install dependencies: {' '.join(command)}")


class FileWriteError(LiftkitError):
    """Raised after a write batch in which one or more files failed."""

    def __init__(self, failures: list[tuple[str, OSError]]):
        self.failures = failures
        paths = ", ".join(path for path, _ in failures)
        super().__init__(f"Failed to write {len(failures)} file(s): {paths}")


class UnsafePathError(LiftkitError):
    """Raised when a registry file path resolves outside the project directory."""

    def __init__(self, path: str, base_dir: str):
        self.path = path
        self.base_dir = base_dir
        super().__init__(f"Refusing to write {path!r}: resolves outside {base_dir}")
