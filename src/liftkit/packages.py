"""Install third-party packages with the project's package manager."""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import InstallError

# Subcommand that adds packages, per package manager
INSTALL_VERBS = {
    "npm": "install",
    "pnpm": "add",
    "yarn": "add",
    "bun": "add",
}


def build_install_commands(
    dependencies: list[str],
    dev_dependencies: list[str],
    package_manager: str = "npm",
) -> list[list[str]]:
    """Commands to run: regular dependencies first, then dev dependencies."""
    if package_manager not in INSTALL_VERBS:
        raise ValueError(
            f"Unsupported package manager: {package_manager!r}. "
            f"Must be one of: {', '.join(INSTALL_VERBS)}"
        )
    verb = INSTALL_VERBS[package_manager]
    commands: list[list[str]] = []
    if dependencies:
        commands.append([package_manager, verb, *dependencies])
    if dev_dependencies:
        commands.append([package_manager, verb, "-D", *dev_dependencies])
    return commands


def install_packages(
    dependencies: list[str],
    dev_dependencies: list[str],
    cwd: Path,
    package_manager: str = "npm",
    timeout: int = 600,
) -> None:
    """Install packages into the project at cwd.

    Raises:
        InstallError: If the package manager is missing or exits non-zero.
    """
    for command in build_install_commands(dependencies, dev_dependencies, package_manager):
        try:
            subprocess.run(
                command,
                cwd=str(cwd),
                check=True,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            raise InstallError(command, (e.stderr or e.stdout or "").strip()) from e
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise InstallError(command, str(e)) from e
