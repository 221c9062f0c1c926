"""Type definitions for liftkit.

Enums and dataclasses shared across the codebase: the registry item wire
format, the resolved dependency tree and the staging records used while
materializing files into a project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import RegistryValidationError


class RegistryType(str, Enum):
    """Kinds of registry items and files."""

    COMPONENT = "registry:component"
    BLOCK = "registry:block"
    LIB = "registry:lib"
    UI = "registry:ui"
    HOOK = "registry:hook"
    THEME = "registry:theme"
    PAGE = "registry:page"
    FILE = "registry:file"
    STYLE = "registry:style"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Short name without the registry prefix (e.g. "component")."""
        return self.value.split(":", 1)[1]

    @classmethod
    def from_string(cls, value: str) -> "RegistryType":
        """Create RegistryType from "registry:ui" or the short form "ui".

        Raises:
            ValueError: If value is not a known kind.
        """
        candidate = value if value.startswith("registry:") else f"registry:{value}"
        try:
            return cls(candidate)
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(f"Invalid registry type: {value!r}. Must be one of: {allowed}")


def _string_list(data: dict[str, Any], key: str, errors: list[str]) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"Field '{key}' must be a list of strings")
        return []
    return list(value)


@dataclass
class RegistryFile:
    """One file shipped by a registry item.

    Attributes:
        path: Virtual source path, e.g. registry/nextjs/components/button.tsx.
        type: Kind tag of the file.
        content: Full text, or None when the file should be skipped.
        target: Optional explicit target path declared by the registry.
    """

    path: str
    type: RegistryType
    content: str | None = None
    target: str | None = None

    @classmethod
    def from_dict(cls, data: Any, index: int, errors: list[str]) -> "RegistryFile | None":
        if not isinstance(data, dict):
            errors.append(f"File at index {index} must be an object")
            return None
        path = data.get("path")
        if not isinstance(path, str) or not path:
            errors.append(f"File at index {index} is missing a path")
            return None
        try:
            file_type = RegistryType.from_string(str(data.get("type", "registry:file")))
        except ValueError as e:
            errors.append(f"File '{path}': {e}")
            return None
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            errors.append(f"File '{path}': content must be a string")
            return None
        target = data.get("target")
        return cls(
            path=path,
            type=file_type,
            content=content,
            target=target if isinstance(target, str) else None,
        )


@dataclass
class RegistryItem:
    """A named, typed unit of distributable code."""

    name: str
    type: RegistryType
    description: str = ""
    files: list[RegistryFile] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    registry_dependencies: list[str] = field(default_factory=list)
    css_vars: dict[str, dict[str, str]] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any) -> "RegistryItem":
        """Parse a registry item from its JSON form.

        Raises:
            RegistryValidationError: If the document cannot describe an item.
        """
        if not isinstance(data, dict):
            raise RegistryValidationError("", ["Registry item must be a JSON object"])

        errors: list[str] = []
        name = data.get("name")
        if not isinstance(name, str) or not name:
            errors.append("Missing required field: name")
            name = ""

        item_type = RegistryType.COMPONENT
        raw_type = data.get("type")
        if not isinstance(raw_type, str):
            errors.append("Missing required field: type")
        else:
            try:
                item_type = RegistryType.from_string(raw_type)
            except ValueError as e:
                errors.append(str(e))

        files: list[RegistryFile] = []
        raw_files = data.get("files") or []
        if not isinstance(raw_files, list):
            errors.append("Field 'files' must be an array")
            raw_files = []
        for idx, entry in enumerate(raw_files):
            parsed = RegistryFile.from_dict(entry, idx, errors)
            if parsed is not None:
                files.append(parsed)

        css_vars: dict[str, dict[str, str]] = {}
        raw_css = data.get("cssVars") or {}
        if not isinstance(raw_css, dict):
            errors.append("Field 'cssVars' must be an object")
        else:
            for group, values in raw_css.items():
                if isinstance(values, dict):
                    css_vars[group] = {str(k): str(v) for k, v in values.items()}
                else:
                    # Ungrouped variable: keep it under its own name
                    css_vars[group] = {group: str(values)}

        item = cls(
            name=name,
            type=item_type,
            description=data.get("description") or "",
            files=files,
            dependencies=_string_list(data, "dependencies", errors),
            dev_dependencies=_string_list(data, "devDependencies", errors),
            registry_dependencies=_string_list(data, "registryDependencies", errors),
            css_vars=css_vars,
            raw=dict(data),
        )
        if errors:
            raise RegistryValidationError(name, errors)
        return item

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the registry wire format."""
        if self.raw:
            return dict(self.raw)
        data: dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.description:
            data["description"] = self.description
        if self.dependencies:
            data["dependencies"] = list(self.dependencies)
        if self.dev_dependencies:
            data["devDependencies"] = list(self.dev_dependencies)
        if self.registry_dependencies:
            data["registryDependencies"] = list(self.registry_dependencies)
        if self.files:
            data["files"] = [
                {"path": f.path, "content": f.content, "type": f.type.value}
                for f in self.files
            ]
        if self.css_vars:
            data["cssVars"] = {k: dict(v) for k, v in self.css_vars.items()}
        return data

    @property
    def npm_dependencies(self) -> list[str]:
        """Regular and dev package dependencies, in declaration order."""
        return [*self.dependencies, *self.dev_dependencies]


@dataclass
class ValidationResult:
    """Result of validating a registry item against a schema."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyNode:
    """One node of a resolved registry dependency tree (root depth = 0)."""

    name: str
    item: RegistryItem
    registry_dependencies: tuple["DependencyNode", ...] = ()
    depth: int = 0


@dataclass
class DependencyTree:
    """A resolved tree plus a name lookup and its flattened items."""

    root: DependencyNode
    all_nodes: dict[str, DependencyNode] = field(default_factory=dict)
    flat_dependencies: list[RegistryItem] = field(default_factory=list)


@dataclass
class AllDependencies:
    """Aggregated dependencies across a whole tree."""

    registry_dependencies: list[str] = field(default_factory=list)
    npm_dependencies: list[str] = field(default_factory=list)
    all_items: list[RegistryItem] = field(default_factory=list)


@dataclass
class PendingFile:
    """A file staged for writing, computed before any disk mutation.

    Attributes:
        original_path: Virtual path declared by the registry item.
        target_path: Resolved absolute path in the project.
        content: Raw content from the registry.
        processed_content: Content after import rewriting.
        exists: Whether a file is already present at target_path.
        identical: Whether the existing file equals processed_content once trimmed.
    """

    original_path: str
    target_path: str
    content: str
    processed_content: str
    exists: bool = False
    identical: bool = False

    @property
    def is_conflict(self) -> bool:
        return self.exists and not self.identical


@dataclass
class ProcessedFile:
    """A file materialized into the project."""

    original_path: str
    processed_path: str
    content: str
    processed_content: str


@dataclass
class ProcessedRegistryItem:
    """Result of installing one registry item."""

    item: RegistryItem
    processed_files: list[ProcessedFile] = field(default_factory=list)
    processed_urls: list[str] = field(default_factory=list)
    npm_dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
