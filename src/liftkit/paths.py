"""Map virtual registry paths to files in the consuming project.

Registry files declare paths in a virtual namespace,
``registry/<platform>/<role>/<rest>``. When the project has an alias table,
a path under a known role lands under that role's alias, with the alias's
``@/`` prefix replaced by the project's source directory.
"""

from __future__ import annotations

import os
import posixpath
import re
from pathlib import Path

from .config import DEFAULT_ALIASES
from .errors import UnsafePathError

# Roles tried first, in this order; extra roles from the alias table follow
ROLE_ORDER = ["components", "ui", "blocks", "hooks", "lib"]


def role_prefix_pattern(role: str) -> re.Pattern[str]:
    """Match ``(@/)?registry/<platform>/<role>/`` at the start of a path."""
    return re.compile(rf"^(?:@/)?registry/[^/]+/{re.escape(role)}/")


def alias_roles(aliases: dict[str, str]) -> list[str]:
    """Roles to consider for an alias table, in deterministic order."""
    extra = [role for role in aliases if role not in ROLE_ORDER]
    return ROLE_ORDER + extra


def alias_to_dir(alias: str, source_dir: str = "src") -> str:
    """Turn an import alias like ``@/components`` into ``src/components``."""
    alias = alias.rstrip("/")
    if alias == "@":
        return source_dir
    if alias.startswith("@/"):
        return posixpath.join(source_dir, alias[2:])
    return alias


def match_role(virtual_path: str, aliases: dict[str, str]) -> tuple[str, str] | None:
    """Find the role a virtual path belongs to.

    Returns (alias, remainder) or None.
    """
    for role in alias_roles(aliases):
        m = role_prefix_pattern(role).match(virtual_path)
        if m:
            alias = aliases.get(role) or DEFAULT_ALIASES.get(role, f"@/{role}")
            return alias, virtual_path[m.end():]
    return None


def resolve_target_path(
    virtual_path: str,
    aliases: dict[str, str] | None,
    base_dir: Path,
    preserve_subdirectories: bool = True,
    source_dir: str = "src",
) -> Path:
    """Resolve a registry file's virtual path to an absolute project path.

    Args:
        virtual_path: Path declared by the registry file.
        aliases: Project alias table, or None when the project has none.
        base_dir: Project root.
        preserve_subdirectories: Keep the virtual directory structure when no
            alias matches; otherwise only the file name is kept.
        source_dir: Directory that ``@/`` aliases point at.

    Raises:
        UnsafePathError: If the path escapes base_dir (``..`` segments or an
            absolute path).
    """
    base = Path(os.path.abspath(base_dir))

    if aliases:
        matched = match_role(virtual_path, aliases)
        if matched:
            alias, remainder = matched
            return _join(base, virtual_path, alias_to_dir(alias, source_dir), remainder)

    if preserve_subdirectories:
        return _join(base, virtual_path, virtual_path)
    return _join(base, virtual_path, posixpath.basename(virtual_path))


def _join(base: Path, virtual_path: str, *parts: str) -> Path:
    """Join and normalize without touching the filesystem, staying under base."""
    target = Path(os.path.normpath(os.path.join(base, *parts)))
    if base not in target.parents:
        raise UnsafePathError(virtual_path, str(base))
    return target
