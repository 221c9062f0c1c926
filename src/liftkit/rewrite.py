"""Rewrite registry import paths to the project's aliases.

Files in a registry import each other through the virtual namespace, e.g.
``from "@/registry/nextjs/components/button"``. On install those references
are rewritten to the project's aliases (``from "@/components/button"``).

This is a targeted regex rewrite, not a parser: a string literal that merely
looks like an import statement is rewritten too. Registry files are component
sources, so that trade-off is accepted to stay independent of any particular
front-end language toolchain.
"""

from __future__ import annotations

import re

from .config import DEFAULT_ALIASES

DEFAULT_ROLES = ["components", "lib", "blocks", "hooks", "ui"]

# Statement heads that can precede a module string
_HEAD = r"(?P<head>\bfrom\s+|@?\bimport\s+|\bimport\(\s*|\brequire\(\s*)(?P<quote>['\"])"

_STATIC_ALIAS_IMPORT = re.compile(r"(?P<head>\bfrom\s+|@?\bimport\s+)['\"](?P<path>@/[^'\"]+)['\"]")
_DYNAMIC_ALIAS_IMPORT = re.compile(r"\bimport\(\s*['\"](?P<path>@/[^'\"]+)['\"]\s*\)")


def directory_mappings(aliases: dict[str, str] | None) -> list[tuple[str, str]]:
    """(role directory, target alias) pairs used for rewriting.

    Without a project alias table the defaults apply. The ``ui`` directory
    falls back to ``<components alias>/ui`` when no ``ui`` alias is declared.
    """
    table = aliases if aliases else {role: DEFAULT_ALIASES[role] for role in DEFAULT_ROLES}
    mappings: list[tuple[str, str]] = []
    for role, alias in table.items():
        if role == "ui":
            continue
        mappings.append((role, alias.rstrip("/")))

    ui_alias = table.get("ui")
    if not ui_alias:
        components = table.get("components", DEFAULT_ALIASES["components"])
        ui_alias = f"{components.rstrip('/')}/ui"
    mappings.append(("ui", ui_alias.rstrip("/")))
    return mappings


def _role_pattern(role: str) -> re.Pattern[str]:
    return re.compile(_HEAD + rf"(?:@/)?registry/[^/'\"\s]+/{re.escape(role)}/")


def normalize_quotes(content: str) -> str:
    """Use double quotes for every import of an ``@/`` alias path."""
    content = _STATIC_ALIAS_IMPORT.sub(lambda m: f'{m["head"]}"{m["path"]}"', content)
    return _DYNAMIC_ALIAS_IMPORT.sub(lambda m: f'import("{m["path"]}")', content)


def rewrite_paths(content: str, aliases: dict[str, str] | None = None) -> str:
    """Point registry-namespace imports at the project's aliases."""
    if not content:
        return content

    for role, alias in directory_mappings(aliases):
        content = _role_pattern(role).sub(
            lambda m, alias=alias: f"{m['head']}{m['quote']}{alias}/",
            content,
        )
    return normalize_quotes(content)
