"""Registry dependency resolution.

Builds the tree of registry dependencies for an item, rejecting cycles while
the tree is constructed, and derives flattened and installation orders from it.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable

from .errors import CircularDependencyError
from .fetcher import DEFAULT_REGISTRY_URL, fetch_registry_item
from .types import AllDependencies, DependencyNode, DependencyTree, RegistryItem

# (name, base_url) -> parsed item
FetchItemFn = Callable[[str, str], Awaitable[RegistryItem]]


def _unique(values: Iterable[str]) -> list[str]:
    """Deduplicate preserving first-seen order."""
    return list(dict.fromkeys(values))


def _raise_child_errors(results: list) -> list[DependencyNode]:
    """Children of a node, or the error that fails it.

    A cycle anywhere among the siblings wins over any other failure, so the
    order in which sibling fetches fail never hides it.
    """
    errors = [r for r in results if isinstance(r, BaseException)]
    for error in errors:
        if isinstance(error, CircularDependencyError):
            raise error
    if errors:
        raise errors[0]
    return results


async def build_dependency_tree(
    root_name: str,
    base_url: str = DEFAULT_REGISTRY_URL,
    visited: frozenset[str] = frozenset(),
    depth: int = 0,
    *,
    fetch: FetchItemFn | None = None,
) -> DependencyNode:
    """Recursively fetch an item and its registry dependencies.

    Args:
        root_name: Item name (or URL) to resolve.
        base_url: Registry base URL for name lookups.
        visited: Names of the ancestors on this branch only. Siblings never
            see each other's names, so shared (diamond) dependencies are fine.
        depth: Distance from the tree root.
        fetch: Item fetcher, defaults to fetching over HTTP.

    Raises:
        CircularDependencyError: If an item depends on one of its ancestors.
        FetchError: If any item in the tree cannot be fetched.
    """
    if root_name in visited:
        raise CircularDependencyError(root_name)

    fetch = fetch or fetch_registry_item
    branch = visited | {root_name}
    item = await fetch(root_name, base_url)

    # Reject a back edge before any child request goes out
    for dep in item.registry_dependencies:
        if dep in branch:
            raise CircularDependencyError(dep)

    results = await asyncio.gather(
        *(
            build_dependency_tree(dep, base_url, branch, depth + 1, fetch=fetch)
            for dep in item.registry_dependencies
        ),
        return_exceptions=True,
    )
    children = _raise_child_errors(results)
    return DependencyNode(
        name=root_name,
        item=item,
        registry_dependencies=tuple(children),
        depth=depth,
    )


def flatten_dependency_tree(root: DependencyNode) -> list[RegistryItem]:
    """Depth-first, parent-first list of items, each item name once.

    Items are keyed by their declared name, so a dependency referenced both
    by URL and by bare name appears once.
    """
    items: list[RegistryItem] = []
    seen: set[str] = set()

    def _traverse(node: DependencyNode) -> None:
        if node.item.name in seen:
            return
        seen.add(node.item.name)
        items.append(node.item)
        for child in node.registry_dependencies:
            _traverse(child)

    _traverse(root)
    return items


def collect_nodes(root: DependencyNode) -> dict[str, DependencyNode]:
    """Item name -> node lookup for every node in the tree (first occurrence wins)."""
    nodes: dict[str, DependencyNode] = {}

    def _collect(node: DependencyNode) -> None:
        nodes.setdefault(node.item.name, node)
        for child in node.registry_dependencies:
            _collect(child)

    _collect(root)
    return nodes


def get_all_dependencies(root: DependencyNode) -> AllDependencies:
    """Union of registry and package dependencies over the whole tree."""
    all_items = flatten_dependency_tree(root)
    return AllDependencies(
        registry_dependencies=_unique(
            dep for item in all_items for dep in item.registry_dependencies
        ),
        npm_dependencies=_unique(dep for item in all_items for dep in item.npm_dependencies),
        all_items=all_items,
    )


def calculate_installation_order(root: DependencyNode) -> list[RegistryItem]:
    """Post-order traversal: every item comes after all of its dependencies."""
    order: list[RegistryItem] = []
    seen: set[str] = set()

    def _visit(node: DependencyNode) -> None:
        if node.item.name in seen:
            return
        for child in node.registry_dependencies:
            _visit(child)
        seen.add(node.item.name)
        order.append(node.item)

    _visit(root)
    return order


def make_tree(root: DependencyNode) -> DependencyTree:
    """Wrap a root node with its lookup map and flattened items."""
    return DependencyTree(
        root=root,
        all_nodes=collect_nodes(root),
        flat_dependencies=flatten_dependency_tree(root),
    )


def format_tree(root: DependencyNode) -> list[str]:
    """Indented lines describing the tree, one per node."""
    lines: list[str] = []

    def _walk(node: DependencyNode) -> None:
        lines.append(f"{'  ' * node.depth}{node.name} [{node.item.type.label}]")
        for child in node.registry_dependencies:
            _walk(child)

    _walk(root)
    return lines
