"""Registry client: schema validation plus dependency-aware fetching."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from . import graph
from .fetcher import (
    DEFAULT_REGISTRY_URL,
    DEFAULT_SCHEMA_URL,
    DEFAULT_TIMEOUT,
    fetch_registry_index,
    fetch_registry_item,
    fetch_registry_items,
    fetch_schema,
    load_item_source,
)
from .schema import SchemaValidator
from .types import AllDependencies, DependencyNode, DependencyTree, RegistryItem, ValidationResult


class RegistryClient:
    """One registry (base URL) and the schema its items are validated against.

    The client owns an ``httpx.AsyncClient`` unless one is passed in; use it
    as an async context manager, or call ``aclose()``.
    """

    def __init__(
        self,
        schema: Mapping[str, Any],
        base_url: str = DEFAULT_REGISTRY_URL,
        http: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.validator = SchemaValidator(schema)
        self.base_url = base_url
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    # ── validation ──

    def validate(self, item: RegistryItem | Mapping[str, Any]) -> ValidationResult:
        return self.validator.validate(item)

    # ── fetching ──

    async def _fetch(self, name: str, base_url: str) -> RegistryItem:
        return await fetch_registry_item(name, base_url, self.http)

    async def fetch_item(self, name: str) -> RegistryItem:
        return await self._fetch(name, self.base_url)

    async def fetch_items(self, names: list[str]) -> list[RegistryItem]:
        return await fetch_registry_items(names, self.base_url, self.http)

    async def fetch_index(self) -> dict[str, dict[str, Any]]:
        return await fetch_registry_index(self.base_url, self.http)

    async def load_source(self, source: str) -> dict[str, Any]:
        """Raw JSON of an item given as URL, local path or name."""
        return await load_item_source(source, self.base_url, self.http)

    # ── dependency resolution ──

    async def resolve(self, name: str, visited: frozenset[str] = frozenset()) -> DependencyNode:
        """Root node of the dependency tree for one item."""
        return await graph.build_dependency_tree(name, self.base_url, visited, fetch=self._fetch)

    async def build_dependency_tree(self, name: str) -> DependencyTree:
        return graph.make_tree(await self.resolve(name))

    async def get_installation_order(self, name: str) -> list[RegistryItem]:
        return graph.calculate_installation_order(await self.resolve(name))

    async def get_all_dependencies(self, name: str) -> AllDependencies:
        return graph.get_all_dependencies(await self.resolve(name))


async def create_registry_client(
    schema_url: str = DEFAULT_SCHEMA_URL,
    base_url: str = DEFAULT_REGISTRY_URL,
    http: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> RegistryClient:
    """Fetch the schema and return a client bound to it."""
    client = RegistryClient({}, base_url, http, timeout)
    try:
        client.validator = SchemaValidator(await fetch_schema(schema_url, client.http))
    except Exception:
        await client.aclose()
        raise
    return client
