"""Fetch registry schemas, indexes and items.

Items can come from three kinds of sources:
- an http(s) URL, fetched directly
- a local JSON file path
- a bare item name, resolved as {base_url}/{name}.json
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

import httpx

from .errors import FetchError
from .types import RegistryItem

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_URL = "https://ui.shadcn.com/schema/registry-item.json"
DEFAULT_REGISTRY_URL = "https://liftkit.pages.dev/r"
DEFAULT_TIMEOUT = 30.0

_URL_RE = re.compile(r"^(https?://)[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def is_valid_url(value: str) -> bool:
    """Check whether a string is an http or https URL."""
    return bool(_URL_RE.match(value))


def item_url(name: str, base_url: str = DEFAULT_REGISTRY_URL) -> str:
    """URL for a registry item; names that are already URLs are kept."""
    if is_valid_url(name):
        return name
    return f"{base_url.rstrip('/')}/{name}.json"


async def fetch_json(
    url: str,
    client: httpx.AsyncClient | None = None,
    *,
    name: str | None = None,
) -> Any:
    """GET a URL and decode its JSON body.

    Raises:
        FetchError: On transport failure, non-success status or invalid JSON.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True) as own:
            return await fetch_json(url, own, name=name)

    logger.debug(f"GET {url}")
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise FetchError(url, str(e) or type(e).__name__, name=name) from e

    if response.status_code >= 400:
        raise FetchError(
            url,
            f"{response.status_code} {response.reason_phrase}".strip(),
            status=response.status_code,
            name=name,
        )

    try:
        return response.json()
    except ValueError as e:
        raise FetchError(url, f"invalid JSON: {e}", status=response.status_code, name=name) from e


async def fetch_schema(
    url: str = DEFAULT_SCHEMA_URL,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Fetch the registry item schema."""
    schema = await fetch_json(url, client)
    if not isinstance(schema, dict):
        raise FetchError(url, "schema is not a JSON object")
    return schema


async def fetch_registry_index(
    base_url: str = DEFAULT_REGISTRY_URL,
    client: httpx.AsyncClient | None = None,
) -> dict[str, dict[str, Any]]:
    """Fetch {base_url}/index.json as a name -> summary mapping.

    Registries publish the index either as a mapping or as a list of
    summaries; both are normalized to a mapping keyed by item name.
    """
    url = f"{base_url.rstrip('/')}/index.json"
    data = await fetch_json(url, client)
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if isinstance(v, dict)}
    if isinstance(data, list):
        return {
            entry["name"]: entry
            for entry in data
            if isinstance(entry, dict) and isinstance(entry.get("name"), str)
        }
    raise FetchError(url, "index is not a JSON object or array")


async def fetch_registry_item(
    name: str,
    base_url: str = DEFAULT_REGISTRY_URL,
    client: httpx.AsyncClient | None = None,
) -> RegistryItem:
    """Fetch and parse one registry item by name or URL."""
    data = await fetch_json(item_url(name, base_url), client, name=name)
    return RegistryItem.from_dict(data)


async def fetch_registry_items(
    names: list[str],
    base_url: str = DEFAULT_REGISTRY_URL,
    client: httpx.AsyncClient | None = None,
) -> list[RegistryItem]:
    """Fetch several items concurrently, preserving input order."""
    return list(
        await asyncio.gather(*(fetch_registry_item(n, base_url, client) for n in names))
    )


def read_item_file(path: Path) -> dict[str, Any]:
    """Read a registry item JSON document from disk.

    Raises:
        FetchError: If the file cannot be read or is not a JSON object.
    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise FetchError(str(path), f"Failed to parse JSON from file: {e}") from e
    if not isinstance(data, dict):
        raise FetchError(str(path), "Failed to parse JSON from file: not an object")
    return data


async def load_item_source(
    source: str,
    base_url: str = DEFAULT_REGISTRY_URL,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Load the raw JSON of a registry item from a URL, local file or name.

    The raw document is returned unparsed so callers can validate it
    against the schema before relying on its shape.
    """
    if is_valid_url(source):
        data = await fetch_json(source, client)
    elif Path(source).is_file():
        return read_item_file(Path(source))
    else:
        data = await fetch_json(item_url(source, base_url), client, name=source)

    if not isinstance(data, dict):
        raise FetchError(source, "registry item is not a JSON object")
    return data
