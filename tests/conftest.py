"""Pytest fixtures for liftkit tests."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from liftkit import config

REGISTRY = "https://registry.test/r"
SCHEMA_URL = "https://registry.test/schema/registry-item.json"

SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "type"],
    "properties": {
        "name": {"type": "string"},
        "type": {
            "type": "string",
            "enum": [
                "registry:component",
                "registry:ui",
                "registry:lib",
                "registry:hook",
                "registry:block",
            ],
        },
        "description": {"type": "string"},
        "dependencies": {"type": "array", "items": {"type": "string"}},
        "devDependencies": {"type": "array", "items": {"type": "string"}},
        "registryDependencies": {"type": "array", "items": {"type": "string"}},
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "path": {"type": "string"},
                    "type": {"type": "string", "enum": ["registry:component", "registry:ui"]},
                },
            },
        },
        "cssVars": {"type": "object"},
    },
}


def run(coro):
    """Helper to run async code in sync tests."""
    return asyncio.run(coro)


def make_item(name, *, deps=(), files=None, item_type="registry:component", **extra):
    """Registry item JSON with sensible defaults."""
    data = {
        "name": name,
        "type": item_type,
        "registryDependencies": list(deps),
        "files": files
        if files is not None
        else [
            {
                "path": f"registry/nextjs/components/{name}.tsx",
                "type": "registry:component",
                "content": f"export const {name} = 1\n",
            }
        ],
    }
    data.update(extra)
    return data


class FakeRegistry:
    """Serves registry items, the index and the schema over httpx.MockTransport."""

    def __init__(self, items=None, schema=None):
        self.items: dict[str, dict] = {i["name"]: i for i in (items or [])}
        self.schema = schema if schema is not None else SCHEMA
        self.requests: list[str] = []
        self.failing: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url == SCHEMA_URL:
            return httpx.Response(200, json=self.schema)
        if url == f"{REGISTRY}/index.json":
            return httpx.Response(200, json=[
                {"name": n, "type": i["type"]} for n, i in self.items.items()
            ])
        name = url.rsplit("/", 1)[-1].removesuffix(".json")
        if name in self.failing or name not in self.items:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, json=self.items[name])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def item_requests(self, name: str) -> int:
        return self.requests.count(f"{REGISTRY}/{name}.json")


class MemoryFileSystem:
    """In-memory FileSystem keyed by absolute path."""

    def __init__(self, files=None):
        self.files: dict[Path, str] = {Path(k): v for k, v in (files or {}).items()}
        self.writes: list[Path] = []
        self.dirs: set[Path] = set()
        self.fail_on: set[Path] = set()

    def exists(self, path: Path) -> bool:
        return Path(path) in self.files

    def read_text(self, path: Path) -> str:
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def write_text(self, path: Path, content: str) -> None:
        path = Path(path)
        if path in self.fail_on:
            raise PermissionError(f"Permission denied: {path}")
        self.files[path] = content
        self.writes.append(path)

    def append_text(self, path: Path, content: str) -> None:
        path = Path(path)
        self.files[path] = self.files.get(path, "") + content

    def mkdir(self, path: Path) -> None:
        self.dirs.add(Path(path))


class RecordingConfirm:
    """ConfirmationChannel that records questions and replies with a fixed answer."""

    def __init__(self, answer: str = "y"):
        self.answer = answer
        self.questions: list[str] = []

    def ask(self, question: str) -> str:
        self.questions.append(question)
        return self.answer


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def memfs():
    return MemoryFileSystem()


@pytest.fixture
def liftkit_env(tmp_path, monkeypatch):
    """Isolated config dir so the user's config never leaks into tests."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setattr(config, "get_config_dir", lambda: config_dir)
    return config_dir


@pytest.fixture
def project(tmp_path):
    """A project directory with package.json and components.json."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / "package.json").write_text(json.dumps({"name": "app"}))
    (project_dir / "components.json").write_text(json.dumps({
        "aliases": {
            "components": "@/components",
            "ui": "@/components/ui",
            "lib": "@/lib",
            "hooks": "@/hooks",
        }
    }))
    return project_dir
