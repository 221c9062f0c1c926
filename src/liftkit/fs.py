"""Filesystem access used when materializing registry files.

The writer and processor only touch disk through a ``FileSystem`` so tests
can substitute an in-memory implementation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """The file operations the install pipeline needs."""

    def exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, content: str) -> None: ...

    def append_text(self, path: Path, content: str) -> None: ...

    def mkdir(self, path: Path) -> None: ...


class LocalFileSystem:
    """FileSystem backed by the real disk."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    def append_text(self, path: Path, content: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(content)

    def mkdir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)
