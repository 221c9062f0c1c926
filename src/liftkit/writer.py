"""Conflict-aware writing of one registry item's files.

A batch goes through three steps:
1. collect: resolve every target, rewrite content, compare with what is on disk
2. confirm: if any existing file would change, ask once for the whole batch
3. write: create directories and write every pending file

Declining the prompt raises UserCancelledError before anything is written.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from .errors import FileWriteError, UserCancelledError
from .fs import FileSystem, LocalFileSystem
from .paths import resolve_target_path
from .prompts import ConfirmationChannel, is_affirmative
from .rewrite import rewrite_paths
from .types import PendingFile, ProcessedFile, RegistryFile

logger = logging.getLogger(__name__)

LogFn = Callable[[str], None]

OVERWRITE_QUESTION = "\nDo you want to proceed with overwriting these files? (y/N): "


def _noop(_msg: str) -> None:
    return


def contents_identical(existing: str, incoming: str) -> bool:
    """Equal once leading/trailing whitespace is ignored."""
    return existing.strip() == incoming.strip()


class ConflictAwareWriter:
    """Stages, confirms and writes registry files into a project."""

    def __init__(
        self,
        base_dir: Path,
        aliases: dict[str, str] | None = None,
        *,
        fs: FileSystem | None = None,
        confirm: ConfirmationChannel | None = None,
        source_dir: str = "src",
        preserve_subdirectories: bool = True,
        replace_registry_paths: bool = True,
        log: LogFn | None = None,
    ):
        self.base_dir = base_dir
        self.aliases = aliases
        self.fs = fs or LocalFileSystem()
        self.confirm = confirm
        self.source_dir = source_dir
        self.preserve_subdirectories = preserve_subdirectories
        self.replace_registry_paths = replace_registry_paths
        self.log = log or _noop

    def relative(self, path: str | Path) -> str:
        return os.path.relpath(path, self.base_dir)

    # ── collect ──

    def collect(self, files: list[RegistryFile]) -> list[PendingFile]:
        """Stage every file that has content. Nothing is written."""
        pending: list[PendingFile] = []
        for file in files:
            if file.content is None:
                logger.info(f"Skipping file {file.path} - no content")
                self.log(f"[dim]Skipping {file.path} (no content)[/dim]")
                continue

            target = resolve_target_path(
                file.path,
                self.aliases,
                self.base_dir,
                self.preserve_subdirectories,
                self.source_dir,
            )
            processed = (
                rewrite_paths(file.content, self.aliases)
                if self.replace_registry_paths
                else file.content
            )
            exists = self.fs.exists(target)
            identical = False
            if exists:
                try:
                    identical = contents_identical(self.fs.read_text(target), processed)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Could not read existing file {target}: {e}")

            pending.append(
                PendingFile(
                    original_path=file.path,
                    target_path=str(target),
                    content=file.content,
                    processed_content=processed,
                    exists=exists,
                    identical=identical,
                )
            )
        return pending

    # ── confirm ──

    @staticmethod
    def find_conflicts(pending: list[PendingFile]) -> list[PendingFile]:
        """Files that exist on disk with different content."""
        return [p for p in pending if p.is_conflict]

    def confirm_overwrite(self, conflicts: list[PendingFile]) -> None:
        """Ask once for the whole batch.

        Raises:
            UserCancelledError: Unless the answer is y/yes.
        """
        paths = [self.relative(c.target_path) for c in conflicts]
        self.log("\n[yellow]The following files already exist and will be overwritten:[/yellow]")
        for path in paths:
            self.log(f"  - {path}")

        answer = self.confirm.ask(OVERWRITE_QUESTION) if self.confirm else ""
        if not is_affirmative(answer):
            raise UserCancelledError(paths)

    # ── write ──

    def write(self, pending: list[PendingFile], seen: dict[str, None] | None = None) -> list[ProcessedFile]:
        """Write every pending file, attempting all even if some fail.

        Args:
            pending: Files from collect().
            seen: Ordered set of virtual paths, updated in place.

        Raises:
            FileWriteError: After the batch, if any file could not be written.
        """
        written: list[ProcessedFile] = []
        failures: list[tuple[str, OSError]] = []

        for p in pending:
            target = Path(p.target_path)
            rel = self.relative(target)
            if seen is not None:
                seen[p.original_path] = None

            if p.exists and p.identical:
                self.log(f"[dim]Skipped {rel} (identical content)[/dim]")
            else:
                try:
                    self.fs.mkdir(target.parent)
                    self.fs.write_text(target, p.processed_content)
                except OSError as e:
                    logger.error(f"Failed to write {target}: {e}")
                    self.log(f"[red]Failed to write {rel}: {e}[/red]")
                    failures.append((rel, e))
                    continue
                if p.exists:
                    self.log(f"[yellow]Updated[/yellow] {rel}")
                else:
                    self.log(f"[green]Created[/green] {rel}")

            written.append(
                ProcessedFile(
                    original_path=p.original_path,
                    processed_path=p.target_path,
                    content=p.content,
                    processed_content=p.processed_content,
                )
            )

        if failures:
            raise FileWriteError(failures)
        return written

    def install_files(
        self,
        files: list[RegistryFile],
        *,
        skip_conflicts: bool = False,
        seen: dict[str, None] | None = None,
    ) -> list[ProcessedFile]:
        """Collect, confirm (unless skip_conflicts) and write one batch."""
        pending = self.collect(files)
        if not skip_conflicts:
            conflicts = self.find_conflicts(pending)
            if conflicts:
                self.confirm_overwrite(conflicts)
        return self.write(pending, seen)
