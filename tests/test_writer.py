"""Tests for conflict-aware file writing."""

from pathlib import Path

import pytest
from conftest import MemoryFileSystem, RecordingConfirm

from liftkit.errors import FileWriteError, UnsafePathError, UserCancelledError
from liftkit.types import RegistryFile, RegistryType
from liftkit.writer import OVERWRITE_QUESTION, ConflictAwareWriter, contents_identical

ALIASES = {"components": "@/components", "lib": "@/lib"}
BASE = Path("/project")


def _file(path, content="export const x = 1\n"):
    return RegistryFile(path=path, type=RegistryType.COMPONENT, content=content)


def _writer(fs, confirm=None, **kwargs):
    return ConflictAwareWriter(BASE, ALIASES, fs=fs, confirm=confirm, **kwargs)


BUTTON = BASE / "src" / "components" / "button.tsx"


class TestContentsIdentical:
    def test_surrounding_whitespace_ignored(self):
        assert contents_identical("x = 1\n\n", "  x = 1")

    def test_inner_difference(self):
        assert not contents_identical("x = 1", "x  = 1")


class TestCollect:
    def test_resolves_and_rewrites(self):
        fs = MemoryFileSystem()
        pending = _writer(fs).collect([
            _file("registry/nextjs/components/button.tsx", 'import { cn } from "registry/nextjs/lib/utils"')
        ])
        assert pending[0].target_path == str(BUTTON)
        assert pending[0].processed_content == 'import { cn } from "@/lib/utils"'
        assert not pending[0].exists
        assert fs.writes == []

    def test_rewrite_disabled(self):
        content = 'import { cn } from "registry/nextjs/lib/utils"'
        pending = _writer(MemoryFileSystem(), replace_registry_paths=False).collect([
            _file("registry/nextjs/components/button.tsx", content)
        ])
        assert pending[0].processed_content == content

    def test_skips_files_without_content(self):
        lines = []
        writer = _writer(MemoryFileSystem(), log=lines.append)
        pending = writer.collect([_file("registry/nextjs/components/a.tsx", None)])
        assert pending == []
        assert any("no content" in line for line in lines)

    def test_marks_identical_existing(self):
        fs = MemoryFileSystem({BUTTON: "export const x = 1\n\n\n"})
        pending = _writer(fs).collect([_file("registry/nextjs/components/button.tsx")])
        assert pending[0].exists
        assert pending[0].identical
        assert not pending[0].is_conflict


    def test_escaping_path_rejected(self):
        fs = MemoryFileSystem()
        with pytest.raises(UnsafePathError):
            _writer(fs).collect([_file("registry/nextjs/components/../../../../etc/x")])
        assert fs.writes == []


class TestInstallFiles:
    def test_unsafe_path_writes_nothing_in_batch(self):
        fs = MemoryFileSystem()
        with pytest.raises(UnsafePathError):
            _writer(fs).install_files([
                _file("registry/nextjs/components/button.tsx"),
                _file("registry/nextjs/components/../../../../etc/x"),
            ])
        assert fs.writes == []
        assert fs.files == {}

    def test_new_files_written_without_prompt(self):
        fs = MemoryFileSystem()
        confirm = RecordingConfirm("n")
        written = _writer(fs, confirm).install_files([_file("registry/nextjs/components/button.tsx")])
        assert len(written) == 1
        assert fs.files[BUTTON] == "export const x = 1\n"
        assert BUTTON.parent in fs.dirs
        assert confirm.questions == []

    def test_whitespace_only_difference_is_not_a_conflict(self):
        fs = MemoryFileSystem({BUTTON: "\n  export const x = 1\n   "})
        confirm = RecordingConfirm("n")
        lines = []
        written = _writer(fs, confirm, log=lines.append).install_files(
            [_file("registry/nextjs/components/button.tsx")]
        )
        assert confirm.questions == []
        assert fs.writes == []
        assert len(written) == 1
        assert any("identical content" in line for line in lines)

    def test_conflict_prompts_once_and_lists_paths(self):
        fs = MemoryFileSystem({
            BUTTON: "old button",
            BASE / "src" / "lib" / "utils.ts": "old utils",
        })
        confirm = RecordingConfirm("yes")
        lines = []
        _writer(fs, confirm, log=lines.append).install_files([
            _file("registry/nextjs/components/button.tsx", "new button"),
            _file("registry/nextjs/lib/utils.ts", "new utils"),
            _file("registry/nextjs/components/card.tsx", "new card"),
        ])
        assert confirm.questions == [OVERWRITE_QUESTION]
        assert "  - src/components/button.tsx" in lines
        assert "  - src/lib/utils.ts" in lines
        assert not any("card.tsx" in line and line.startswith("  - ") for line in lines)
        assert fs.files[BUTTON] == "new button"
        assert any("Updated" in line for line in lines)
        assert any("Created" in line for line in lines)

    @pytest.mark.parametrize("answer", ["n", "", "nope", "YESS"])
    def test_decline_writes_nothing(self, answer):
        fs = MemoryFileSystem({BUTTON: "old"})
        with pytest.raises(UserCancelledError) as exc:
            _writer(fs, RecordingConfirm(answer)).install_files([
                _file("registry/nextjs/components/card.tsx", "card"),
                _file("registry/nextjs/components/button.tsx", "new"),
            ])
        assert exc.value.paths == ["src/components/button.tsx"]
        assert fs.writes == []
        assert fs.files[BUTTON] == "old"

    @pytest.mark.parametrize("answer", ["y", "Y", " yes ", "YES"])
    def test_affirmative_answers(self, answer):
        fs = MemoryFileSystem({BUTTON: "old"})
        _writer(fs, RecordingConfirm(answer)).install_files([
            _file("registry/nextjs/components/button.tsx", "new")
        ])
        assert fs.files[BUTTON] == "new"

    def test_no_channel_means_decline(self):
        fs = MemoryFileSystem({BUTTON: "old"})
        with pytest.raises(UserCancelledError):
            _writer(fs).install_files([_file("registry/nextjs/components/button.tsx", "new")])

    def test_skip_conflicts_overwrites_without_prompt(self):
        fs = MemoryFileSystem({BUTTON: "old"})
        confirm = RecordingConfirm("n")
        _writer(fs, confirm).install_files(
            [_file("registry/nextjs/components/button.tsx", "new")], skip_conflicts=True
        )
        assert confirm.questions == []
        assert fs.files[BUTTON] == "new"

    def test_second_install_is_silent(self):
        fs = MemoryFileSystem()
        confirm = RecordingConfirm("n")
        files = [
            _file("registry/nextjs/components/button.tsx", 'import { cn } from "registry/nextjs/lib/utils"\n'),
            _file("registry/nextjs/lib/utils.ts", "export function cn() {}\n"),
        ]
        _writer(fs, confirm).install_files(files)
        first_writes = len(fs.writes)
        _writer(fs, confirm).install_files(files)
        assert confirm.questions == []
        assert len(fs.writes) == first_writes

    def test_seen_records_virtual_paths_in_order(self):
        seen = {}
        _writer(MemoryFileSystem()).install_files(
            [_file("registry/nextjs/lib/b.ts"), _file("registry/nextjs/components/a.tsx")],
            seen=seen,
        )
        assert list(seen) == ["registry/nextjs/lib/b.ts", "registry/nextjs/components/a.tsx"]

    def test_write_failures_reported_after_batch(self):
        fs = MemoryFileSystem()
        fs.fail_on.add(BUTTON)
        with pytest.raises(FileWriteError) as exc:
            _writer(fs).install_files([
                _file("registry/nextjs/components/button.tsx"),
                _file("registry/nextjs/components/card.tsx"),
            ])
        assert [path for path, _ in exc.value.failures] == ["src/components/button.tsx"]
        assert BASE / "src" / "components" / "card.tsx" in fs.files
