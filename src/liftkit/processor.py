"""Install registry items into a project.

The processor turns one registry item into files on disk (through the
conflict-aware writer), installs its package dependencies and appends CSS
variables to the project's stylesheet.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from . import config
from .fs import FileSystem, LocalFileSystem
from .packages import install_packages
from .prompts import ConfirmationChannel
from .types import ProcessedRegistryItem, RegistryItem
from .writer import ConflictAwareWriter

LogFn = Callable[[str], None]

CSS_VARS_HEADER = "/* CSS Variables from Registry */"
CSS_VARS_FOOTER = "/* End CSS Variables from Registry */"


def _noop(_msg: str) -> None:
    return


@dataclass
class ProcessorOptions:
    """Options for processing registry items.

    Attributes:
        base_dir: Project root.
        preserve_subdirectories: Keep virtual directories for unaliased paths.
        replace_registry_paths: Rewrite registry imports to project aliases.
        install_dependencies: Run the package manager for item dependencies.
        skip_conflicts: Overwrite changed files without asking.
        source_dir: Directory that @/ aliases point at.
        stylesheet: Stylesheet receiving CSS variables, relative to base_dir.
        package_manager: npm, pnpm, yarn or bun.
    """

    base_dir: Path = field(default_factory=Path.cwd)
    preserve_subdirectories: bool = True
    replace_registry_paths: bool = True
    install_dependencies: bool = True
    skip_conflicts: bool = False
    source_dir: str = "src"
    stylesheet: str = "src/app/globals.css"
    package_manager: str = "npm"


def generate_css_vars(css_vars: dict[str, dict[str, str]]) -> str:
    """Flatten CSS variable groups into a comment-delimited block."""
    lines = ["", CSS_VARS_HEADER]
    for group, values in css_vars.items():
        if isinstance(values, dict):
            for key, value in values.items():
                lines.append(f"  --{key}: {value};")
        else:
            lines.append(f"  --{group}: {values};")
    lines.append(CSS_VARS_FOOTER)
    return "\n".join(lines) + "\n"


class RegistryProcessor:
    """Materializes registry items into a project."""

    def __init__(
        self,
        options: ProcessorOptions | None = None,
        *,
        fs: FileSystem | None = None,
        confirm: ConfirmationChannel | None = None,
        log: LogFn | None = None,
    ):
        self.options = options or ProcessorOptions()
        self.fs = fs or LocalFileSystem()
        self.confirm = confirm
        self.log = log or _noop
        self.aliases: dict[str, str] | None = None
        self._processed_urls: dict[str, None] = {}

    def initialize(self) -> None:
        """Load the project's alias table; a missing components.json is fine."""
        self.aliases = config.load_aliases(self.options.base_dir)

    def _writer(self, options: ProcessorOptions) -> ConflictAwareWriter:
        return ConflictAwareWriter(
            options.base_dir,
            self.aliases,
            fs=self.fs,
            confirm=self.confirm,
            source_dir=options.source_dir,
            preserve_subdirectories=options.preserve_subdirectories,
            replace_registry_paths=options.replace_registry_paths,
            log=self.log,
        )

    def process_registry_item(self, item: RegistryItem, **overrides) -> ProcessedRegistryItem:
        """Write an item's files, then install its package dependencies.

        Keyword overrides replace ProcessorOptions fields for this call only.

        Raises:
            UserCancelledError: If the user declines overwriting changed files.
            FileWriteError: If some files could not be written.
            InstallError: If package installation fails. Files already
                written stay on disk.
        """
        options = dataclasses.replace(self.options, **overrides)

        processed_files = []
        if item.files:
            processed_files = self._writer(options).install_files(
                item.files,
                skip_conflicts=options.skip_conflicts,
                seen=self._processed_urls,
            )

        npm_dependencies = list(item.dependencies)
        dev_dependencies = list(item.dev_dependencies)

        if options.install_dependencies and (npm_dependencies or dev_dependencies):
            self.log(f"Installing dependencies: {', '.join(npm_dependencies + dev_dependencies)}")
            install_packages(
                npm_dependencies,
                dev_dependencies,
                options.base_dir,
                options.package_manager,
            )

        return ProcessedRegistryItem(
            item=item,
            processed_files=processed_files,
            processed_urls=self.get_processed_urls(),
            npm_dependencies=npm_dependencies,
            dev_dependencies=dev_dependencies,
        )

    def process_css_vars(self, css_vars: dict[str, dict[str, str]] | None) -> Path | None:
        """Append CSS variables to the stylesheet. Returns its path, or None."""
        if not css_vars:
            return None

        css_path = self.options.base_dir / self.options.stylesheet
        self.fs.mkdir(css_path.parent)
        self.fs.append_text(css_path, generate_css_vars(css_vars))
        self.log(f"[green]Appended CSS variables[/green] to {self.options.stylesheet}")
        return css_path

    def get_processed_urls(self) -> list[str]:
        """Virtual paths written so far, in first-seen order."""
        return list(self._processed_urls)

    def clear_processed_urls(self) -> None:
        self._processed_urls.clear()
