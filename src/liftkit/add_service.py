"""The add workflow shared by CLI commands.

Resolution is asynchronous (schema, root item and dependency subtrees are
fetched over HTTP, sibling subtrees concurrently). Installation is
sequential: each item gets its own collect / confirm / write batch, in
dependency-first order, and the root item is installed last.

Failure policy:
- the root item must load and validate, otherwise the whole add fails
- a dependency that cannot be fetched, or fails validation, is skipped
- a dependency cycle fails the whole add
"""

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import httpx

from . import config, graph
from .client import RegistryClient, create_registry_client
from .errors import (
    CircularDependencyError,
    FetchError,
    LiftkitError,
    RegistryValidationError,
    UserCancelledError,
)
from .fetcher import DEFAULT_TIMEOUT
from .fs import FileSystem
from .processor import ProcessorOptions, RegistryProcessor
from .prompts import ConfirmationChannel
from .types import DependencyNode, RegistryItem

LogFn = Callable[[str], None]


def _noop(_msg: str) -> None:
    return


@dataclass
class InstallPlan:
    """Validated items to install, dependencies first."""

    root: RegistryItem
    dependencies: list[RegistryItem] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def order(self) -> list[RegistryItem]:
        return [*self.dependencies, self.root]


@dataclass
class AddResult:
    """Summary of an add operation."""

    name: str
    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    files_processed: int = 0
    npm_dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    stylesheet: Path | None = None


async def _resolve_subtree(
    client: RegistryClient, name: str, root_name: str
) -> DependencyNode:
    # The root is an ancestor of every dependency subtree
    return await client.resolve(name, frozenset({root_name}))


async def resolve_install_plan(
    source: str,
    client: RegistryClient,
    log: LogFn | None = None,
) -> InstallPlan:
    """Load, validate and order everything needed to install one item.

    Raises:
        FetchError: If the root item cannot be loaded.
        RegistryValidationError: If the root item is invalid.
        CircularDependencyError: If the dependency graph has a cycle.
    """
    logf = log or _noop

    data = await client.load_source(source)
    validation = client.validate(data)
    name = data.get("name") if isinstance(data.get("name"), str) else source
    if not validation.is_valid:
        raise RegistryValidationError(name, validation.errors, validation.warnings)
    root = RegistryItem.from_dict(data)
    plan = InstallPlan(root=root, warnings=list(validation.warnings))

    deps = root.registry_dependencies
    if not deps:
        return plan

    logf(f"[yellow]Processing {len(deps)} dependencies...[/yellow]")
    results = await asyncio.gather(
        *(_resolve_subtree(client, dep, root.name) for dep in deps),
        return_exceptions=True,
    )

    for result in results:
        if isinstance(result, CircularDependencyError):
            raise result

    seen: set[str] = {root.name}
    for dep, result in zip(deps, results):
        if isinstance(result, (FetchError, RegistryValidationError)):
            logf(f"[red]Failed to fetch dependency {dep}:[/red] {result}")
            plan.skipped.append(dep)
            continue
        if isinstance(result, BaseException):
            raise result

        for item in graph.calculate_installation_order(result):
            if item.name in seen:
                continue
            seen.add(item.name)
            dep_validation = client.validate(item)
            if not dep_validation.is_valid:
                logf(f"[red]Invalid dependency {item.name}:[/red]")
                for error in dep_validation.errors:
                    logf(f"  - {error}")
                plan.skipped.append(item.name)
                continue
            plan.dependencies.append(item)

    return plan


async def build_plan(
    source: str,
    *,
    registry_url: str,
    schema_url: str,
    http: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    log: LogFn | None = None,
) -> InstallPlan:
    """Fetch the schema and resolve an install plan for one source."""
    async with await create_registry_client(schema_url, registry_url, http, timeout) as client:
        return await resolve_install_plan(source, client, log)


def processor_options(cfg: dict[str, Any], project_dir: Path, **overrides) -> ProcessorOptions:
    """ProcessorOptions from the tool config plus per-run overrides."""
    options = ProcessorOptions(
        base_dir=project_dir,
        source_dir=str(cfg.get("source_dir", "src")),
        stylesheet=str(cfg.get("stylesheet", "src/app/globals.css")),
        package_manager=str(cfg.get("package_manager", "npm")),
    )
    return dataclasses.replace(options, **overrides)


def install_plan(
    plan: InstallPlan,
    processor: RegistryProcessor,
    log: LogFn | None = None,
) -> AddResult:
    """Install a resolved plan: dependencies, then the root, then CSS vars.

    Raises:
        UserCancelledError: If the user declines overwriting the root's files.
    """
    logf = log or _noop
    result = AddResult(name=plan.root.name, skipped=list(plan.skipped))

    def _record(item: RegistryItem) -> None:
        processed = processor.process_registry_item(item)
        result.installed.append(item.name)
        result.files_processed += len(processed.processed_files)
        result.npm_dependencies.extend(
            d for d in processed.npm_dependencies if d not in result.npm_dependencies
        )
        result.dev_dependencies.extend(
            d for d in processed.dev_dependencies if d not in result.dev_dependencies
        )

    for item in plan.dependencies:
        try:
            _record(item)
        except UserCancelledError:
            logf(f"[yellow]Skipped dependency {item.name}: overwrite declined[/yellow]")
            result.skipped.append(item.name)

    _record(plan.root)
    result.stylesheet = processor.process_css_vars(plan.root.css_vars)
    return result


def add_component(
    source: str,
    *,
    project_dir: Path | None = None,
    registry_url: str | None = None,
    schema_url: str | None = None,
    skip_conflicts: bool = False,
    install_dependencies: bool = True,
    confirm: ConfirmationChannel | None = None,
    fs: FileSystem | None = None,
    http: httpx.AsyncClient | None = None,
    cfg: dict[str, Any] | None = None,
    log: LogFn | None = None,
) -> AddResult:
    """Add a registry component (and its registry dependencies) to a project.

    Raises:
        LiftkitError: If the project has no package.json, or any fatal
            error from resolution or installation.
    """
    logf = log or _noop
    cfg = cfg if cfg is not None else config.load_config()
    project_dir = (project_dir or Path.cwd()).resolve()

    if not (project_dir / "package.json").is_file():
        raise LiftkitError(f"No package.json found in {project_dir}")

    logf(f"[blue]Adding component: {source}[/blue]")
    plan = asyncio.run(
        build_plan(
            source,
            registry_url=registry_url or cfg["registry_url"],
            schema_url=schema_url or cfg["schema_url"],
            http=http,
            timeout=float(cfg.get("timeout", DEFAULT_TIMEOUT)),
            log=logf,
        )
    )
    for warning in plan.warnings:
        logf(f"[yellow]Warning:[/yellow] {warning}")

    processor = RegistryProcessor(
        processor_options(
            cfg,
            project_dir,
            skip_conflicts=skip_conflicts,
            install_dependencies=install_dependencies,
        ),
        fs=fs,
        confirm=confirm,
        log=logf,
    )
    processor.initialize()
    return install_plan(plan, processor, logf)
