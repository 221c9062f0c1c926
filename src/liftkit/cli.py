"""CLI interface for liftkit."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from . import __version__, config
from .errors import LiftkitError, RegistryValidationError, UserCancelledError

_console = Console(highlight=False)


def _print(msg: str = "") -> None:
    """Print with Rich markup support."""
    _console.print(msg)


def _error(msg: str) -> None:
    _console.print(f"[red]{msg}[/red]")


def _registry_url(args, cfg) -> str:
    return args.registry or cfg["registry_url"]


def _schema_url(args, cfg) -> str:
    return args.schema or cfg["schema_url"]


def setup_logging(debug: bool) -> None:
    """Write DEBUG records to the debug log when debug mode is on."""
    if not debug:
        logging.getLogger("liftkit").setLevel(logging.WARNING)
        return
    log_path = config.get_debug_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("liftkit")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def cmd_add(args):
    """Add a component and its registry dependencies to the project."""
    from .add_service import add_component
    from .prompts import ConsoleConfirmation

    cfg = config.load_config()
    project_dir = Path(args.dir).resolve() if args.dir else Path.cwd().resolve()

    result = add_component(
        args.component,
        project_dir=project_dir,
        registry_url=_registry_url(args, cfg),
        schema_url=_schema_url(args, cfg),
        skip_conflicts=args.yes,
        install_dependencies=not args.no_install,
        confirm=ConsoleConfirmation(_console),
        cfg=cfg,
        log=_print,
    )

    _print(f"\n[green]✓ Successfully added component: {escape(result.name)}[/green]")
    _print(f"[dim]Files processed: {result.files_processed}[/dim]")
    if len(result.installed) > 1:
        _print(f"[dim]Items installed: {', '.join(result.installed)}[/dim]")
    all_deps = result.npm_dependencies + result.dev_dependencies
    if all_deps:
        verb = "installed" if not args.no_install else "required"
        _print(f"[dim]Dependencies {verb}: {escape(', '.join(all_deps))}[/dim]")
    if result.skipped:
        _print(f"[yellow]Skipped: {', '.join(result.skipped)}[/yellow]")


def cmd_list(args):
    """List the items published in the registry index."""
    from .fetcher import fetch_registry_index

    cfg = config.load_config()
    index = asyncio.run(fetch_registry_index(_registry_url(args, cfg)))
    if not index:
        print("Registry index is empty.")
        return

    by_type: dict[str, list[str]] = {}
    for name, entry in index.items():
        item_type = str(entry.get("type", "registry:file")).removeprefix("registry:")
        by_type.setdefault(item_type, []).append(name)

    for item_type in sorted(by_type):
        _print(f"\n[bold]{item_type}[/bold] ({len(by_type[item_type])})")
        for name in sorted(by_type[item_type]):
            _print(f"  {escape(name)}")


def cmd_tree(args):
    """Show the registry dependency tree and installation order of an item."""
    from . import graph
    from .client import RegistryClient

    cfg = config.load_config()

    async def _resolve():
        # Schema is not needed to walk the tree
        async with RegistryClient({}, _registry_url(args, cfg), timeout=float(cfg["timeout"])) as client:
            return await client.resolve(args.name)

    root = asyncio.run(_resolve())
    for line in graph.format_tree(root):
        _print(escape(line))

    order = graph.calculate_installation_order(root)
    _print("\n[bold]Installation order:[/bold]")
    for idx, item in enumerate(order, 1):
        _print(f"  {idx}. {escape(item.name)}")

    deps = graph.get_all_dependencies(root)
    if deps.npm_dependencies:
        _print(f"\n[bold]Packages:[/bold] {escape(', '.join(deps.npm_dependencies))}")


def cmd_validate(args):
    """Validate a registry item (URL, file or name) against the schema."""
    from .client import create_registry_client

    cfg = config.load_config()

    async def _validate():
        async with await create_registry_client(
            _schema_url(args, cfg), _registry_url(args, cfg), timeout=float(cfg["timeout"])
        ) as client:
            data = await client.load_source(args.source)
            return data, client.validate(data)

    data, result = asyncio.run(_validate())
    name = data.get("name", args.source)

    for warning in result.warnings:
        _print(f"[yellow]⚠ {escape(warning)}[/yellow]")
    if not result.is_valid:
        raise RegistryValidationError(str(name), result.errors, result.warnings)
    _print(f"[green]✓ {escape(str(name))} is valid[/green]")


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--registry", help="Registry base URL (default from config)")
    p.add_argument("--schema", help="Registry item schema URL (default from config)")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="liftkit",
        description="Install registry components into your project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"liftkit {__version__}")
    parser.add_argument("--debug", action="store_true", help="Write debug log")

    subparsers = parser.add_subparsers(dest="command")

    # add
    add_p = subparsers.add_parser("add", help="Add a component from the registry")
    add_p.add_argument("component", help="Component name, URL or local JSON file")
    add_p.add_argument("--dir", help="Project directory (default: cwd)")
    add_p.add_argument("-y", "--yes", action="store_true", help="Overwrite changed files without asking")
    add_p.add_argument("--no-install", action="store_true", help="Skip package installation")
    _add_source_args(add_p)
    add_p.set_defaults(func=cmd_add)

    # list
    list_p = subparsers.add_parser("list", help="List registry components")
    list_p.add_argument("--registry", help="Registry base URL (default from config)")
    list_p.set_defaults(func=cmd_list)

    # tree
    tree_p = subparsers.add_parser("tree", help="Show dependency tree and install order")
    tree_p.add_argument("name", help="Component name")
    tree_p.add_argument("--registry", help="Registry base URL (default from config)")
    tree_p.set_defaults(func=cmd_tree)

    # validate
    validate_p = subparsers.add_parser("validate", help="Validate a registry item")
    validate_p.add_argument("source", help="Component name, URL or local JSON file")
    _add_source_args(validate_p)
    validate_p.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug or config.is_debug_enabled())

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        args.func(args)
    except UserCancelledError:
        _print("\n[yellow]Cancelled.[/yellow] No files were changed for the current item.")
        sys.exit(1)
    except RegistryValidationError as e:
        _error("❌ Invalid registry item:")
        for err in e.errors:
            _error(f"  - {escape(err)}")
        if e.warnings:
            _print("[yellow]⚠️ Warnings:[/yellow]")
            for warning in e.warnings:
                _print(f"[yellow]  - {escape(warning)}[/yellow]")
        sys.exit(1)
    except LiftkitError as e:
        _error(f"Error: {escape(str(e))}")
        output = getattr(e, "output", "")
        if output:
            _print(f"[dim]{escape(output)}[/dim]")
        logging.getLogger(__name__).debug("command failed", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
