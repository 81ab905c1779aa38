"""CLI entrypoint for resource filter tooling."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from resfilter.application import (
    BackupFilterAction,
    FilterSession,
    OperationRef,
    RestoreFilterAction,
    build_fetcher,
)
from resfilter.config import FilterConfig, load_config
from resfilter.domain.allowlist_parser import parse_allowlist
from resfilter.domain.models import (
    AllowList,
    AllowListFormat,
    ConfigLoadState,
    Decision,
    ResourceDescriptor,
)
from resfilter.domain.namespace_resolver import (
    ambiguous_destinations,
    resolve_original_namespace,
)
from resfilter.logger import configure_logging

app = typer.Typer(
    name="resfilter",
    help="Backup/restore resource allow-list filter",
    no_args_is_help=True,
    add_completion=False,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


class _LocalFetcher:
    """Serve an allow-list file in place of a ConfigMap."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def fetch(self, namespace: str, name: str) -> str:
        return self.path.read_text(encoding="utf-8")


def _resolve_version() -> str:
    """Return installed package version or local fallback."""
    try:
        return package_version("resfilter")
    except PackageNotFoundError:
        return "0.1.0"


def _load() -> FilterConfig:
    config = load_config()
    configure_logging(config.logging.level, config.logging.json_output)
    return config


@app.callback()
def callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
    ),
) -> None:
    """Handle global CLI options."""
    if version:
        console.print(f"resfilter {_resolve_version()}")
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        raise typer.Exit(code=0)


def _handle_error(exc: Exception) -> None:
    """Convert domain exceptions to CLI exit codes."""
    if isinstance(exc, ValueError):
        console.print(f"[red]ERROR:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if isinstance(exc, RuntimeError):
        console.print(f"[red]ERROR:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    raise exc


def _parse_mapping(pairs: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for pair in pairs:
        original, sep, destination = pair.partition("=")
        if not sep or not original.strip() or not destination.strip():
            raise ValueError(f"Invalid mapping {pair!r}, expected original=destination")
        mapping[original.strip()] = destination.strip()
    return mapping


def _session(
    config: FilterConfig,
    *,
    operation: str,
    restore: bool,
    file: Path | None,
) -> FilterSession:
    action = RestoreFilterAction(config) if restore else BackupFilterAction(config)
    config_name = action.config_name_for(
        OperationRef(name=operation, namespace=config.config_namespace)
    )
    fetcher = _LocalFetcher(file) if file else build_fetcher(config)
    return FilterSession(
        fetcher,
        namespace=config.config_namespace,
        config_name=config_name,
        fmt=config.format,
    )


def _rules_table(allow_list: AllowList) -> Table:
    table = Table(title="Allow-list", expand=True, box=box.SIMPLE_HEAVY)
    if allow_list.format is AllowListFormat.FLAT:
        table.add_column("key", overflow="fold")
        for key in sorted(allow_list.keys):
            table.add_row(key)
        return table
    for column in ("name", "namespace", "group", "version", "kind"):
        table.add_column(column, overflow="fold")
    for rule in sorted(allow_list.rules.values(), key=lambda r: r.name):
        table.add_row(rule.name, rule.namespace, rule.group, rule.version, rule.kind)
    return table


@app.command("check")
def check_command(
    name: str = typer.Option(..., "--name", help="Resource name."),
    kind: str = typer.Option(..., "--kind", "-k", help="Resource kind."),
    version: str = typer.Option("v1", "--api-version", help="API version."),
    group: str = typer.Option("", "--group", "-g", help="API group (empty = core)."),
    namespace: str = typer.Option("", "--namespace", "-n", help="Resource namespace."),
    operation: str = typer.Option(
        ..., "--operation", "-o", help="Backup or restore name."
    ),
    restore: bool = typer.Option(
        False, "--restore", help="Evaluate against the restore filter."
    ),
    mappings: list[str] = typer.Option(
        [],
        "--map",
        "-m",
        help="Restore namespace mapping original=destination (repeatable).",
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="Read allow-list from a local file instead of the cluster.",
    ),
) -> None:
    """Decide whether one resource would be included."""
    try:
        config = _load()
        session = _session(config, operation=operation, restore=restore, file=file)
        candidate = ResourceDescriptor(
            group=group, version=version, kind=kind, name=name, namespace=namespace
        )
        decision = session.decide(candidate, _parse_mapping(mappings) or None)
        if session.state is ConfigLoadState.NOT_FOUND:
            console.print(
                f"[yellow]No filter configmap {session.config_name}; "
                "all resources are kept.[/yellow]"
            )
        color = "green" if decision is Decision.KEEP else "red"
        console.print(
            f"[{color}]{decision.value.upper()}[/{color}] {candidate.flat_key()}"
        )
    except (ValueError, RuntimeError) as exc:  # pragma: no cover
        _handle_error(exc)


@app.command("rules")
def rules_command(
    operation: str | None = typer.Option(
        None,
        "--operation",
        "-o",
        help="Backup or restore name (required unless --file is given).",
    ),
    restore: bool = typer.Option(
        False, "--restore", help="Show the restore filter."
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="Read allow-list from a local file instead of the cluster.",
    ),
) -> None:
    """Print the parsed allow-list of an operation."""
    try:
        config = _load()
        if file:
            allow_list = parse_allowlist(file.read_text(encoding="utf-8"), config.format)
        else:
            if not operation:
                raise ValueError("--operation is required unless --file is given")
            session = _session(config, operation=operation, restore=restore, file=None)
            if session.ensure_loaded() is ConfigLoadState.NOT_FOUND:
                console.print(
                    f"[yellow]No filter configmap {session.config_name}.[/yellow]"
                )
                return
            allow_list = session.allow_list
        console.print(_rules_table(allow_list))
    except (ValueError, RuntimeError) as exc:  # pragma: no cover
        _handle_error(exc)


@app.command("resolve-namespace")
def resolve_namespace_command(
    namespace: str = typer.Argument(..., help="Current (restored) namespace."),
    mappings: list[str] = typer.Option(
        [],
        "--map",
        "-m",
        help="Namespace mapping original=destination (repeatable).",
    ),
) -> None:
    """Print the original namespace of a restored namespace."""
    try:
        mapping = _parse_mapping(mappings)
        for destination, originals in ambiguous_destinations(mapping).items():
            console.print(
                f"[yellow]WARNING:[/yellow] {destination} is targeted by "
                f"{', '.join(originals)}"
            )
        console.print(resolve_original_namespace(namespace, mapping))
    except (ValueError, RuntimeError) as exc:  # pragma: no cover
        _handle_error(exc)


def main() -> None:
    """Project entrypoint for `resfilter` script."""
    app()


if __name__ == "__main__":
    main()
