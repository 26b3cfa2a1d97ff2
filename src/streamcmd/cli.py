from __future__ import annotations

from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigError, resolve_config_path
from .dispatch import command_pattern, parse_invocation
from .loader import build_registry
from .logging import setup_logging
from .settings import StreamCommandSettings, load_settings

_CONFIG_PATH_OPTION = typer.Option(
    None,
    "--config-path",
    help="Override the default config path.",
)


def _exit_config_error(exc: ConfigError, *, code: int = 2) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=code) from exc


def _load_or_exit(config_path: Path | None) -> StreamCommandSettings:
    try:
        settings, _ = load_settings(resolve_config_path(config_path))
    except ConfigError as exc:
        _exit_config_error(exc)
    setup_logging(debug=settings.debug, cache_logger_on_first_use=False)
    return settings


def _policy_label(rate_limit: int | None, rate_limit_reset: int | None) -> str:
    if rate_limit is None or rate_limit_reset is None:
        return "-"
    return f"{rate_limit} per {rate_limit_reset} min"


def commands_cmd(
    config_path: Path | None = _CONFIG_PATH_OPTION,
) -> None:
    """List configured commands and aliases."""
    settings = _load_or_exit(config_path)
    console = Console()
    table = Table(show_header=True, header_style="bold", box=box.SIMPLE)
    table.add_column("command")
    table.add_column("access")
    table.add_column("rate limit")
    table.add_column("handler")
    for slug in sorted(settings.commands):
        entry = settings.commands[slug]
        table.add_row(
            slug,
            "owner" if entry.private else "anyone",
            _policy_label(entry.rate_limit, entry.rate_limit_reset),
            entry.handler,
        )
    console.print(table)
    if settings.aliases:
        typer.echo("aliases:")
        for alias in sorted(settings.aliases):
            typer.echo(f"  {alias} -> {settings.aliases[alias]}")


def check_cmd(
    config_path: Path | None = _CONFIG_PATH_OPTION,
) -> None:
    """Import every handler and report aliases without a target command."""
    settings = _load_or_exit(config_path)
    try:
        registry = build_registry(settings)
    except ConfigError as exc:
        _exit_config_error(exc)
    missing = registry.unresolved_aliases()
    if missing:
        for alias in sorted(missing):
            typer.echo(
                f"unresolved alias: {alias} -> {missing[alias]}",
                err=True,
            )
        raise typer.Exit(code=1)
    typer.echo(
        f"ok: {len(registry.commands)} commands, {len(registry.aliases)} aliases"
    )


def parse_cmd(
    text: str = typer.Argument(..., help="Message body to parse."),
    operator: str = typer.Option(..., "--operator", help="Operator handle."),
) -> None:
    """Show the command and arguments extracted from a message body."""
    invocation = parse_invocation(command_pattern(operator), text)
    if invocation is None:
        typer.echo("no match", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"command: {invocation.command}")
    typer.echo(f"args: {' '.join(invocation.args)}")


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        no_args_is_help=True,
        help="Inspect streamcmd command configuration.",
    )
    app.command(name="commands")(commands_cmd)
    app.command(name="check")(check_cmd)
    app.command(name="parse")(parse_cmd)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
