from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from result import Err, Ok

from fetchit.common import create_logger, setup_cli_logging
from fetchit.fetcher import (
    BaseFetchitError,
    FetchCancelledError,
    FetchError,
    InvalidSourceError,
    Resolution,
    UnsupportedSourceError,
    create_default_fetcher,
)
from fetchit.settings import get_settings

logger = create_logger("cli")

OrgOption = Annotated[
    str | None,
    typer.Option(
        "--org",
        help="Default GitHub organisation for bare repository names (env: FETCHIT_GITHUB_ORG)",
    ),
]

app = typer.Typer(
    help="Fetch directories, tarballs, zips and git repositories into a destination directory.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def _root_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colored output")] = False,
) -> None:
    # Respect NO_COLOR environment variable and --no-color flag
    if no_color or os.getenv("NO_COLOR"):
        ctx.color = False

    _setup_logging(verbose)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("get")
def get(
    source: Annotated[str, typer.Argument(help="Source: owner/repo, URL, archive URL or local directory")],
    destination: Annotated[Path, typer.Argument(help="Directory to unpack into")],
    org: OrgOption = None,
) -> None:
    """Fetch a source and unpack it into a destination directory.

    Examples:

        # Clone a GitHub repository at a tag
        fetchit get alecthomas/chroma?ref=v2.14.0 ./chroma

        # Unpack a tarball
        fetchit get https://example.com/release.tar.gz ./release

        # Copy a local directory
        fetchit get ../templates ./templates
    """
    fetcher = create_default_fetcher(get_settings(), org=org)

    match fetcher.fetch(source, destination):
        case Ok(path):
            typer.secho(f"✓ Fetched {source} into {path}", fg=typer.colors.GREEN)
        case Err(error):
            _handle_error(error)
            raise typer.Exit(code=1)


@app.command("resolve")
def resolve(
    source: Annotated[str, typer.Argument(help="Source to resolve")],
    org: OrgOption = None,
) -> None:
    """Show which resolver a source maps to without fetching it.

    Examples:

        fetchit resolve owner/repo?ref=main
    """
    fetcher = create_default_fetcher(get_settings(), org=org)

    match fetcher.resolve(source):
        case Ok(Resolution(resolver=resolver, source=resolved)):
            typer.echo(f"Resolver: {type(resolver).__name__}")
            typer.echo(f"URL: {resolved.geturl()}")
            if resolved.subdir:
                typer.echo(f"Subdir: {resolved.subdir}")
        case Err(error):
            _handle_error(error)
            raise typer.Exit(code=1)


def _handle_error(error: BaseFetchitError) -> None:
    """Handle fetch errors with user-friendly messages."""
    match error:
        case InvalidSourceError(message=message):
            typer.secho(f"error: {message}", err=True, fg=typer.colors.RED)
        case UnsupportedSourceError(url=url):
            typer.secho(f"error: unsupported source '{url}'", err=True, fg=typer.colors.RED)
            typer.secho("hint: valid formats are:", err=True, fg=typer.colors.CYAN)
            typer.secho("  - owner/repo[?ref=<ref>] (GitHub)", err=True)
            typer.secho("  - git+ssh://host/path/repo, https://github.com/owner/repo (Git)", err=True)
            typer.secho("  - https://host/archive.tar.gz, https://host/archive.zip (archives)", err=True)
            typer.secho("  - ./path/to/dir (local directory)", err=True)
        case FetchCancelledError(source=source):
            typer.secho(f"error: fetching '{source}' was cancelled", err=True, fg=typer.colors.RED)
        case FetchError(source=source, message=message):
            typer.secho(f"error: failed to fetch '{source}'", err=True, fg=typer.colors.RED)
            typer.secho(f"  {message}", err=True)
            typer.secho("hint: verify the source is accessible", err=True, fg=typer.colors.CYAN)
        case _:  # pragma: no cover - fallback for unexpected subclasses
            typer.secho(f"error: {error.message}", err=True, fg=typer.colors.RED)


def _setup_logging(verbose: bool) -> None:
    settings = get_settings()
    logging_config = settings.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"enabled": True, "log_level": "DEBUG"})

    if logging_config.enabled:
        setup_cli_logging(app_info=settings.app, config=logging_config)
        logger.debug("CLI logging initialized", config=logging_config.model_dump())


def main() -> None:
    """Entrypoint for the fetchit CLI."""
    app()
