"""Main CLI application for gitlab-mr-refs."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from gitlab_mr_refs import __version__
from gitlab_mr_refs.cli import refs as refs_cmd
from gitlab_mr_refs.config import get_settings
from gitlab_mr_refs.logging import setup_logging

app = typer.Typer(
    name="glrefs",
    help="Export GitLab merge request references and recreate them as GitHub branches.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"glrefs version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """gitlab-mr-refs - Carry GitLab merge request heads over to GitHub."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.command("fetch-ref")(refs_cmd.fetch_ref)
app.command("create-refs")(refs_cmd.create_refs)
app.command("show")(refs_cmd.show)


if __name__ == "__main__":
    app()
