"""CLI entry point for Kontroler.

Provides the main `kontroler` command with global options and subcommands.
"""

from __future__ import annotations

import os
from typing import Annotated, Any

import typer
from kontroler_sdk import ClientConfig, Kontroler
from kontroler_sdk.config import resolve_config
from kontroler_sdk.logging import configure as configure_logging

from kontroler_cli import __version__
from kontroler_cli.config import load_config

app = typer.Typer(
    name="kontroler",
    help="Kontroler CLI - DAG workflows and pod logs from the command line.",
    no_args_is_help=True,
)


class State:
    """Global state container for CLI context.

    The client is created on first use so that ``--help`` on a subcommand
    never triggers a login.
    """

    config: dict[str, Any]
    verbose: bool = False

    def __init__(self) -> None:
        self.config = {}
        self._client: Kontroler | None = None

    def client_config(self) -> ClientConfig:
        return resolve_config(None, **self.config)

    @property
    def client(self) -> Kontroler:
        if self._client is None:
            self._client = Kontroler(config=self.client_config())
        return self._client


state = State()


def version_callback(value: bool) -> None:
    """Handle --version flag."""
    if value:
        print(f"kontroler {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    server: Annotated[
        str | None,
        typer.Option(
            "--server",
            "-s",
            help="API base URL (default: http://localhost:8080).",
        ),
    ] = None,
    username: Annotated[
        str | None,
        typer.Option("--username", "-u", help="Login username."),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-p", help="Login password."),
    ] = None,
    cookie_name: Annotated[
        str | None,
        typer.Option("--cookie-name", help="Name of the session cookie set at login."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-request timeout in seconds."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Debug logging to stderr.",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Kontroler CLI - DAG workflows and pod logs from the command line.

    Configuration can be provided via:

        - CLI options (--server, --username, --password, --cookie-name)
        - Environment variables (KONTROLER_URL, KONTROLER_USERNAME, ...)
        - Config file (~/.kontroler/config.yaml)

    Examples:

        # Submit a DAG definition
        kontroler dag create etl.yaml

        # Start a run and check on it
        kontroler run create etl --run-name etl-nightly
        kontroler run get 42

        # Follow a pod's log
        kontroler logs raw 42 etl-nightly-extract-7f9c
    """
    configure_logging(
        level="DEBUG" if verbose else None,
        log_format=os.environ.get("KONTROLER_LOG_FORMAT", "console"),
    )

    # Load config from file and environment
    config = load_config()

    # Apply CLI overrides
    overrides = {
        "url": server,
        "username": username,
        "password": password,
        "auth_cookie_name": cookie_name,
        "timeout": timeout,
    }
    config.update({k: v for k, v in overrides.items() if v is not None})

    state.config = config
    state.verbose = verbose


# Import and register commands after app is defined
from kontroler_cli.commands import dags, logs, runs, tasks  # noqa: E402

app.add_typer(dags.app, name="dag")
app.add_typer(runs.app, name="run")
app.add_typer(tasks.app, name="task")
app.add_typer(logs.app, name="logs")


def cli() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    cli()
