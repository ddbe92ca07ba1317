# src/indexsync/cli.py
"""indexsync Command Line Interface.

Entry point for the indexsync CLI tool. Each document command loads the
settings file, logs in, performs one operation, and prints the response
payload as JSON on stdout.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from indexsync import __version__
from indexsync.clients import DocumentClient
from indexsync.contracts import ConfigurationError, Envelope, IndexSyncError
from indexsync.core.config import ClientSettings, load_settings, resolve_config

__all__ = ["app"]

app = typer.Typer(
    name="indexsync",
    help="indexsync: Resilient document sync against a remote indexing service.",
    no_args_is_help=True,
)

_SETTINGS_OPTION = typer.Option(
    "indexsync.yaml",
    "--settings",
    "-s",
    help="Path to settings YAML file.",
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"indexsync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    no_dotenv: bool = typer.Option(False, "--no-dotenv", help="Do not read a .env file."),
    env_file: Path | None = typer.Option(None, "--env-file", help="Read this .env file instead of searching for one."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Write logs to stderr as JSON lines."),
) -> None:
    """indexsync: Resilient document sync against a remote indexing service."""
    from dotenv import load_dotenv

    from indexsync.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if no_dotenv:
        return
    if env_file is None:
        # Values already in the environment take precedence
        load_dotenv(override=False)
    elif env_file.exists():
        load_dotenv(env_file, override=False)
    else:
        typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _load_config(settings: str) -> ClientSettings:
    """Load settings, converting every loading failure to ConfigurationError."""
    settings_path = Path(settings).expanduser()
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        raise ConfigurationError(f"YAML syntax error in {settings}: {e.problem}") from e
    except FileNotFoundError as e:
        raise ConfigurationError(f"Settings file not found: {settings}") from e
    except ValidationError as e:
        lines = ["Configuration errors:"]
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            lines.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError("\n".join(lines)) from e


def _parse_fields(raw: str) -> dict[str, Any]:
    try:
        fields = json.loads(raw)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: --fields is not valid JSON: {e}", err=True)
        raise typer.Exit(1) from None
    if not isinstance(fields, dict):
        typer.echo("Error: --fields must be a JSON object", err=True)
        raise typer.Exit(1)
    return fields


def _run(settings: str, action: Callable[[DocumentClient], Envelope | None]) -> None:
    """Load config, connect, run one action, and print its payload."""
    try:
        config = _load_config(settings)
        with DocumentClient.from_settings(config) as client:
            envelope = action(client)
    except IndexSyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if envelope is not None:
        typer.echo(json.dumps(envelope.data, indent=2, ensure_ascii=False))


@app.command()
def validate(settings: str = _SETTINGS_OPTION) -> None:
    """Validate the settings file without contacting the service."""
    try:
        config = _load_config(settings)
    except ConfigurationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from None

    typer.echo(json.dumps(resolve_config(config), indent=2))


@app.command()
def login(settings: str = _SETTINGS_OPTION) -> None:
    """Log in once to check credentials and connectivity."""

    def action(client: DocumentClient) -> None:
        typer.echo(f"Logged in to {client.session.login_url} as {client.session.username}")

    _run(settings, action)


@app.command()
def get(
    index: str = typer.Argument(..., help="Index name."),
    doc_type: str = typer.Argument(..., help="Document type."),
    doc_id: str = typer.Argument(..., help="Document id."),
    settings: str = _SETTINGS_OPTION,
) -> None:
    """Fetch a document and print its payload."""
    _run(settings, lambda client: client.get(index, doc_type, doc_id))


@app.command()
def create(
    index: str = typer.Argument(..., help="Index name."),
    doc_type: str = typer.Argument(..., help="Document type."),
    fields: str = typer.Option(..., "--fields", "-f", help="Document fields as a JSON object."),
    settings: str = _SETTINGS_OPTION,
) -> None:
    """Create a document; the service assigns its id."""
    body = _parse_fields(fields)
    _run(settings, lambda client: client.create(index, doc_type, body))


@app.command()
def update(
    index: str = typer.Argument(..., help="Index name."),
    doc_type: str = typer.Argument(..., help="Document type."),
    doc_id: str = typer.Argument(..., help="Document id."),
    fields: str = typer.Option(..., "--fields", "-f", help="Document fields as a JSON object."),
    settings: str = _SETTINGS_OPTION,
) -> None:
    """Create or replace the document with the given id."""
    body = _parse_fields(fields)
    _run(settings, lambda client: client.update(index, doc_type, doc_id, body))


@app.command()
def delete(
    index: str = typer.Argument(..., help="Index name."),
    doc_type: str = typer.Argument(..., help="Document type."),
    doc_id: str = typer.Argument(..., help="Document id."),
    settings: str = _SETTINGS_OPTION,
) -> None:
    """Delete a document."""
    _run(settings, lambda client: client.delete(index, doc_type, doc_id))


if __name__ == "__main__":
    app()
