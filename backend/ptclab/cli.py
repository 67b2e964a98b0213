"""Maintenance commands for the local lab database."""

# purpose: let administrators migrate, seed, inspect, back up and script the database
# status: active
# depends_on: ptclab.state, ptclab.migrations, ptclab.commands

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from . import backups
from .config import Settings, get_settings
from .database import create_db_engine
from .errors import PTCLabError
from .migrations import current_version, migrate_engine
from .migrations.versions import LATEST_VERSION
from .seed import seed_defaults
from .state import AppState, bootstrap

app = typer.Typer(help="Plant tissue culture lab database maintenance")


def _settings() -> Settings:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _open(settings: Settings) -> AppState:
    """Engine over the configured file without running startup steps."""
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(settings.db_path, settings.busy_timeout_ms)
    return AppState(engine, settings, settings.db_path)


def _fail(exc: Exception) -> None:
    typer.echo(str(exc), err=True)
    raise typer.Exit(code=1)


@app.command("migrate")
def migrate_command() -> None:
    """Apply pending schema migrations."""
    state = _open(_settings())
    try:
        version = migrate_engine(state.engine)
    except PTCLabError as exc:
        _fail(exc)
    finally:
        state.close()
    typer.echo(json.dumps({"db_path": str(state.db_path), "schema_version": version}))


@app.command("seed")
def seed_command() -> None:
    """Migrate, then insert default records into empty tables."""
    state = _open(_settings())
    try:
        version = migrate_engine(state.engine)
        with state.session() as db:
            added = seed_defaults(db)
    except PTCLabError as exc:
        _fail(exc)
    finally:
        state.close()
    typer.echo(json.dumps({"schema_version": version, "added": added}))


@app.command("status")
def status_command() -> None:
    """Show where the database lives and which schema version it holds."""
    settings = _settings()
    exists = settings.db_path.exists()
    version = 0
    if exists:
        state = _open(settings)
        try:
            with state.engine.connect() as connection:
                version = current_version(connection)
        finally:
            state.close()
    typer.echo(
        json.dumps(
            {
                "db_path": str(settings.db_path),
                "exists": exists,
                "schema_version": version,
                "latest_version": LATEST_VERSION,
            }
        )
    )


@app.command("backup")
def backup_command(
    dest: str = typer.Option(None, "--dest", help="Target file or directory"),
) -> None:
    """Checkpoint and copy the database file."""
    settings = _settings()
    try:
        state = bootstrap(settings)
    except PTCLabError as exc:
        _fail(exc)
    try:
        info = backups.create_backup(state.engine, state.db_path, settings.backup_dir, dest)
    except PTCLabError as exc:
        _fail(exc)
    finally:
        state.close()
    typer.echo(info.model_dump_json())


@app.command("invoke")
def invoke_command(
    command_name: str = typer.Argument(..., metavar="COMMAND"),
    token: str = typer.Option(None, "--token", help="Session token"),
    payload: str = typer.Option("{}", "--payload", help="JSON object of arguments"),
) -> None:
    """Run one command handler and print its JSON envelope."""
    from .commands import invoke

    try:
        arguments = json.loads(payload)
    except ValueError as exc:
        raise typer.BadParameter(f"payload is not valid JSON: {exc}")
    if not isinstance(arguments, dict):
        raise typer.BadParameter("payload must be a JSON object")

    settings = _settings()
    try:
        state = bootstrap(settings)
    except PTCLabError as exc:
        _fail(exc)
    try:
        result = invoke(state, command_name, token, **arguments)
    finally:
        state.close()
    typer.echo(json.dumps(result))
    if not result["ok"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
