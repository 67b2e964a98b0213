import json

import pytest
from typer.testing import CliRunner

from ptclab.cli import app
from ptclab.migrations.versions import LATEST_VERSION

runner = CliRunner()


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    path = tmp_path / "cli-data"
    monkeypatch.setenv("PTCLAB_DATA_DIR", str(path))
    monkeypatch.setenv("PTCLAB_LOG_LEVEL", "WARNING")
    return path


def last_json(result):
    return json.loads(result.stdout.strip().splitlines()[-1])


def test_status_before_and_after_migrate(data_dir):
    before = runner.invoke(app, ["status"])
    assert before.exit_code == 0
    assert last_json(before) == {
        "db_path": str(data_dir / "ptclab.db"),
        "exists": False,
        "schema_version": 0,
        "latest_version": LATEST_VERSION,
    }

    migrated = runner.invoke(app, ["migrate"])
    assert migrated.exit_code == 0
    assert last_json(migrated)["schema_version"] == LATEST_VERSION

    after = last_json(runner.invoke(app, ["status"]))
    assert after["exists"] is True
    assert after["schema_version"] == LATEST_VERSION


def test_seed_only_fills_empty_tables():
    first = last_json(runner.invoke(app, ["seed"]))
    assert first["added"]["users"] == 1
    assert first["added"]["species"] > 0
    second = last_json(runner.invoke(app, ["seed"]))
    assert second["added"] == {"users": 0, "species": 0, "tags": 0}


def test_invoke_runs_commands_through_the_envelope():
    login = runner.invoke(
        app, ["invoke", "login", "--payload", json.dumps({"username": "admin", "password": "admin"})]
    )
    assert login.exit_code == 0
    token = last_json(login)["data"]["token"]

    species = runner.invoke(app, ["invoke", "list_species", "--token", token])
    assert species.exit_code == 0
    assert len(last_json(species)["data"]) > 0

    denied = runner.invoke(app, ["invoke", "list_species"])
    assert denied.exit_code == 1
    assert last_json(denied)["kind"] == "session_invalid"


def test_invoke_rejects_non_object_payload():
    result = runner.invoke(app, ["invoke", "login", "--payload", "[1, 2]"])
    assert result.exit_code != 0


def test_backup_command(data_dir):
    result = runner.invoke(app, ["backup"])
    assert result.exit_code == 0
    info = last_json(result)
    assert info["file_name"].startswith("ptclab_backup_")
    assert info["path"].startswith(str(data_dir / "backups"))


def test_invoke_passes_name_fields_through():
    login = runner.invoke(
        app, ["invoke", "login", "--payload", json.dumps({"username": "admin", "password": "admin"})]
    )
    token = last_json(login)["data"]["token"]
    payload = {"name": "Sucrose", "category": "media_ingredient", "unit": "g", "current_stock": 500}
    created = runner.invoke(
        app, ["invoke", "create_inventory_item", "--token", token, "--payload", json.dumps(payload)]
    )
    assert created.exit_code == 0
    assert last_json(created)["data"]["name"] == "Sucrose"
