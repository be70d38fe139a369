import csv
import io

import pytest
from typer.testing import CliRunner

from rahunu.cli import main as cli_main
from rahunu.main import MODEL_MODULES

runner = CliRunner()


@pytest.fixture(autouse=True)
def initialize_test_db():
    """Replaces the shared in-memory database; each command opens and closes its own."""
    yield


@pytest.fixture
def cli_database(tmp_path, monkeypatch):
    """Points the CLI at a throwaway SQLite file."""
    monkeypatch.setattr(
        cli_main,
        "TORTOISE_ORM_CONFIG",
        {
            "connections": {"default": f"sqlite://{tmp_path / 'cli.sqlite3'}"},
            "apps": {"models": {"models": MODEL_MODULES, "default_connection": "default"}},
        },
    )
    return tmp_path


def test_seed_then_export_summary_csv(cli_database):
    result = runner.invoke(cli_main.app, ["entries", "seed"])
    assert result.exit_code == 0, result.output
    assert "Seeded Entry #1" in result.output

    again = runner.invoke(cli_main.app, ["entries", "seed"])
    assert again.exit_code == 0
    assert "already exists" in again.output

    out_dir = cli_database / "reports"
    result = runner.invoke(
        cli_main.app,
        ["reports", "export", "--type", "SUMMARY", "--format", "CSV", "--island", "S.Hithadhoo", "--output", str(out_dir)],
    )
    assert result.exit_code == 0, result.output

    files = list(out_dir.glob("rahunu-summary-*.csv"))
    assert len(files) == 1
    rows = list(csv.reader(io.StringIO(files[0].read_text(encoding="utf-8"), newline="")))
    assert rows[0] == ["Status", "Agreements", "Total Amount", "Share"]
    assert rows[1] == ["ONGOING", "1", "MVR 700,000.00", "100.0%"]


def test_set_role_for_unknown_user_fails(cli_database):
    result = runner.invoke(cli_main.app, ["users", "set-role", "nobody", "ADMIN"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_create_admin_then_reset_password(cli_database):
    result = runner.invoke(
        cli_main.app,
        ["users", "create-admin", "--username", "root", "--email", "root@example.com", "--password", "longenough"],
    )
    assert result.exit_code == 0, result.output
    assert "Admin user 'root' created" in result.output

    result = runner.invoke(cli_main.app, ["users", "reset-password", "root", "--password", "short"])
    assert result.exit_code == 1
    assert "at least 8 characters" in result.output

    result = runner.invoke(cli_main.app, ["users", "reset-password", "root", "--password", "another-long-one"])
    assert result.exit_code == 0, result.output
    assert "has been reset" in result.output

    result = runner.invoke(cli_main.app, ["users", "set-role", "root", "VIEWER"])
    assert result.exit_code == 0, result.output
    assert "now has role VIEWER" in result.output
