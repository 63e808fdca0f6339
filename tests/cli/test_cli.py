"""Tests for typedsql.cli: command smoke tests via CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from typedsql import __version__
from typedsql.cli.app import app

runner = CliRunner()


class TestRoot:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "ddl" in result.output
        assert "demo" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"typedsql {__version__}"


# ─── ddl ─────────────────────────────────────────────────────────────────


class TestDdlCommand:
    def test_sqlite(self):
        result = runner.invoke(app, ["ddl"])
        assert result.exit_code == 0
        assert 'CREATE TABLE "film_actor"' in result.output
        assert "AUTOINCREMENT" in result.output
        assert result.output.count("CREATE TABLE") == 6

    def test_postgresql(self):
        result = runner.invoke(app, ["ddl", "--dialect", "postgresql"])
        assert result.exit_code == 0
        assert "SERIAL PRIMARY KEY" in result.output
        assert "AUTOINCREMENT" not in result.output

    def test_unknown_dialect(self):
        result = runner.invoke(app, ["ddl", "--dialect", "oracle"])
        assert result.exit_code == 1
        assert "oracle" in result.output

    def test_schema_file(self, tmp_path: Path):
        path = tmp_path / "schema.yaml"
        path.write_text(
            "tables:\n"
            "  - name: note\n"
            "    columns:\n"
            "      - {name: note_id, type: int, nullable: false, primary_key: true}\n"
            "      - {name: body, type: text}\n"
        )
        result = runner.invoke(app, ["ddl", "--schema", str(path)])
        assert result.exit_code == 0, result.output
        assert 'CREATE TABLE "note"' in result.output
        assert "film" not in result.output

    def test_missing_schema_file(self, tmp_path: Path):
        result = runner.invoke(app, ["ddl", "--schema", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Error (SCHEMA)" in result.output


# ─── demo ────────────────────────────────────────────────────────────────


class TestDemoCommand:
    def test_table_output(self):
        result = runner.invoke(app, ["demo"])
        assert result.exit_code == 0, result.output
        assert "4 rows (explicit joins), 4 rows (implicit joins)" in result.output
        assert "Same rows in the same order: True" in result.output
        assert "Horror actors" in result.output
        assert "WAHLBERG" in result.output

    def test_json_output(self):
        result = runner.invoke(app, ["demo", "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["explicit_rows"] == 4
        assert payload["same_rows"] is True
        assert payload["horror_actors"][0] == {"first_name": "ED", "last_name": "CHASE"}
        assert payload["actors"][4] == {
            "first_name": "JOHNNY",
            "last_name": "LOLLOBRIGIDA",
            "films": [],
        }
        assert [f["name"] for f in payload["actors"][0]["films"]] == [
            "ACADEMY DINOSAUR",
            "AFFAIR PREJUDICE",
        ]

    def test_database_file(self, file_db: Path):
        result = runner.invoke(app, ["demo", "--json", "-d", str(file_db)])
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)["horror_actors"]) == 4

    def test_database_without_schema(self, tmp_path: Path):
        result = runner.invoke(app, ["demo", "-d", str(tmp_path / "empty.db")])
        assert result.exit_code == 1
        assert "Error (DATABASE)" in result.output
