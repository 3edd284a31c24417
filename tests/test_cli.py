"""Tests for the caselink command line."""

import json

import pytest

from caselink.db import LinkDatabase
from caselink.main import app


@pytest.fixture
def seeded(seeded_db_path, monkeypatch):
    monkeypatch.setattr("caselink.state.DB_PATH", seeded_db_path)
    return seeded_db_path


@pytest.fixture
def no_db(tmp_path, monkeypatch):
    path = tmp_path / "nested" / "caselink.db"
    monkeypatch.setattr("caselink.state.DB_PATH", path)
    return path


class TestInit:
    def test_creates_database(self, runner, no_db):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert "Created database" in result.output
        assert no_db.exists()

    def test_rerun_is_safe(self, runner, seeded):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert "up to date" in result.output
        with LinkDatabase(seeded) as db:
            assert db.scalar("SELECT COUNT(*) FROM cases") == 4


class TestStats:
    def test_prints_counts(self, runner, seeded):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Total cases" in result.output
        assert "10-67-00456" in result.output

    def test_missing_database(self, runner, no_db):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not no_db.exists()


class TestGraph:
    def test_json_output(self, runner, seeded):
        result = runner.invoke(app, ["graph", "case", "10-67-00123", "--preset", "case", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["nodes"]) == 4
        assert data["stats"]["totalPersons"] == 2

    def test_overrides(self, runner, seeded):
        result = runner.invoke(
            app, ["graph", "person", "PER_1111111111111", "--levels", "1", "--json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["stats"]["depth"] == 1

    def test_tree_output(self, runner, seeded):
        result = runner.invoke(app, ["graph", "person", "1234567890123", "--preset", "person"])
        assert result.exit_code == 0
        assert "Somchai Jaidee" in result.output
        assert "10-67-00456" in result.output

    def test_unknown_root(self, runner, seeded):
        result = runner.invoke(app, ["graph", "case", "missing"])
        assert result.exit_code == 1
        assert "Case not found" in result.output

    def test_bad_root_type(self, runner, seeded):
        result = runner.invoke(app, ["graph", "vehicle", "X"])
        assert result.exit_code == 1

    def test_bad_preset(self, runner, seeded):
        result = runner.invoke(app, ["graph", "case", "10-67-00123", "--preset", "galaxy"])
        assert result.exit_code == 1
        assert "Unknown preset" in result.output


class TestImportCommands:
    def test_rebuild_links(self, runner, seeded):
        result = runner.invoke(app, ["rebuild-links"])
        assert result.exit_code == 0
        assert "Case links" in result.output
        with LinkDatabase(seeded) as db:
            assert db.scalar("SELECT COUNT(*) FROM case_links WHERE link_type = 'ID_NUMBER'") == 2

    def test_import_nddb(self, runner, seeded, monkeypatch):
        class StubClient:
            def __init__(self, base_url, site):
                self.site = site

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return None

            def case_list(self, from_date, to_date):
                return [{"CaseNumber": "10-67-05000"}]

            def case_details(self, case_number):
                return {"CaseNumber": case_number, "CaseType": "ลักทรัพย์",
                        "Samples": [{"ClientSampleNumber": "Z-1", "SampleSource": "Suspect"}]}

            def case_matches(self, case_number):
                return []

        monkeypatch.setattr("caselink.commands.imports.NddbClient", StubClient)
        result = runner.invoke(app, ["import-nddb", "2024-12-01", "2024-12-31", "--delay", "0"])
        assert result.exit_code == 0
        assert "Processed" in result.output
        with LinkDatabase(seeded) as db:
            assert db.scalar("SELECT COUNT(*) FROM cases") == 5
