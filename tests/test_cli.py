"""Tests for the command-line interface."""

import json

import pytest

from relayplanner.cli import create_sample_jobs, main

NOW = "2024-01-15T10:00:00Z"


@pytest.fixture
def jobs_file(tmp_path):
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps([
        {"id": "j1", "status": "accepted", "distance_mi": 70, "title": "City Motors"},
        {"id": "j2", "status": "delivered", "distance_mi": 20},
        {"id": "j3", "status": "in_transit", "distance_mi": 35, "company": "Oxford EV"},
    ]))
    return path


class TestSampleJobs:
    """Tests for the demo jobs."""

    def test_four_active_jobs(self):
        jobs = create_sample_jobs()

        assert len(jobs) == 4
        assert all(job.is_active for job in jobs)
        assert len({job.id for job in jobs}) == 4


class TestDemo:
    """Tests for the demo command."""

    def test_demo_prints_week(self, capsys):
        assert main(["demo", "--now", NOW]) == 0

        out = capsys.readouterr().out
        assert "WEEK OF 2024-01-15" in out
        assert "Total entries: 4" in out
        assert "Conflicting entries: 0" in out
        assert "Validation: PASSED" in out

    def test_demo_writes_calendar(self, tmp_path, capsys):
        path = tmp_path / "demo.ics"
        assert main(["demo", "--now", NOW, "--ics", str(path)]) == 0

        assert path.read_bytes().count(b"BEGIN:VEVENT") == 4

    def test_demo_with_hybrid_solver(self, capsys):
        assert main(["demo", "--now", NOW, "--solver", "hybrid"]) == 0
        assert "Total entries: 4" in capsys.readouterr().out


class TestStoreCommands:
    """Tests for auto, show and export against a local store."""

    def test_auto_then_show(self, tmp_path, jobs_file, capsys):
        store = str(tmp_path / "store")
        assert main([
            "auto", "--store", store, "--owner", "d1",
            "--jobs", str(jobs_file), "--now", NOW,
        ]) == 0
        out = capsys.readouterr().out
        assert "Scheduled 2 new jobs" in out
        assert "Saved locally" in out

        assert main([
            "show", "--store", store, "--owner", "d1",
            "--jobs", str(jobs_file), "--week", "2024-01-17",
        ]) == 0
        out = capsys.readouterr().out
        assert "Total entries: 2" in out
        assert "City Motors" in out

    def test_auto_with_database(self, tmp_path, jobs_file, capsys):
        database = f"sqlite:///{tmp_path / 'planner.db'}"
        assert main([
            "auto", "--database", database, "--store", str(tmp_path),
            "--owner", "d1", "--jobs", str(jobs_file), "--now", NOW,
        ]) == 0
        assert "Saved to cloud" in capsys.readouterr().out

    def test_export(self, tmp_path, jobs_file, capsys):
        store = str(tmp_path / "store")
        main(["auto", "--store", store, "--owner", "d1", "--jobs", str(jobs_file), "--now", NOW])
        output = tmp_path / "week.ics"

        assert main([
            "export", "--store", store, "--owner", "d1", "--jobs", str(jobs_file),
            "--output", str(output), "--week", "2024-01-15",
        ]) == 0
        content = output.read_bytes()
        assert content.count(b"BEGIN:VEVENT") == 2
        assert b"SUMMARY:Oxford EV" in content

    def test_store_required(self, capsys):
        assert main(["show", "--owner", "d1"]) == 2
        assert "--store or --database" in capsys.readouterr().err

    def test_missing_jobs_file(self, tmp_path, capsys):
        assert main([
            "show", "--store", str(tmp_path), "--owner", "d1",
            "--jobs", str(tmp_path / "missing.json"),
        ]) == 2
        assert "missing.json" in capsys.readouterr().err

    def test_invalid_database_url(self, capsys):
        assert main(["show", "--database", "not a database url", "--owner", "d1"]) == 1
        assert "Invalid database URL" in capsys.readouterr().err

    def test_invalid_database_url_uses_local_store(self, tmp_path, jobs_file, capsys):
        assert main([
            "auto", "--database", "not a database url", "--store", str(tmp_path),
            "--owner", "d1", "--jobs", str(jobs_file), "--now", NOW,
        ]) == 0
        assert "Saved locally" in capsys.readouterr().out


class TestNoCommand:
    def test_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out
