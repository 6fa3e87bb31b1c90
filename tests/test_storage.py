"""Tests for schedule persistence."""

import json
from datetime import datetime, timezone

import pytest

from relayplanner.domain.models import Job, ScheduleEntry
from relayplanner.planner import Planner
from relayplanner.storage.base import (
    FallbackScheduleRepository,
    RepositoryError,
    ScheduleRepository,
    StoreKind,
)
from relayplanner.storage.local_store import LocalScheduleRepository
from relayplanner.storage.sql_store import SqlScheduleRepository


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FailingRepository(ScheduleRepository):
    """A store that is always unreachable."""

    def load(self, owner_id):
        raise RepositoryError("offline")

    def save(self, owner_id, entries):
        raise RepositoryError("offline")


@pytest.fixture
def entries():
    return [
        ScheduleEntry("j1", utc(2024, 1, 15, 11), utc(2024, 1, 15, 14)),
        ScheduleEntry("j2", utc(2024, 1, 15, 14), utc(2024, 1, 15, 16), "gate code 42"),
    ]


class TestSqlScheduleRepository:
    """Tests for the SQLAlchemy store."""

    @pytest.fixture
    def repo(self):
        repo = SqlScheduleRepository("sqlite://")
        repo.create_schema()
        return repo

    def test_save_and_load(self, repo, entries):
        result = repo.save("d1", entries)

        assert result.store == StoreKind.CLOUD
        assert result.message == "Saved to cloud"
        assert result.entry_count == 2
        assert repo.load("d1") == entries

    def test_loaded_timestamps_are_utc(self, repo, entries):
        repo.save("d1", entries)
        loaded = repo.load("d1")
        assert loaded[0].start_at.tzinfo == timezone.utc

    def test_upsert_replaces_times(self, repo, entries):
        repo.save("d1", entries)
        moved = ScheduleEntry("j1", utc(2024, 1, 16, 9), utc(2024, 1, 16, 12))
        repo.save("d1", [moved, entries[1]])

        assert repo.load("d1") == [entries[1], moved]

    def test_removed_jobs_are_deleted(self, repo, entries):
        repo.save("d1", entries)
        repo.save("d1", entries[1:])
        assert [e.job_id for e in repo.load("d1")] == ["j2"]

    def test_two_entries_for_a_job_rejected(self, repo, entries):
        """The table keeps one row per job, so a second entry is not dropped silently."""
        repo.save("d1", entries)
        first = ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 10))
        second = ScheduleEntry("j1", utc(2024, 1, 15, 13), utc(2024, 1, 15, 14))

        with pytest.raises(RepositoryError, match="j1"):
            repo.save("d1", [first, second])
        assert repo.load("d1") == entries

    def test_invalid_url_raises_repository_error(self):
        with pytest.raises(RepositoryError):
            SqlScheduleRepository("not a database url")

    def test_owners_are_isolated(self, repo, entries):
        repo.save("d1", entries)
        repo.save("d2", entries[:1])

        assert len(repo.load("d1")) == 2
        assert len(repo.load("d2")) == 1
        assert repo.load("nobody") == []

    def test_load_ordered_by_start(self, repo, entries):
        repo.save("d1", list(reversed(entries)))
        assert [e.job_id for e in repo.load("d1")] == ["j1", "j2"]

    def test_missing_table_raises_repository_error(self):
        repo = SqlScheduleRepository("sqlite://")
        with pytest.raises(RepositoryError):
            repo.load("d1")


class TestLocalScheduleRepository:
    """Tests for the JSON file store."""

    @pytest.fixture
    def repo(self, tmp_path):
        return LocalScheduleRepository(tmp_path / "store")

    def test_save_and_load(self, repo, entries):
        result = repo.save("d1", entries)

        assert result.store == StoreKind.LOCAL
        assert result.message == "Saved locally"
        assert repo.load("d1") == entries

    def test_key_naming(self, repo, entries):
        repo.save("d1", entries)

        assert repo.key_for("d1") == "mr_schedule_d1"
        assert repo.path_for("d1").name == "mr_schedule_d1.json"
        assert repo.path_for("d1").exists()

    def test_stored_format(self, repo, entries):
        repo.save("d1", entries)
        raw = json.loads(repo.path_for("d1").read_text())

        assert raw[1] == {
            "job_id": "j2",
            "start_at": "2024-01-15T14:00:00+00:00",
            "end_at": "2024-01-15T16:00:00+00:00",
            "note": "gate code 42",
        }

    def test_missing_key_loads_empty(self, repo):
        assert repo.load("d1") == []

    def test_corrupt_file_raises(self, repo):
        repo.directory.mkdir(parents=True)
        repo.path_for("d1").write_text("{not json")
        with pytest.raises(RepositoryError):
            repo.load("d1")

    def test_malformed_entry_raises(self, repo):
        repo.directory.mkdir(parents=True)
        repo.path_for("d1").write_text('[{"job_id": "j1"}]')
        with pytest.raises(RepositoryError):
            repo.load("d1")

    def test_corrupt_file_survives_planner_session(self, repo):
        """A failed load stops the session before a save can overwrite the file."""
        repo.directory.mkdir(parents=True)
        damaged = '[{"job_id": "keep", "start_at": "2024-01-15T09:00:00Z", TRUNCATED'
        repo.path_for("d1").write_text(damaged)
        planner = Planner("d1", jobs=[Job("new")], repository=repo)

        with pytest.raises(RepositoryError):
            planner.load()
        assert repo.path_for("d1").read_text() == damaged

    def test_accepts_z_suffix(self, repo):
        repo.directory.mkdir(parents=True)
        repo.path_for("d1").write_text(
            '[{"job_id": "j1", "start_at": "2024-01-15T09:00:00Z",'
            ' "end_at": "2024-01-15T10:00:00Z"}]'
        )
        [entry] = repo.load("d1")
        assert entry.start_at == utc(2024, 1, 15, 9)
        assert entry.note is None

    def test_unwritable_store_raises(self, tmp_path, entries):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        repo = LocalScheduleRepository(blocker)

        with pytest.raises(RepositoryError):
            repo.save("d1", entries)


class TestFallbackScheduleRepository:
    """Tests for the cloud-then-local policy."""

    @pytest.fixture
    def local(self, tmp_path):
        return LocalScheduleRepository(tmp_path)

    @pytest.fixture
    def cloud(self):
        repo = SqlScheduleRepository("sqlite://")
        repo.create_schema()
        return repo

    def test_saves_to_primary(self, cloud, local, entries):
        repo = FallbackScheduleRepository(cloud, local)
        result = repo.save("d1", entries)

        assert result.message == "Saved to cloud"
        assert result.fallback_reason is None
        assert local.load("d1") == []

    def test_saves_locally_when_primary_fails(self, local, entries):
        repo = FallbackScheduleRepository(FailingRepository(), local)
        result = repo.save("d1", entries)

        assert result.store == StoreKind.LOCAL
        assert result.message == "Saved locally"
        assert result.fallback_reason == "offline"
        assert local.load("d1") == entries

    def test_loads_from_fallback_when_primary_fails(self, local, entries):
        local.save("d1", entries)
        repo = FallbackScheduleRepository(FailingRepository(), local)
        assert repo.load("d1") == entries

    def test_loads_from_fallback_when_primary_empty(self, cloud, local, entries):
        local.save("d1", entries)
        repo = FallbackScheduleRepository(cloud, local)
        assert repo.load("d1") == entries

    def test_primary_wins_when_it_has_entries(self, cloud, local, entries):
        cloud.save("d1", entries[:1])
        local.save("d1", entries)
        repo = FallbackScheduleRepository(cloud, local)
        assert repo.load("d1") == entries[:1]

    def test_fallback_failure_propagates(self, entries):
        repo = FallbackScheduleRepository(FailingRepository(), FailingRepository())
        with pytest.raises(RepositoryError):
            repo.save("d1", entries)

    def test_duplicate_entries_fall_back_to_local(self, cloud, local):
        """Two manual entries for one job end up in the store that keeps both."""
        planner = Planner(
            "d1",
            jobs=[Job("j1")],
            repository=FallbackScheduleRepository(cloud, local),
            clock=lambda: utc(2024, 1, 15, 8),
        )
        planner.add_manual("j1")
        planner.add_manual("j1", utc(2024, 1, 16).date())
        result = planner.save()

        assert result.message == "Saved locally"
        assert "j1" in result.fallback_reason
        assert len(local.load("d1")) == 2
