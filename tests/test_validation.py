"""Tests for schedule entry validation."""

from datetime import datetime, timezone

import pytest

from relayplanner.domain.models import ScheduleEntry
from relayplanner.validation.validator import EntryValidator, ValidationErrorType


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def error_types(result) -> list[ValidationErrorType]:
    return [e.error_type for e in result.errors]


class TestEntryValidator:
    """Tests for EntryValidator."""

    @pytest.fixture
    def validator(self):
        return EntryValidator()

    def test_valid_entries(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 11)),
            ScheduleEntry("j2", utc(2024, 1, 15, 11), utc(2024, 1, 15, 14)),
        ])

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_empty_is_valid(self, validator):
        assert validator.validate([]).is_valid

    def test_inverted_interval(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 13), utc(2024, 1, 15, 11)),
        ])

        assert not result.is_valid
        assert error_types(result) == [ValidationErrorType.INVERTED_INTERVAL]
        assert result.errors[0].job_id == "j1"

    def test_zero_length_is_inverted(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 9)),
        ])
        assert error_types(result) == [ValidationErrorType.INVERTED_INTERVAL]

    def test_duplicate_job(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 10)),
            ScheduleEntry("j1", utc(2024, 1, 16, 9), utc(2024, 1, 16, 10)),
        ])

        assert error_types(result) == [ValidationErrorType.DUPLICATE_JOB]
        assert result.errors[0].details == {"count": 2}

    def test_before_grid_hours(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 7), utc(2024, 1, 15, 9)),
        ])
        assert error_types(result) == [ValidationErrorType.OUTSIDE_GRID]

    def test_after_grid_hours(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 19), utc(2024, 1, 15, 21)),
        ])
        assert error_types(result) == [ValidationErrorType.OUTSIDE_GRID]

    def test_ending_at_grid_end_is_valid(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 18), utc(2024, 1, 15, 20)),
        ])
        assert result.is_valid

    def test_past_midnight(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 19), utc(2024, 1, 16, 1)),
        ])

        assert error_types(result) == [ValidationErrorType.OUTSIDE_GRID]
        assert "midnight" in result.errors[0].message

    def test_overlap_is_a_warning(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 11)),
            ScheduleEntry("j2", utc(2024, 1, 15, 10), utc(2024, 1, 15, 12)),
        ])

        assert result.is_valid
        assert result.warnings == ["Jobs j1 and j2 overlap"]

    def test_error_string(self, validator):
        result = validator.validate([
            ScheduleEntry("j1", utc(2024, 1, 15, 9), utc(2024, 1, 15, 10)),
            ScheduleEntry("j1", utc(2024, 1, 16, 9), utc(2024, 1, 16, 10)),
        ])
        assert str(result.errors[0]) == "[duplicate_job] Job j1: 2 entries for the same job"
