"""Validation module for checking schedule entries."""

from relayplanner.validation.validator import EntryValidator, ValidationError

__all__ = [
    "EntryValidator",
    "ValidationError",
]
