"""Shared testing fixtures for the grammar_master test suite."""

from .banks import (  # noqa: F401
    CONCESSION_OPTIONS,
    FlakyPersistentStore,
    make_bank,
    make_question,
)

__all__ = [
    "CONCESSION_OPTIONS",
    "FlakyPersistentStore",
    "make_bank",
    "make_question",
]
