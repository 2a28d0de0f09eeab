from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import make_bank, make_question  # noqa: E402

from grammar_master.quizzer.manager.store import (  # noqa: E402
    BankStore,
    MemoryPersistentStore,
)
from grammar_master.quizzer.models import QuestionBank  # noqa: E402


@pytest.fixture
def logger() -> logging.Logger:
    """A quiet logger so components never write to the real log files."""

    quiet = logging.getLogger("grammar_master.tests")
    quiet.handlers.clear()
    quiet.propagate = False
    quiet.addHandler(logging.NullHandler())
    return quiet


@pytest.fixture
def default_bank() -> QuestionBank:
    return make_bank(
        "default",
        name="Built-in",
        questions=[make_question("d1"), make_question("d2")],
    )


@pytest.fixture
def blob_store() -> MemoryPersistentStore:
    return MemoryPersistentStore()


@pytest.fixture
def store(blob_store, default_bank, logger) -> BankStore:
    bank_store = BankStore(
        blob_store, default_bank=default_bank, logger=logger
    )
    bank_store.initialize()
    return bank_store
