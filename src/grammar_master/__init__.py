"""Grammar practice quiz engine: question banks, sessions and editing."""

from __future__ import annotations

from importlib import metadata

from .app import AppContext, bootstrap
from .quizzer import (
    BankEditor,
    BankStore,
    QuizSession,
    build_session,
    load_default_bank,
)

try:
    __version__ = metadata.version("grammar-master")
except metadata.PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "AppContext",
    "bootstrap",
    "BankEditor",
    "BankStore",
    "QuizSession",
    "build_session",
    "load_default_bank",
]
