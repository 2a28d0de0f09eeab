"""Built-in default bank shipped as package data."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources

from .models import (
    DEFAULT_BANK_ID,
    BankSchemaError,
    QuestionBank,
    bank_from_dict,
)

DEFAULT_BANK_RESOURCE = "default_bank.json"


@lru_cache(maxsize=1)
def load_default_bank() -> QuestionBank:
    """Return the immutable built-in bank.

    The dataset is parsed once per process; the returned record is frozen so
    sharing it is safe.
    """

    resource = (
        resources.files(__package__)
        .joinpath("data")
        .joinpath(DEFAULT_BANK_RESOURCE)
    )
    try:
        data = json.loads(resource.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:  # pragma: no cover - packaging error
        raise BankSchemaError(f"default bank data is corrupt: {exc}") from exc
    bank = bank_from_dict(data, where="default_bank", allow_default=True)
    if bank.id != DEFAULT_BANK_ID:  # pragma: no cover - packaging error
        raise BankSchemaError(
            f"default bank must use id '{DEFAULT_BANK_ID}', found '{bank.id}'"
        )
    return bank
