"""Bank store: the single owner of the question bank collection.

The built-in default bank always sits first and can never be replaced or
removed. Custom banks are written back to a :class:`PersistentStore` after
every applied mutation. Storage failures are logged and reported through
:class:`MutationResult`; the in-memory collection stays authoritative for the
rest of the process either way.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from ..defaults import load_default_bank
from ..models import (
    DEFAULT_BANK_ID,
    BankSchemaError,
    QuestionBank,
    bank_from_dict,
    bank_to_dict,
    copy_bank,
    deserialize_banks,
    serialize_banks,
)

__all__ = [
    "BankStore",
    "FilePersistentStore",
    "MemoryPersistentStore",
    "MutationResult",
    "PersistenceError",
    "PersistentStore",
]


class PersistenceError(RuntimeError):
    """Raised by persistent stores when the blob cannot be read or written."""


class PersistentStore(Protocol):
    """Opaque blob storage used to keep custom banks between runs.

    Implementations should signal failures with :class:`PersistenceError`
    (or ``OSError``). :class:`BankStore` also contains any other exception
    they raise, so a broken backend degrades to warnings.
    """

    def load(self) -> Optional[bytes]:
        ...

    def save(self, blob: bytes) -> None:
        ...


class MemoryPersistentStore:
    """In-process blob holder."""

    def __init__(self, initial: Optional[bytes] = None) -> None:
        self.blob = initial
        self.saves = 0

    def load(self) -> Optional[bytes]:
        return self.blob

    def save(self, blob: bytes) -> None:
        self.blob = bytes(blob)
        self.saves += 1


class FilePersistentStore:
    """Keep the blob in a single file, replaced atomically on save."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(
                f"Unable to read banks from {self.path}: {exc}"
            ) from exc

    def save(self, blob: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(blob)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(
                f"Unable to write banks to {self.path}: {exc}"
            ) from exc
        try:
            self.path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an upsert/remove request."""

    applied: bool
    persisted: bool = False
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.applied and self.persisted


class BankStore:
    """Own the ordered bank collection, default bank first."""

    def __init__(
        self,
        persistent_store: PersistentStore,
        *,
        default_bank: Optional[QuestionBank] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._persistent = persistent_store
        self._default = default_bank or load_default_bank()
        if self._default.id != DEFAULT_BANK_ID:
            raise ValueError(
                f"default bank must use id '{DEFAULT_BANK_ID}'"
            )
        self._logger = logger or logging.getLogger("grammar_master.store")
        self._banks: list[QuestionBank] = [self._default]

    @property
    def default_bank(self) -> QuestionBank:
        return self._default

    def initialize(self) -> list[str]:
        """Load custom banks from persistence.

        Returns the warnings raised while loading. Unreadable or malformed
        data leaves only the default bank in place; it never raises.
        """

        self._banks = [self._default]
        try:
            blob = self._persistent.load()
        except Exception as exc:  # noqa: BLE001 - backend is opaque
            return [self._warn("Failed to read stored banks", exc)]
        if not blob:
            self._logger.info("No stored banks found")
            return []
        try:
            custom = deserialize_banks(blob)
        except BankSchemaError as exc:
            return [self._warn("Ignoring malformed stored banks", exc)]
        self._banks.extend(custom)
        self._logger.info(
            "Loaded stored banks",
            extra={"bank_count": len(custom)},
        )
        return []

    def list(self) -> tuple[QuestionBank, ...]:
        return tuple(self._banks)

    def custom_banks(self) -> tuple[QuestionBank, ...]:
        return tuple(bank for bank in self._banks if not bank.is_default)

    def contains(self, bank_id: str) -> bool:
        return self._index_of(bank_id) is not None

    def get(self, bank_id: str) -> QuestionBank:
        """Return the bank with ``bank_id``, or the default bank."""

        index = self._index_of(bank_id)
        if index is None:
            return self._default
        return self._banks[index]

    def upsert(self, bank: QuestionBank) -> MutationResult:
        """Replace a custom bank in place, or append a new one."""

        if bank.is_default:
            self._logger.warning(
                "Rejected write to the default bank",
                extra={"bank_id": bank.id},
            )
            return MutationResult(
                applied=False, warning="The default bank cannot be modified."
            )
        if not bank.questions:
            return MutationResult(
                applied=False,
                warning="A bank must contain at least one question.",
            )
        problem = _schema_problem(bank)
        if problem is not None:
            self._logger.warning(
                "Rejected bank that would not load back",
                extra={"bank_id": bank.id, "reason": problem},
            )
            return MutationResult(
                applied=False, warning=f"Bank cannot be saved: {problem}"
            )
        stored = copy_bank(bank)
        index = self._index_of(bank.id)
        if index is None:
            self._banks.append(stored)
            action = "created"
        else:
            self._banks[index] = stored
            action = "updated"
        self._logger.info(
            "Bank saved",
            extra={
                "bank_id": bank.id,
                "action": action,
                "question_count": len(stored.questions),
            },
        )
        return self._persist()

    def remove(self, bank_id: str) -> MutationResult:
        """Remove a custom bank; the default bank and unknown ids are kept."""

        if bank_id == DEFAULT_BANK_ID:
            return MutationResult(
                applied=False, warning="The default bank cannot be deleted."
            )
        index = self._index_of(bank_id)
        if index is None:
            return MutationResult(applied=False)
        del self._banks[index]
        self._logger.info("Bank removed", extra={"bank_id": bank_id})
        return self._persist()

    def _persist(self) -> MutationResult:
        try:
            self._persistent.save(serialize_banks(self._banks))
        except Exception as exc:  # noqa: BLE001 - backend is opaque
            warning = self._warn("Failed to persist banks", exc)
            return MutationResult(
                applied=True, persisted=False, warning=warning
            )
        return MutationResult(applied=True, persisted=True)

    def _warn(self, message: str, exc: Exception) -> str:
        self._logger.warning(message, extra={"reason": str(exc)})
        return f"{message}: {exc}"

    def _index_of(self, bank_id: str) -> Optional[int]:
        for index, bank in enumerate(self._banks):
            if bank.id == bank_id:
                return index
        return None


def _schema_problem(bank: QuestionBank) -> Optional[str]:
    """Describe why ``bank`` would be rejected when loaded back, if at all."""

    try:
        bank_from_dict(bank_to_dict(bank), where="bank")
    except BankSchemaError as exc:
        return str(exc)
    except (AttributeError, TypeError) as exc:
        return f"bank has malformed fields: {exc}"
    return None
