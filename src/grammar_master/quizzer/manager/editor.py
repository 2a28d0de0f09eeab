"""Draft-based bank editing.

Drafts are private, mutable copies. Nothing reaches the :class:`BankStore`
until :meth:`BankEditor.commit` hands the whole draft over in one upsert.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Optional, Union

from ..models import (
    DEFAULT_BANK_ID,
    GAP_MARKER,
    OPTION_COUNT,
    BankSchemaError,
    Difficulty,
    ExamType,
    Explanation,
    Question,
    QuestionBank,
    copy_question,
    question_problems,
)
from .store import BankStore, MutationResult

__all__ = [
    "BankEditor",
    "DraftBank",
    "EditorError",
    "NEW_BANK_NAME",
]

NEW_BANK_NAME = "新题库"

_EDITABLE_FIELDS = frozenset(
    {
        "sentence",
        "options",
        "correct_answer",
        "explanation",
        "difficulty",
        "category",
        "exam_type",
    }
)


class EditorError(ValueError):
    """Raised when an edit request cannot be applied to a draft."""


@dataclass
class DraftBank:
    """Mutable working copy of a bank."""

    id: str
    name: str
    questions: list[Question] = field(default_factory=list)

    @classmethod
    def from_bank(cls, bank: QuestionBank) -> "DraftBank":
        return cls(
            id=bank.id,
            name=bank.name,
            questions=[copy_question(q) for q in bank.questions],
        )

    def to_bank(self) -> QuestionBank:
        return QuestionBank(
            id=self.id,
            name=self.name,
            questions=tuple(copy_question(q) for q in self.questions),
        )


class BankEditor:
    """Create, edit and commit drafts against ``store``."""

    def __init__(
        self,
        store: BankStore,
        *,
        id_factory: Optional[Callable[[], str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._logger = logger or logging.getLogger("grammar_master.editor")

    def new_draft(self) -> DraftBank:
        """Start a brand-new bank holding one sample question."""

        sample = Question(
            id=self._unique_question_id([]),
            sentence=f"This is a {GAP_MARKER} sentence.",
            options=("test", "sample", "demo", "example"),
            correct_answer="",
            difficulty=Difficulty.BEGINNER,
            category="General",
        )
        draft = DraftBank(
            id=self._unique_bank_id(), name=NEW_BANK_NAME, questions=[sample]
        )
        self._logger.debug("Draft created", extra={"bank_id": draft.id})
        return draft

    def open_draft(self, bank: Union[QuestionBank, str]) -> DraftBank:
        """Copy an existing custom bank into a new draft."""

        bank_id = bank if isinstance(bank, str) else bank.id
        if bank_id == DEFAULT_BANK_ID:
            raise EditorError("The default bank cannot be edited.")
        if isinstance(bank, str):
            if not self._store.contains(bank):
                raise EditorError(f"Unknown bank '{bank}'.")
            bank = self._store.get(bank)
        return DraftBank.from_bank(bank)

    def rename(self, draft: DraftBank, name: str) -> None:
        if not isinstance(name, str):
            raise EditorError("Bank name must be a string.")
        draft.name = name

    def add_question(self, draft: DraftBank) -> Question:
        """Append a blank question to ``draft``."""

        question = Question(
            id=self._unique_question_id(draft.questions),
            sentence=f"New {GAP_MARKER} sentence.",
            options=("",) * OPTION_COUNT,
            correct_answer="",
        )
        draft.questions.append(question)
        return question

    def update_question(
        self, draft: DraftBank, index: int, **changes: object
    ) -> Question:
        """Merge ``changes`` into the question at ``index``.

        Field names follow :class:`Question`. ``explanation`` may be a full
        :class:`Explanation` or a mapping with a subset of its fields.
        """

        current = self._question_at(draft, index)
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise EditorError(
                "Cannot edit field(s): {0}".format(", ".join(sorted(unknown)))
            )
        updates = dict(changes)
        if "options" in updates:
            updates["options"] = _coerce_options(updates["options"])
        if "explanation" in updates:
            updates["explanation"] = _merge_explanation(
                current.explanation, updates["explanation"]
            )
        try:
            if "difficulty" in updates:
                updates["difficulty"] = Difficulty.from_value(
                    updates["difficulty"]
                )
            if "exam_type" in updates:
                updates["exam_type"] = ExamType.from_value(
                    updates["exam_type"]
                )
        except BankSchemaError as exc:
            raise EditorError(str(exc)) from exc
        for name in ("sentence", "correct_answer", "category"):
            if name in updates and not isinstance(updates[name], str):
                raise EditorError(f"'{name}' must be a string.")
        updated = copy_question(current, **updates)
        draft.questions[index] = updated
        return updated

    def remove_question(self, draft: DraftBank, index: int) -> bool:
        """Drop the question at ``index`` unless it is the last one left."""

        self._question_at(draft, index)
        if len(draft.questions) <= 1:
            self._logger.debug(
                "Refused to remove last question", extra={"bank_id": draft.id}
            )
            return False
        del draft.questions[index]
        return True

    def draft_problems(self, draft: DraftBank) -> list[str]:
        """List content issues; they are advisory and never block a commit."""

        problems: list[str] = []
        if not isinstance(draft.name, str) or not draft.name.strip():
            problems.append("bank name is blank")
        for number, question in enumerate(draft.questions, start=1):
            problems.extend(
                f"question {number}: {problem}"
                for problem in question_problems(question)
            )
        return problems

    def commit(self, draft: DraftBank) -> MutationResult:
        """Hand the whole draft to the store."""

        if draft.id == DEFAULT_BANK_ID:
            raise EditorError("The default bank cannot be edited.")
        problems = self.draft_problems(draft)
        if problems:
            self._logger.info(
                "Committing draft with content issues",
                extra={"bank_id": draft.id, "problems": problems},
            )
        return self._store.upsert(draft.to_bank())

    def delete(self, bank_id: str) -> MutationResult:
        return self._store.remove(bank_id)

    def _question_at(self, draft: DraftBank, index: int) -> Question:
        if not 0 <= index < len(draft.questions):
            raise EditorError(
                f"Question index {index} is out of range "
                f"(draft has {len(draft.questions)})."
            )
        return draft.questions[index]

    def _unique_bank_id(self) -> str:
        candidate = self._new_id()
        while candidate == DEFAULT_BANK_ID or self._store.contains(candidate):
            candidate = self._new_id()
        return candidate

    def _unique_question_id(self, existing: list[Question]) -> str:
        taken = {question.id for question in existing}
        candidate = self._new_id()
        while candidate in taken:
            candidate = self._new_id()
        return candidate


def _coerce_options(value: object) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(
        value, (list, tuple)
    ):
        raise EditorError("'options' must be a list of strings.")
    if not all(isinstance(option, str) for option in value):
        raise EditorError("'options' must be a list of strings.")
    if len(value) != OPTION_COUNT:
        raise EditorError(f"'options' must have exactly {OPTION_COUNT} items.")
    return tuple(value)


def _merge_explanation(current: Explanation, value: object) -> Explanation:
    if isinstance(value, Explanation):
        return value
    if not isinstance(value, Mapping):
        raise EditorError("'explanation' must be an Explanation or mapping.")
    unknown = set(value) - {"rule", "example", "common_mistake"}
    if unknown:
        raise EditorError(
            "Unknown explanation field(s): {0}".format(
                ", ".join(sorted(unknown))
            )
        )
    merged = {
        "rule": current.rule,
        "example": current.example,
        "common_mistake": current.common_mistake,
    }
    merged.update(value)
    if not all(isinstance(text, str) for text in merged.values()):
        raise EditorError("Explanation fields must be strings.")
    return Explanation(**merged)
