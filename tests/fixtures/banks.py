"""Builders and persistence doubles for bank/session tests."""

from __future__ import annotations

from typing import Optional, Sequence

from grammar_master.quizzer.manager.store import PersistenceError
from grammar_master.quizzer.models import (
    Difficulty,
    ExamType,
    Explanation,
    Question,
    QuestionBank,
)

CONCESSION_OPTIONS = ("Although", "Despite", "Because", "Unless")


def make_question(
    qid: str = "1",
    *,
    sentence: str = "[BLANK] tired, she still finished the report.",
    options: Sequence[str] = CONCESSION_OPTIONS,
    correct_answer: str = "Although",
    category: str = "Conjunctions",
    difficulty: Difficulty = Difficulty.INTERMEDIATE,
    exam_type: ExamType = ExamType.TOEFL,
) -> Question:
    return Question(
        id=qid,
        sentence=sentence,
        options=tuple(options),
        correct_answer=correct_answer,
        explanation=Explanation(
            rule="Although introduces a clause.",
            example="Although it rained, we went out.",
            common_mistake="Despite followed by a clause.",
        ),
        difficulty=difficulty,
        category=category,
        exam_type=exam_type,
    )


def make_bank(
    bank_id: str = "custom",
    *,
    name: str = "Custom bank",
    size: int = 3,
    questions: Optional[Sequence[Question]] = None,
) -> QuestionBank:
    if questions is None:
        questions = [
            make_question(
                str(idx),
                options=(f"a{idx}", f"b{idx}", f"c{idx}", f"d{idx}"),
                correct_answer=f"a{idx}",
                category="even" if idx % 2 == 0 else "odd",
            )
            for idx in range(1, size + 1)
        ]
    return QuestionBank(id=bank_id, name=name, questions=tuple(questions))


class FlakyPersistentStore:
    """Persistent store whose load/save can be told to fail."""

    def __init__(
        self,
        blob: Optional[bytes] = None,
        *,
        fail_load: bool = False,
        fail_save: bool = False,
    ) -> None:
        self.blob = blob
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_attempts = 0

    def load(self) -> Optional[bytes]:
        if self.fail_load:
            raise PersistenceError("storage unavailable")
        return self.blob

    def save(self, blob: bytes) -> None:
        self.save_attempts += 1
        if self.fail_save:
            raise OSError("disk full")
        self.blob = blob
