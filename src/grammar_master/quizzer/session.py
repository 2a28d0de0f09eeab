"""Practice session building and the quiz state machine.

A :class:`Session` is an ephemeral, shuffled copy of one bank. The
:class:`QuizSession` drives it one question at a time::

    AWAITING_SELECTION --submit--> SUBMITTED --advance--> AWAITING_SELECTION
                                            \\--advance (last)--> FINISHED

Illegal calls (submitting without a selection, advancing before submitting,
selecting after submitting) are no-ops rather than errors, so callers can wire
them straight to user input.
"""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .manager.store import BankStore
from .models import Question, QuestionBank, UserAnswer, copy_question

__all__ = [
    "CategorySummary",
    "QuizSession",
    "Session",
    "SessionPhase",
    "SessionSummary",
    "build_session",
    "summarize_answers",
]


@dataclass(frozen=True)
class Session:
    """Shuffled questions for a single practice run over one bank."""

    bank_id: str
    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)


def build_session(
    bank: QuestionBank, *, rng: Optional[random.Random] = None
) -> Session:
    """Return a freshly shuffled session for ``bank``.

    Question order and each question's option order are permuted uniformly
    and independently. The source bank is left untouched.
    """

    rnd = rng or random.Random()
    questions = list(bank.questions)
    rnd.shuffle(questions)
    shuffled: list[Question] = []
    for question in questions:
        options = list(question.options)
        rnd.shuffle(options)
        shuffled.append(copy_question(question, options=options))
    return Session(bank_id=bank.id, questions=tuple(shuffled))


class SessionPhase(Enum):
    AWAITING_SELECTION = "awaiting_selection"
    SUBMITTED = "submitted"
    FINISHED = "finished"


@dataclass(frozen=True)
class CategorySummary:
    """Aggregate performance for one question category."""

    category: str
    asked: int
    correct: int

    @property
    def accuracy(self) -> float:
        if self.asked == 0:
            return 0.0
        return self.correct / self.asked


@dataclass(frozen=True)
class SessionSummary:
    """Score roll-up for a practice run."""

    total_questions: int
    correct_answers: int
    answered_questions: int
    per_category: dict[str, CategorySummary] = field(default_factory=dict)
    missed: tuple[str, ...] = ()

    @property
    def accuracy(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.correct_answers / self.total_questions


def summarize_answers(
    session: Session, answers: tuple[UserAnswer, ...]
) -> SessionSummary:
    """Roll ``answers`` up against the questions of ``session``."""

    by_id = {question.id: question for question in session.questions}
    asked: dict[str, int] = defaultdict(int)
    correct: dict[str, int] = defaultdict(int)
    missed: list[str] = []
    for answer in answers:
        question = by_id.get(answer.question_id)
        category = question.category if question else ""
        asked[category] += 1
        if answer.is_correct:
            correct[category] += 1
        else:
            missed.append(answer.question_id)
    return SessionSummary(
        total_questions=len(session),
        correct_answers=sum(correct.values()),
        answered_questions=len(answers),
        per_category={
            name: CategorySummary(
                category=name, asked=count, correct=correct[name]
            )
            for name, count in asked.items()
        },
        missed=tuple(missed),
    )


class QuizSession:
    """State machine for one practice run against a bank in ``store``."""

    def __init__(
        self,
        store: BankStore,
        bank_id: str,
        *,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger("grammar_master.session")
        self._session = Session(bank_id=bank_id, questions=())
        self._index = 0
        self._selection: Optional[str] = None
        self._answers: list[UserAnswer] = []
        self._phase = SessionPhase.AWAITING_SELECTION
        self.restart(bank_id)

    # -- read-only view ------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def session(self) -> Session:
        return self._session

    @property
    def bank_id(self) -> str:
        return self._session.bank_id

    @property
    def index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self._session)

    @property
    def selection(self) -> Optional[str]:
        return self._selection

    @property
    def answers(self) -> tuple[UserAnswer, ...]:
        return tuple(self._answers)

    @property
    def last_answer(self) -> Optional[UserAnswer]:
        return self._answers[-1] if self._answers else None

    @property
    def score(self) -> int:
        return sum(1 for answer in self._answers if answer.is_correct)

    @property
    def is_finished(self) -> bool:
        return self._phase is SessionPhase.FINISHED

    @property
    def is_last_question(self) -> bool:
        return self._index == self.total - 1

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_finished:
            return None
        return self._session.questions[self._index]

    @property
    def progress(self) -> float:
        """Fraction of the session answered so far."""

        if not self.total:
            return 0.0
        return len(self._answers) / self.total

    # -- transitions ---------------------------------------------------------

    def select_option(self, option: str) -> bool:
        """Record ``option`` as the tentative choice for this question."""

        question = self.current_question
        if self._phase is not SessionPhase.AWAITING_SELECTION:
            self._ignored("select_option")
            return False
        if question is None or not question.has_option(option):
            self._ignored("select_option", option=option)
            return False
        self._selection = option
        return True

    def submit(self) -> Optional[UserAnswer]:
        """Lock in the tentative choice and record the answer."""

        question = self.current_question
        if (
            self._phase is not SessionPhase.AWAITING_SELECTION
            or self._selection is None
            or question is None
        ):
            self._ignored("submit")
            return None
        answer = UserAnswer(
            question_id=question.id,
            selected_option=self._selection,
            is_correct=question.is_correct(self._selection),
        )
        self._answers.append(answer)
        self._phase = SessionPhase.SUBMITTED
        self._logger.debug(
            "Answer submitted",
            extra={
                "bank_id": self.bank_id,
                "question_id": answer.question_id,
                "is_correct": answer.is_correct,
            },
        )
        return answer

    def advance(self) -> bool:
        """Move to the next question, or finish after the last one."""

        if self._phase is not SessionPhase.SUBMITTED:
            self._ignored("advance")
            return False
        if self.is_last_question:
            self._phase = SessionPhase.FINISHED
            self._logger.info(
                "Session finished",
                extra={
                    "bank_id": self.bank_id,
                    "score": self.score,
                    "total": self.total,
                },
            )
            return True
        self._index += 1
        self._selection = None
        self._phase = SessionPhase.AWAITING_SELECTION
        return True

    def restart(self, bank_id: Optional[str] = None) -> Session:
        """Rebuild the session from the live store and start over.

        The bank is looked up again, so edits saved since the previous run
        are picked up and the order is reshuffled.
        """

        target = bank_id if bank_id is not None else self.bank_id
        bank = self._store.get(target)
        self._session = build_session(bank, rng=self._rng)
        self._index = 0
        self._selection = None
        self._answers = []
        self._phase = SessionPhase.AWAITING_SELECTION
        self._logger.info(
            "Session started",
            extra={
                "requested_bank_id": target,
                "bank_id": bank.id,
                "question_count": len(self._session),
            },
        )
        return self._session

    def summary(self) -> SessionSummary:
        return summarize_answers(self._session, self.answers)

    def _ignored(self, action: str, **details: object) -> None:
        self._logger.debug(
            "Ignored illegal transition",
            extra={"action": action, "phase": self._phase.value, **details},
        )
