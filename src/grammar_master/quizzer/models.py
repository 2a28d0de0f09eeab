"""Question bank records plus their JSON codec.

Records are frozen dataclasses. Persisted data uses the camelCase field names
of the stored format (``correctAnswer``, ``examType``, ``commonMistake``);
the Python side uses snake_case. Schema checks here are structural only:
content rules such as "the correct answer is one of the options" are reported
by :func:`question_problems` because work-in-progress banks may legitimately
break them.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "DEFAULT_BANK_ID",
    "GAP_MARKER",
    "OPTION_COUNT",
    "BankSchemaError",
    "Difficulty",
    "ExamType",
    "Explanation",
    "Question",
    "QuestionBank",
    "UserAnswer",
    "bank_from_dict",
    "bank_to_dict",
    "copy_bank",
    "copy_question",
    "deserialize_banks",
    "question_from_dict",
    "question_problems",
    "question_to_dict",
    "serialize_banks",
]

DEFAULT_BANK_ID = "default"
GAP_MARKER = "[BLANK]"
OPTION_COUNT = 4


class BankSchemaError(ValueError):
    """Raised when bank data does not match the stored format."""


class Difficulty(Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @classmethod
    def from_value(cls, value: object) -> "Difficulty":
        return _enum_from_value(cls, value, field="difficulty")


class ExamType(Enum):
    TOEFL = "TOEFL"
    SAT = "SAT"

    @classmethod
    def from_value(cls, value: object) -> "ExamType":
        return _enum_from_value(cls, value, field="examType")


@dataclass(frozen=True)
class Explanation:
    """Rule, worked example and common mistake shown after submission."""

    rule: str = ""
    example: str = ""
    common_mistake: str = ""


@dataclass(frozen=True)
class Question:
    """A single fill-in-the-gap multiple-choice question."""

    id: str
    sentence: str
    options: tuple[str, ...]
    correct_answer: str
    explanation: Explanation = field(default_factory=Explanation)
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    category: str = ""
    exam_type: ExamType = ExamType.TOEFL

    def has_option(self, option: str) -> bool:
        return option in self.options

    def is_correct(self, option: str) -> bool:
        return option == self.correct_answer


@dataclass(frozen=True)
class QuestionBank:
    """A named, ordered collection of questions."""

    id: str
    name: str
    questions: tuple[Question, ...]

    @property
    def is_default(self) -> bool:
        return self.id == DEFAULT_BANK_ID

    def __len__(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class UserAnswer:
    """One submitted answer; appended once per question in session order."""

    question_id: str
    selected_option: str
    is_correct: bool


def copy_question(question: Question, **changes: object) -> Question:
    """Return a structurally independent copy of ``question``.

    ``changes`` replace individual fields on the copy.
    """

    values: dict[str, object] = {
        "id": question.id,
        "sentence": question.sentence,
        "options": question.options,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
        "difficulty": question.difficulty,
        "category": question.category,
        "exam_type": question.exam_type,
    }
    values.update(changes)
    notes = values["explanation"]
    values["options"] = tuple(values["options"])  # type: ignore[arg-type]
    values["explanation"] = Explanation(
        rule=notes.rule,  # type: ignore[attr-defined]
        example=notes.example,  # type: ignore[attr-defined]
        common_mistake=notes.common_mistake,  # type: ignore[attr-defined]
    )
    return Question(**values)  # type: ignore[arg-type]


def copy_bank(bank: QuestionBank) -> QuestionBank:
    """Return a copy of ``bank`` that shares no containers with it."""

    return QuestionBank(
        id=bank.id,
        name=bank.name,
        questions=tuple(copy_question(q) for q in bank.questions),
    )


def question_problems(question: Question) -> list[str]:
    """Describe content issues that make ``question`` unfit for practice."""

    problems: list[str] = []
    markers = question.sentence.count(GAP_MARKER)
    if markers == 0:
        problems.append(f"sentence has no {GAP_MARKER} gap marker")
    elif markers > 1:
        problems.append(f"sentence has {markers} {GAP_MARKER} gap markers")
    if any(not option.strip() for option in question.options):
        problems.append("options must not be blank")
    if len(set(question.options)) != len(question.options):
        problems.append("options must be distinct")
    if not question.correct_answer:
        problems.append("no correct answer selected")
    elif not question.has_option(question.correct_answer):
        problems.append("correct answer is not one of the options")
    return problems


# -- codec -------------------------------------------------------------------


def question_to_dict(question: Question) -> dict[str, object]:
    return {
        "id": question.id,
        "sentence": question.sentence,
        "options": list(question.options),
        "correctAnswer": question.correct_answer,
        "explanation": {
            "rule": question.explanation.rule,
            "example": question.explanation.example,
            "commonMistake": question.explanation.common_mistake,
        },
        "difficulty": question.difficulty.value,
        "category": question.category,
        "examType": question.exam_type.value,
    }


def question_from_dict(data: object, *, where: str = "question") -> Question:
    """Build a :class:`Question` from its stored mapping.

    Raises :class:`BankSchemaError` naming the offending field.
    """

    record = _require_mapping(data, where=where)
    options = record.get("options")
    if not isinstance(options, list) or not all(
        isinstance(option, str) for option in options
    ):
        raise BankSchemaError(f"{where}.options must be a list of strings")
    if len(options) != OPTION_COUNT:
        raise BankSchemaError(
            f"{where}.options must have exactly {OPTION_COUNT} entries"
        )
    explanation = _require_mapping(
        record.get("explanation"), where=f"{where}.explanation"
    )
    try:
        difficulty = Difficulty.from_value(record.get("difficulty"))
        exam_type = ExamType.from_value(record.get("examType"))
    except BankSchemaError as exc:
        raise BankSchemaError(f"{where}.{exc}") from exc
    return Question(
        id=_require_str(record, "id", where=where, non_empty=True),
        sentence=_require_str(record, "sentence", where=where),
        options=tuple(options),
        correct_answer=_require_str(record, "correctAnswer", where=where),
        explanation=Explanation(
            rule=_require_str(
                explanation, "rule", where=f"{where}.explanation"
            ),
            example=_require_str(
                explanation, "example", where=f"{where}.explanation"
            ),
            common_mistake=_require_str(
                explanation, "commonMistake", where=f"{where}.explanation"
            ),
        ),
        difficulty=difficulty,
        category=_require_str(record, "category", where=where),
        exam_type=exam_type,
    )


def bank_to_dict(bank: QuestionBank) -> dict[str, object]:
    return {
        "id": bank.id,
        "name": bank.name,
        "questions": [question_to_dict(q) for q in bank.questions],
    }


def bank_from_dict(
    data: object,
    *,
    where: str = "bank",
    allow_default: bool = False,
) -> QuestionBank:
    """Build a :class:`QuestionBank`, rejecting the reserved id by default."""

    record = _require_mapping(data, where=where)
    bank_id = _require_str(record, "id", where=where, non_empty=True)
    if bank_id == DEFAULT_BANK_ID and not allow_default:
        raise BankSchemaError(
            f"{where}.id '{DEFAULT_BANK_ID}' is reserved for the built-in bank"
        )
    raw_questions = record.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise BankSchemaError(f"{where}.questions must be a non-empty list")
    questions = tuple(
        question_from_dict(item, where=f"{where}.questions[{idx}]")
        for idx, item in enumerate(raw_questions)
    )
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise BankSchemaError(
                f"{where}: duplicate question id '{question.id}'"
            )
        seen.add(question.id)
    return QuestionBank(
        id=bank_id,
        name=_require_str(record, "name", where=where),
        questions=questions,
    )


def serialize_banks(banks: Iterable[QuestionBank]) -> bytes:
    """Encode every non-default bank as a UTF-8 JSON array."""

    payload = [bank_to_dict(bank) for bank in banks if not bank.is_default]
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def deserialize_banks(blob: bytes | str) -> tuple[QuestionBank, ...]:
    """Decode a blob written by :func:`serialize_banks`."""

    try:
        text = blob.decode("utf-8") if isinstance(blob, bytes) else blob
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise BankSchemaError(
            f"stored banks are not valid JSON: {exc}"
        ) from exc
    if not isinstance(data, list):
        raise BankSchemaError("stored banks must be a JSON array")
    banks = tuple(
        bank_from_dict(item, where=f"banks[{idx}]")
        for idx, item in enumerate(data)
    )
    _require_unique_ids(banks)
    return banks


def _require_unique_ids(banks: Sequence[QuestionBank]) -> None:
    seen: set[str] = set()
    for bank in banks:
        if bank.id in seen:
            raise BankSchemaError(f"duplicate bank id '{bank.id}'")
        seen.add(bank.id)


def _require_mapping(value: object, *, where: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise BankSchemaError(f"{where} must be an object")
    return value


def _require_str(
    record: Mapping[str, object],
    key: str,
    *,
    where: str,
    non_empty: bool = False,
) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        raise BankSchemaError(f"{where}.{key} must be a string")
    if non_empty and not value.strip():
        raise BankSchemaError(f"{where}.{key} must not be empty")
    return value


def _enum_from_value(cls, value: object, *, field: str):
    if isinstance(value, cls):
        return value
    for member in cls:
        if member.value == value:
            return member
    expected = ", ".join(member.value for member in cls)
    raise BankSchemaError(
        f"{field} '{value}' is not one of: {expected}"
    )
