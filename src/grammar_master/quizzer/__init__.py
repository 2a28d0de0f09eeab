from .models import (
    DEFAULT_BANK_ID,
    GAP_MARKER,
    BankSchemaError,
    Difficulty,
    ExamType,
    Explanation,
    Question,
    QuestionBank,
    UserAnswer,
    deserialize_banks,
    question_problems,
    serialize_banks,
)
from .defaults import load_default_bank
from .manager.store import (
    BankStore,
    FilePersistentStore,
    MemoryPersistentStore,
    MutationResult,
    PersistenceError,
    PersistentStore,
)
from .manager.editor import BankEditor, DraftBank, EditorError
from .session import (
    CategorySummary,
    QuizSession,
    Session,
    SessionPhase,
    SessionSummary,
    build_session,
)
from .view.quiz import (
    PracticeOutcome,
    encouragement,
    render_sentence,
    run_practice_session,
)

__all__ = [
    "DEFAULT_BANK_ID",
    "GAP_MARKER",
    "BankSchemaError",
    "Difficulty",
    "ExamType",
    "Explanation",
    "Question",
    "QuestionBank",
    "UserAnswer",
    "deserialize_banks",
    "question_problems",
    "serialize_banks",
    "load_default_bank",
    "BankStore",
    "FilePersistentStore",
    "MemoryPersistentStore",
    "MutationResult",
    "PersistenceError",
    "PersistentStore",
    "BankEditor",
    "DraftBank",
    "EditorError",
    "CategorySummary",
    "QuizSession",
    "Session",
    "SessionPhase",
    "SessionSummary",
    "build_session",
    "PracticeOutcome",
    "encouragement",
    "render_sentence",
    "run_practice_session",
]
