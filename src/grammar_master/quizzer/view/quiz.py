"""Rich rendering and an interactive loop over :class:`QuizSession`.

The loop only translates console input into state-machine calls; every rule
about what is legal lives in the session itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from ..models import GAP_MARKER, Difficulty, Question
from ..session import QuizSession, SessionPhase, SessionSummary

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit"]

_OPTION_KEYS = "ABCD"
_DIFFICULTY_STYLES = {
    Difficulty.BEGINNER: "bold green",
    Difficulty.INTERMEDIATE: "bold yellow",
    Difficulty.ADVANCED: "bold red",
}
_PLACEHOLDER = "点击选项填充"


@dataclass(frozen=True)
class PracticeCommand:
    """Normalized user command parsed from console input."""

    type: Literal["select", "submit", "next", "restart", "quit"]
    choice: Optional[str] = None


@dataclass(frozen=True)
class PracticeOutcome:
    """Return value from :func:`run_practice_session`."""

    exit_action: ExitAction
    summary: SessionSummary


def encouragement(score: int, total: int) -> str:
    """Bilingual feedback line for the final score."""

    percentage = (score / total) * 100 if total else 0.0
    if percentage == 100:
        return (
            "卓越！你已经完全掌握了这些复杂的语法结构。/ "
            "Excellent! You have mastered these complex structures."
        )
    if percentage >= 80:
        return (
            "太棒了！你的语法基础非常扎实，继续保持。/ "
            "Great job! Your grammar foundation is very solid."
        )
    if percentage >= 60:
        return (
            "做得好！你对大多数结构都有很好的理解。/ "
            "Well done! You have a good understanding."
        )
    return (
        "继续努力！语法辨析需要不断的练习和积累。/ "
        "Keep practicing! Mastery takes time and repetition."
    )


def render_sentence(
    sentence: str,
    selected: Optional[str],
    correct: Optional[str],
    submitted: bool,
) -> Text:
    """Fill the gap marker with the current choice."""

    before, marker, after = sentence.partition(GAP_MARKER)
    if not marker:
        before, after = sentence.rstrip() + " ", ""
    if selected is None:
        fill = Text(f" {_PLACEHOLDER} ", style="dim italic")
    elif not submitted:
        fill = Text(f" {selected} ", style="bold underline blue")
    elif selected == correct:
        fill = Text(f" {selected} ", style="bold underline green")
    else:
        fill = Text(f" {selected} ", style="bold underline red")
    return Text.assemble(before, fill, after)


def render_question(console: Console, quiz: QuizSession) -> None:
    question = quiz.current_question
    if question is None:
        return
    submitted = quiz.phase is SessionPhase.SUBMITTED
    header = Text.assemble(
        (f"Question {quiz.index + 1}", "bold cyan"),
        (f" / {quiz.total}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(ProgressBar(total=quiz.total, completed=quiz.index + 1))
    console.print(
        Text.assemble(
            (
                question.difficulty.value,
                _DIFFICULTY_STYLES[question.difficulty],
            ),
            "  ",
            (question.category or "-", "magenta"),
            "  ",
            (question.exam_type.value, "cyan"),
        )
    )
    console.print(
        render_sentence(
            question.sentence,
            quiz.selection,
            question.correct_answer,
            submitted,
        )
    )

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for key, option in zip(_OPTION_KEYS, question.options):
        style = _option_style(quiz, question, option)
        text = Text(option, style=style)
        indicator = "•" if option == quiz.selection else " "
        table.add_row(key, Text(indicator + " ") + text)
    console.print(table)

    if submitted:
        hint = "next (n), quit (q)"
    else:
        hint = f"choices [{', '.join(_OPTION_KEYS)}], submit (s), quit (q)"
    console.print(Text(f"Commands: {hint}", style="dim"))


def render_feedback(console: Console, quiz: QuizSession) -> None:
    """Show the verdict and explanation for the just-submitted answer."""

    question = quiz.current_question
    answer = quiz.last_answer
    if question is None or answer is None:
        return
    if answer.is_correct:
        title, border = "回答正确！/ Correct!", "green"
    else:
        title = f"回答错误 / Incorrect: {question.correct_answer}"
        border = "red"
    explanation = question.explanation
    body = Group(
        Text("语法规则 / Grammar Rule", style="bold"),
        Markdown(explanation.rule or "-"),
        Text("典型例句 / Example", style="bold"),
        Text(f'"{explanation.example}"', style="italic"),
        Text("常见错误辨析 / Common Mistake", style="bold"),
        Text(explanation.common_mistake or "-"),
    )
    console.print(Panel(body, title=title, border_style=border))


def render_summary(console: Console, summary: SessionSummary) -> None:
    console.print()
    console.rule(Text("Practice Summary", style="bold magenta"))

    overview = Table(
        show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row(
        "Score", f"{summary.correct_answers}/{summary.total_questions}"
    )
    overview.add_row("Answered", str(summary.answered_questions))
    overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
    console.print(overview)

    if summary.per_category:
        per_category = Table(title="Per category", box=box.SIMPLE)
        per_category.add_column("Category")
        per_category.add_column("Asked", justify="right")
        per_category.add_column("Correct", justify="right")
        per_category.add_column("Accuracy", justify="right")
        for name, metrics in summary.per_category.items():
            per_category.add_row(
                name or "(uncategorized)",
                str(metrics.asked),
                str(metrics.correct),
                f"{metrics.accuracy * 100:.1f}%",
            )
        console.print(per_category)

    console.print(
        Text(
            encouragement(summary.correct_answers, summary.total_questions),
            style="bold",
        )
    )


def parse_practice_command(
    raw: Optional[str], question: Optional[Question] = None
) -> Optional[PracticeCommand]:
    """Parse console input into a command.

    With ``question`` given, a letter A-D selects the option at that
    position and an option's full text selects that option.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"s", "submit"}:
        return PracticeCommand("submit")
    if lowered in {"n", "next"}:
        return PracticeCommand("next")
    if lowered in {"r", "restart"}:
        return PracticeCommand("restart")
    if lowered in {"q", "quit", "exit"}:
        return PracticeCommand("quit")
    if question is None:
        return None
    key = text.upper()
    if len(key) == 1 and key in _OPTION_KEYS[: len(question.options)]:
        return PracticeCommand(
            "select", question.options[_OPTION_KEYS.index(key)]
        )
    for option in question.options:
        if option and option.lower() == lowered:
            return PracticeCommand("select", option)
    return None


def run_practice_session(
    quiz: QuizSession,
    console: Console,
    input_provider: InputProvider,
) -> PracticeOutcome:
    """Drive ``quiz`` from console input until it finishes or is quit."""

    while not quiz.is_finished:
        render_question(console, quiz)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return PracticeOutcome("quit", quiz.summary())
        command = parse_practice_command(raw, quiz.current_question)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session early.[/]")
            return PracticeOutcome("quit", quiz.summary())
        _apply_command(command, quiz, console)

    summary = quiz.summary()
    render_summary(console, summary)
    return PracticeOutcome("finished", summary)


def _apply_command(
    command: PracticeCommand, quiz: QuizSession, console: Console
) -> None:
    if command.type == "select" and command.choice is not None:
        if not quiz.select_option(command.choice):
            console.print("[red]Answer already submitted.[/]")
        return
    if command.type == "submit":
        if quiz.submit() is None:
            console.print("[red]Select an option before submitting.[/]")
            return
        render_feedback(console, quiz)
        return
    if command.type == "next":
        if not quiz.advance():
            console.print("[red]Submit an answer first.[/]")
        return
    if command.type == "restart":
        quiz.restart()
        console.print("[bold]Restarted with a fresh shuffle.[/]")


def _option_style(quiz: QuizSession, question: Question, option: str) -> str:
    if quiz.phase is not SessionPhase.SUBMITTED:
        return "bold blue" if option == quiz.selection else ""
    if option == question.correct_answer:
        return "bold green"
    if option == quiz.selection:
        return "bold red"
    return "dim"
