from __future__ import annotations

import random

import pytest
from rich.console import Console

from fixtures import make_question

from grammar_master.quizzer.session import QuizSession, SessionPhase
from grammar_master.quizzer.view import quiz as view


def _console() -> Console:
    return Console(record=True, width=80, force_terminal=True)


def _inputs(*values: str):
    iterator = iter(values)
    return lambda: next(iterator)


def test_encouragement_thresholds():
    assert view.encouragement(5, 5).startswith("卓越")
    assert view.encouragement(4, 5).startswith("太棒了")
    assert view.encouragement(3, 5).startswith("做得好")
    assert view.encouragement(2, 5).startswith("继续努力")
    assert view.encouragement(0, 0).startswith("继续努力")


def test_render_sentence_shows_placeholder_then_choice():
    sentence = "[BLANK] tired, she still finished the report."

    empty = view.render_sentence(sentence, None, "Although", False)
    chosen = view.render_sentence(sentence, "Despite", "Although", False)

    assert empty.plain == (
        " 点击选项填充  tired, she still finished the report."
    )
    assert chosen.plain == " Despite  tired, she still finished the report."


def test_render_sentence_colors_submitted_choice():
    sentence = "She [BLANK] home."

    right = view.render_sentence(sentence, "went", "went", True)
    wrong = view.render_sentence(sentence, "go", "went", True)

    assert "green" in str(right.spans[0].style)
    assert "red" in str(wrong.spans[0].style)


def test_render_sentence_without_marker_appends_fill():
    text = view.render_sentence("No gap here.", "x", "x", False)

    assert text.plain == "No gap here.  x "


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("s", view.PracticeCommand("submit")),
        (" SUBMIT ", view.PracticeCommand("submit")),
        ("n", view.PracticeCommand("next")),
        ("restart", view.PracticeCommand("restart")),
        ("exit", view.PracticeCommand("quit")),
        ("b", view.PracticeCommand("select", "Despite")),
        ("unless", view.PracticeCommand("select", "Unless")),
        ("", None),
        (None, None),
        ("E", None),
    ],
)
def test_parse_practice_command(raw, expected):
    question = make_question()

    assert view.parse_practice_command(raw, question) == expected


def test_parse_practice_command_prefers_letter_keys():
    question = make_question(options=("b", "a", "c", "d"), correct_answer="a")

    command = view.parse_practice_command("a", question)

    assert command == view.PracticeCommand("select", "b")


def test_parse_without_question_ignores_selections():
    assert view.parse_practice_command("a") is None


def test_render_question_and_feedback(store):
    quiz = QuizSession(store, "default", rng=random.Random(0))
    console = _console()

    view.render_question(console, quiz)
    quiz.select_option("Despite")
    quiz.submit()
    view.render_feedback(console, quiz)

    output = console.export_text()
    assert "Question 1" in output
    assert "Intermediate" in output
    assert "点击选项填充" in output
    assert "回答错误 / Incorrect: Although" in output
    assert "Although introduces a clause." in output


def test_run_practice_session_to_completion(store):
    quiz = QuizSession(store, "default", rng=random.Random(0))
    console = _console()
    inputs = _inputs("Although", "s", "n", "Although", "s", "n")

    outcome = view.run_practice_session(quiz, console, inputs)

    output = console.export_text()
    assert outcome.exit_action == "finished"
    assert outcome.summary.correct_answers == 2
    assert "回答正确！/ Correct!" in output
    assert "Submit an answer first." not in output
    assert "Practice Summary" in output
    assert "2/2" in output
    assert "Excellent!" in output


def test_run_practice_session_reports_illegal_moves(store):
    quiz = QuizSession(store, "default", rng=random.Random(0))
    console = _console()
    inputs = _inputs("s", "n", "Despite", "s", "Although", "???", "q")

    outcome = view.run_practice_session(quiz, console, inputs)

    output = console.export_text()
    assert outcome.exit_action == "quit"
    assert "Select an option before submitting." in output
    assert "Submit an answer first." in output
    assert "Answer already submitted." in output
    assert "Unrecognized command. Try again." in output
    assert "Ending session early." in output
    assert outcome.summary.answered_questions == 1
    assert quiz.answers[0].selected_option == "Despite"


def test_run_practice_session_handles_eof(store):
    quiz = QuizSession(store, "default", rng=random.Random(0))
    console = _console()

    def raise_eof() -> str:
        raise EOFError

    outcome = view.run_practice_session(quiz, console, raise_eof)

    assert outcome.exit_action == "quit"
    assert "Session interrupted." in console.export_text()


def test_restart_command_reshuffles(store):
    quiz = QuizSession(store, "default", rng=random.Random(0))
    console = _console()
    inputs = _inputs("Although", "s", "r", "q")

    view.run_practice_session(quiz, console, inputs)

    assert "Restarted with a fresh shuffle." in console.export_text()
    assert quiz.answers == ()
    assert quiz.phase is SessionPhase.AWAITING_SELECTION
