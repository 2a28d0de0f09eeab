from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from grammar_master.core import logging as core_logging


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler
        for handler in logger.handlers
        if getattr(handler, "_grammar_master_console", False)
    ]


def test_configure_logger_writes_json_lines(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "grammar_master.test_json",
        log_dir=tmp_path / "logs",
        filename="json.log",
    )

    logger.info(
        "Bank saved",
        extra={"bank_id": "b1", "question_count": 3, "path": tmp_path},
    )
    logger.info("题库已保存", extra={"problems": ("a", "b")})
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("Failed to persist banks", extra={"obj": object})
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    first = json.loads(lines[0])
    assert first["message"] == "Bank saved"
    assert first["level"] == "INFO"
    assert first["extra"] == {
        "bank_id": "b1",
        "question_count": 3,
        "path": str(tmp_path),
    }
    assert "题库已保存" in lines[1]
    assert json.loads(lines[1])["extra"]["problems"] == ["a", "b"]
    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["obj"] == repr(object)

    _reset(logger)


def test_configure_logger_respects_level(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "grammar_master.test_level",
        log_dir=tmp_path,
        level="warning",
        filename="level.log",
    )

    logger.info("quiet")
    logger.warning("loud")
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["loud"]

    _reset(logger)


def test_configure_logger_reuses_and_replaces_file_handler(tmp_path):
    name = "grammar_master.test_reuse"
    logger, first = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )
    _, again = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )
    assert again == first
    assert len(logger.handlers) == 1

    _, moved = core_logging.configure_logger(
        name, log_dir=tmp_path / "b", filename="reuse.log"
    )

    assert moved.parent == (tmp_path / "b").resolve()
    assert len(logger.handlers) == 1

    _reset(logger)


def test_console_handler_toggle(tmp_path):
    name = "grammar_master.test_toggle"
    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=False, filename="toggle.log"
    )
    assert not _console_handlers(logger)

    _reset(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    blocked = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == blocked:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging, "_fallback_dir", lambda: fallback)

    logger, log_path = core_logging.configure_logger(
        "grammar_master.test_blocked",
        log_dir=blocked,
        filename="blocked.log",
    )

    assert log_path.parent == fallback.resolve()
    assert log_path.exists()

    _reset(logger)


def test_configure_logger_rotating_handler_fallback(tmp_path, monkeypatch):
    calls = {"count": 0}
    fallback = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_dir", lambda: fallback)

    logger, log_path = core_logging.configure_logger(
        "grammar_master.test_rotating",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback.resolve()
    assert calls["count"] == 2

    _reset(logger)


def test_fallback_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_dir() == tmp_path / "grammar-master-logs"


def test_get_logger_names_components():
    assert core_logging.get_logger().name == "grammar_master"
    assert core_logging.get_logger("store").name == "grammar_master.store"


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
