from __future__ import annotations

import logging

import pytest

from grammar_master import app
from grammar_master.core import ConfigError, ConfigOverrides
from grammar_master.core.logging import LOGGER_NAME
from grammar_master.quizzer.manager.store import MemoryPersistentStore


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_bootstrap_fresh_workspace(tmp_path):
    ctx = app.bootstrap(env={}, workspace_path=tmp_path / "home")

    assert ctx.warnings == ()
    assert [bank.id for bank in ctx.store.list()] == ["default"]
    assert ctx.config.banks_path.parent == ctx.layout.banks_dir
    assert ctx.log_path.parent == ctx.layout.logs_dir
    assert ctx.log_path.exists()


def test_committed_bank_survives_restart(tmp_path):
    home = tmp_path / "home"
    ctx = app.bootstrap(env={}, workspace_path=home)
    draft = ctx.editor.new_draft()
    ctx.editor.rename(draft, "Inversion drills")

    assert ctx.editor.commit(draft).ok

    reloaded = app.bootstrap(env={}, workspace_path=home)
    assert reloaded.store.get(draft.id).name == "Inversion drills"
    assert ctx.config.banks_path.exists()


def test_malformed_bank_file_is_reported(tmp_path):
    home = tmp_path / "home"
    banks = home / "banks"
    banks.mkdir(parents=True)
    (banks / "banks.json").write_text("{broken", encoding="utf-8")

    ctx = app.bootstrap(env={}, workspace_path=home)

    assert len(ctx.warnings) == 1
    assert "malformed" in ctx.warnings[0]
    assert [bank.id for bank in ctx.store.list()] == ["default"]


def test_seeded_sessions_repeat_order(tmp_path):
    ctx = app.bootstrap(
        env={"GRAMMAR_MASTER_SEED": "11"},
        workspace_path=tmp_path / "home",
        persistent_store=MemoryPersistentStore(),
    )

    first = ctx.start_session("default")
    second = ctx.start_session("default")

    assert ctx.config.seed == 11
    assert first.session == second.session
    assert first.total == 5


def test_bootstrap_overrides_take_effect(tmp_path):
    ctx = app.bootstrap(
        env={},
        workspace_path=tmp_path / "home",
        overrides=ConfigOverrides(verbose=True, log_level="debug"),
        persistent_store=MemoryPersistentStore(),
    )

    assert ctx.config.verbose is True
    assert ctx.config.log_level == "DEBUG"
    assert any(
        getattr(handler, "_grammar_master_console", False)
        for handler in ctx.logger.handlers
    )


def test_bootstrap_config_errors_propagate(tmp_path):
    with pytest.raises(ConfigError):
        app.bootstrap(
            env={"GRAMMAR_MASTER_LOG_LEVEL": "chatty"},
            workspace_path=tmp_path / "home",
        )
