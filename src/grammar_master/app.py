"""Application wiring: config, workspace, logging and the bank store.

:func:`bootstrap` builds one :class:`AppContext`; callers pass it (or the
pieces they need) to sessions and editors explicitly.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .core import config as config_mod
from .core.logging import LOGGER_NAME, configure_logger
from .core.workspace import WorkspaceLayout
from .quizzer.manager.editor import BankEditor
from .quizzer.manager.store import (
    BankStore,
    FilePersistentStore,
    PersistentStore,
)
from .quizzer.session import QuizSession


@dataclass(frozen=True)
class AppContext:
    """Long-lived collaborators for one process."""

    config: config_mod.GrammarMasterConfig
    layout: WorkspaceLayout
    logger: logging.Logger
    log_path: Path
    store: BankStore
    editor: BankEditor
    warnings: tuple[str, ...] = ()

    def start_session(self, bank_id: str) -> QuizSession:
        """Begin a practice run; seeded when the config provides a seed."""

        rng = random.Random(self.config.seed)
        return QuizSession(
            self.store,
            bank_id,
            rng=rng,
            logger=self.logger.getChild("session"),
        )


def bootstrap(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[config_mod.ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
    persistent_store: Optional[PersistentStore] = None,
) -> AppContext:
    """Load configuration and return an initialized :class:`AppContext`.

    Configuration problems raise :class:`~grammar_master.core.ConfigError`.
    Problems reading stored banks do not; they are logged and collected in
    ``AppContext.warnings`` while the default bank stays available.
    """

    loaded = config_mod.load_config(
        config_path=config_path,
        overrides=overrides,
        env=env,
        workspace_path=workspace_path,
    )
    config = loaded.config
    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.logs_dir,
        level=config.log_level,
        verbose=config.verbose,
    )
    logger.debug(
        "Configuration loaded",
        extra={
            "config_path": loaded.config_path,
            "banks_path": config.banks_path,
        },
    )

    backend = persistent_store or FilePersistentStore(config.banks_path)
    store = BankStore(backend, logger=logger.getChild("store"))
    warnings = tuple(store.initialize())
    editor = BankEditor(store, logger=logger.getChild("editor"))
    return AppContext(
        config=config,
        layout=loaded.layout,
        logger=logger,
        log_path=log_path,
        store=store,
        editor=editor,
        warnings=warnings,
    )
