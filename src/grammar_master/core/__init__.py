"""Core shared helpers: configuration, logging and the data workspace."""

from __future__ import annotations

from .config import (
    ConfigError,
    ConfigOverrides,
    GrammarMasterConfig,
    LoadResult,
    load_config,
    load_toml,
    merge_defaults,
    write_config_template,
)
from .logging import JsonLogFormatter, configure_logger, get_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
    resolve_home,
)

__all__ = [
    "ConfigError",
    "ConfigOverrides",
    "GrammarMasterConfig",
    "LoadResult",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_config_template",
    "JsonLogFormatter",
    "configure_logger",
    "get_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
    "resolve_home",
]
