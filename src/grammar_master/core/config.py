"""TOML configuration for grammar-master.

Settings resolve with the precedence explicit overrides > environment >
``grammar_master.toml`` > built-in defaults. The config file lives in the
workspace ``config/`` directory unless ``GRAMMAR_MASTER_CONFIG`` points
elsewhere.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

try:  # Python >= 3.11 ships ``tomllib`` in the stdlib.
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - defensive guard
    raise RuntimeError("Python 3.11+ is required for tomllib support.") from exc

from . import workspace as workspace_mod

__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigOverrides",
    "GrammarMasterConfig",
    "LoadResult",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_config_template",
]

CONFIG_FILENAME = "grammar_master.toml"
CONFIG_ENV = "GRAMMAR_MASTER_CONFIG"
ENV_PREFIX = "GRAMMAR_MASTER_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_DEFAULTS: Mapping[str, Mapping[str, Any]] = {
    "storage": {"filename": "banks.json"},
    "session": {"seed": None},
    "logging": {"level": "INFO", "verbose": False},
}

CONFIG_TEMPLATE = """\
# grammar-master configuration

[storage]
# Custom banks file, relative to the workspace banks/ directory.
filename = "banks.json"

[session]
# Uncomment for reproducible shuffling.
# seed = 1234

[logging]
level = "INFO"
verbose = false
"""


class ConfigError(RuntimeError):
    """Raised when config IO or validation fails."""


@dataclass(frozen=True)
class GrammarMasterConfig:
    """Fully resolved settings."""

    banks_path: Path
    seed: Optional[int]
    log_level: str
    verbose: bool


@dataclass(frozen=True)
class ConfigOverrides:
    """Caller-supplied values applied on top of env and file options."""

    banks_path: Optional[Path] = None
    seed: Optional[int] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    """Configuration plus the workspace it was resolved against."""

    config: GrammarMasterConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_toml(path: Path) -> Mapping[str, Any]:
    """Load a TOML document from ``path``."""

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base`` enforcing known keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted, type(value).__name__
                    )
                )
            merge_defaults(base_value, value, path=f"{dotted}.")
            continue
        base[key] = value


def write_config_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the commented default config to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve configuration and prepare the workspace it points into."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc

    requested = _resolve_config_path(config_path, env_map, layout)
    table: MutableMapping[str, Any] = {
        key: dict(value) for key, value in _DEFAULTS.items()
    }

    loaded_path: Optional[Path] = None
    if requested.exists():
        merge_defaults(table, load_toml(requested))
        loaded_path = requested
    elif config_path is not None or env_map.get(CONFIG_ENV, "").strip():
        raise ConfigError(f"Config file not found: {requested}")

    banks_path = overrides.banks_path or _resolve_banks_path(
        table["storage"]["filename"], layout
    )
    seed = _pick_first(
        overrides.seed,
        _parse_env_int(env_map, "SEED"),
        table["session"]["seed"],
    )
    log_level = _pick_first(
        overrides.log_level,
        _parse_env_string(env_map, "LOG_LEVEL"),
        table["logging"]["level"],
    )
    verbose = _pick_first(overrides.verbose, table["logging"]["verbose"])

    config = GrammarMasterConfig(
        banks_path=banks_path,
        seed=_require_optional_int(seed, field="session.seed"),
        log_level=_require_level(log_level),
        verbose=_require_bool(verbose, field="logging.verbose"),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _resolve_config_path(
    explicit: Optional[Path],
    env_map: Mapping[str, str],
    layout: workspace_mod.WorkspaceLayout,
) -> Path:
    if explicit is not None:
        return explicit.expanduser()
    candidate = env_map.get(CONFIG_ENV, "").strip()
    if candidate:
        return Path(candidate).expanduser()
    return layout.config_dir / CONFIG_FILENAME


def _resolve_banks_path(
    value: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("storage.filename must be a non-empty string.")
    candidate = Path(value.strip()).expanduser()
    if candidate.is_absolute():
        return candidate
    return layout.banks_dir / candidate


def _require_optional_int(value: object, *, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{field}' must be an integer.")
    return value


def _require_bool(value: object, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_level(value: object) -> str:
    if not isinstance(value, str) or value.strip().upper() not in _LOG_LEVELS:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return value.strip().upper()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _parse_env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{key} must be an integer.") from exc


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
