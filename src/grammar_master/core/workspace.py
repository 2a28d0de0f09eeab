"""Data home for grammar-master: config, logs and stored banks."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

WORKSPACE_ENV = "GRAMMAR_MASTER_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".grammar-master-data"
WORKSPACE_DIRS = ("config", "logs", "banks")


class WorkspaceError(RuntimeError):
    """Raised when the data home cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved data-home directories and whether each was just created."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    @property
    def config_dir(self) -> Path:
        return self.path_for("config")

    @property
    def logs_dir(self) -> Path:
        return self.path_for("logs")

    @property
    def banks_dir(self) -> Path:
        return self.path_for("banks")


def resolve_home(
    env: Mapping[str, str], path: Path | None = None
) -> tuple[Path, bool]:
    """Return the data home and whether the caller chose it explicitly."""

    if path is not None:
        chosen, explicit = path, True
    elif (env.get(WORKSPACE_ENV) or "").strip():
        chosen, explicit = Path(env[WORKSPACE_ENV].strip()), True
    else:
        chosen, explicit = DEFAULT_WORKSPACE, False
    chosen = chosen.expanduser()
    try:
        return chosen.resolve(), explicit
    except FileNotFoundError:  # pragma: no cover - platform dependent
        return chosen.absolute(), explicit


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Prepare the data home and return its layout.

    An unwritable default home is swapped for a temp directory. Homes set
    through ``path`` or ``GRAMMAR_MASTER_DATA_HOME`` never are; failing to
    create them raises :class:`WorkspaceError`.
    """

    home, explicit = resolve_home(os.environ if env is None else env, path)
    homes = [home]
    if create and not explicit and _fallback_home() != home:
        homes.append(_fallback_home())

    denied: PermissionError | None = None
    for candidate in homes:
        try:
            return _build_layout(candidate, create=create)
        except PermissionError as exc:
            denied = exc
    raise WorkspaceError(f"Unable to prepare workspace at {home}") from denied


def _build_layout(home: Path, *, create: bool) -> WorkspaceLayout:
    targets = {"home": home}
    targets.update((name, home / name) for name in WORKSPACE_DIRS)
    created: dict[str, bool] = {}
    for key, target in targets.items():
        if target.exists() and not target.is_dir():
            raise WorkspaceError(
                f"Workspace entry '{key}' is not a directory: {target}"
            )
        created[key] = _make_private_dir(target) if create else False
    del targets["home"]
    return WorkspaceLayout(
        home=home,
        directories=MappingProxyType(targets),
        created=MappingProxyType(created),
    )


def _make_private_dir(path: Path) -> bool:
    existed = path.is_dir()
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return not existed


def _fallback_home() -> Path:
    return Path(tempfile.gettempdir()) / "grammar-master-data"
