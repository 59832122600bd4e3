"""Settings loading for gk."""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import cast

log = logging.getLogger(__name__)


class ConfigError(Exception):
    """Settings file could not be read or has invalid values."""


@dataclass(frozen=True)
class Settings:
    default_remote: str = "origin"
    log_count: int = 20
    recent_commits: int = 10
    rewind_presets: tuple[int, ...] = (1, 2, 3, 5)
    fuzzy_threshold: int = 15
    sources: tuple[Path, ...] = field(default=(), compare=False)


def user_settings_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "gk" / "settings.json"


def repo_settings_path(repo_root: Path) -> Path:
    return repo_root / ".gk" / "settings.json"


def _load_settings_file(path: Path) -> dict[str, object]:
    if not path.is_file():
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid settings format in {path}")
    return cast(dict[str, object], raw)


def _expect_positive_int(value: object, key: str, path: Path, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"Invalid {key} in {path}: expected an integer >= {minimum}")
    return value


def _expect_presets(value: object, path: Path) -> tuple[int, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"Invalid rewind_presets in {path}: expected a non-empty list")
    presets: list[int] = []
    for entry in value:
        if isinstance(entry, bool) or not isinstance(entry, int) or not 1 <= entry <= 99:
            raise ConfigError(f"Invalid rewind_presets in {path}: values must be 1-99")
        if entry not in presets:
            presets.append(entry)
    return tuple(presets)


def _apply(settings: Settings, raw: dict[str, object], path: Path) -> Settings:
    updates: dict[str, object] = {}
    for key, value in raw.items():
        if key == "default_remote":
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Invalid default_remote in {path}")
            updates[key] = value.strip()
        elif key in ("log_count", "recent_commits"):
            updates[key] = _expect_positive_int(value, key, path)
        elif key == "fuzzy_threshold":
            updates[key] = _expect_positive_int(value, key, path, minimum=0)
        elif key == "rewind_presets":
            updates[key] = _expect_presets(value, path)
        else:
            log.debug("ignoring unknown setting %r in %s", key, path)
    return replace(settings, sources=settings.sources + (path,), **updates)  # type: ignore[arg-type]


def load_settings(repo_root: Path | None = None) -> Settings:
    """Merge defaults, the user settings file and the repository settings file."""
    settings = Settings()
    paths = [user_settings_path()]
    if repo_root is not None:
        paths.append(repo_settings_path(repo_root))
    for path in paths:
        raw = _load_settings_file(path)
        if raw:
            settings = _apply(settings, raw, path)
    return settings
