"""Settings that tune registry behaviour."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import tomllib
from platformdirs import user_config_dir

DEFAULT_APP_NAME = "srcreg"
CONFIG_FILE_NAME = "config.toml"
CONFIG_TABLE = "registry"

_ENV_KEY_MAP: dict[str, str] = {
    "self_name": "SRCREG_SELF_NAME",
    "dedupe_dependencies": "SRCREG_DEDUPE_DEPENDENCIES",
    "max_layer_depth": "SRCREG_MAX_LAYER_DEPTH",
}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Return the platform-specific default config path for srcreg."""

    base_dir = Path(user_config_dir(DEFAULT_APP_NAME, appauthor=False))
    return base_dir / CONFIG_FILE_NAME


def _load_config_from_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc)
        return {}
    table = data.get(CONFIG_TABLE)
    if isinstance(table, dict):
        return dict(table)
    return data


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} expects a boolean, got {value!r}.")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key} expects an integer, got {value!r}.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} expects an integer, got {value!r}.") from exc


@dataclass(frozen=True)
class RegistrySettings:
    """Registry-wide knobs.

    ``self_name`` is the reserved name under which a registry resolves to
    itself. ``dedupe_dependencies`` collapses repeated requests of the same
    dependency during one construction, keeping first-seen order.
    ``max_layer_depth`` bounds the overlay chain of the provider store
    before it gets compacted.
    """

    self_name: str = "Src"
    dedupe_dependencies: bool = True
    max_layer_depth: int = 32

    def __post_init__(self) -> None:
        if not self.self_name:
            raise ValueError("self_name cannot be empty.")
        if "::" in self.self_name:
            raise ValueError("self_name may not contain '::'.")
        if self.max_layer_depth < 1:
            raise ValueError("max_layer_depth must be at least 1.")

    @classmethod
    def load(
        cls,
        path: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "RegistrySettings":
        """Read settings from a TOML file, then apply environment overrides."""

        config_path = Path(path) if path is not None else default_config_path()
        environ = os.environ if env is None else env
        raw = _load_config_from_file(config_path)
        for key, env_key in _ENV_KEY_MAP.items():
            if env_key in environ:
                raw[key] = environ[env_key]
        return cls().updated(**raw)

    def updated(self, **overrides: Any) -> "RegistrySettings":
        known = {field.name for field in fields(self)}
        values: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                logger.debug("ignoring unknown registry setting %s", key)
                continue
            if key == "dedupe_dependencies":
                values[key] = _coerce_bool(key, value)
            elif key == "max_layer_depth":
                values[key] = _coerce_int(key, value)
            else:
                values[key] = str(value)
        return replace(self, **values)
