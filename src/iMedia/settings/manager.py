"""Library settings: a validated JSON file with change listeners."""

from __future__ import annotations

import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, List, Optional

from jsonschema import ValidationError

from ..errors import SettingsLoadError, SettingsValidationError
from ..utils.jsonio import read_json, write_json
from ..utils.logging import get_logger
from .schema import DEFAULT_SETTINGS, merge_with_defaults

LOGGER = get_logger(__name__)

SettingsListener = Callable[[str, Any], None]

_APP_DIR = "iMedia"
_FILE_NAME = "settings.json"


def default_settings_path() -> Path:
    """Return the per-user settings file location for this platform."""

    if os.name == "nt":
        root = os.environ.get("APPDATA")
        base = Path(root) if root else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        root = os.environ.get("XDG_CONFIG_HOME")
        base = Path(root) if root else Path.home() / ".config"
    return base / _APP_DIR / _FILE_NAME


def _lookup(data: dict[str, Any], dotted: str, default: Any) -> Any:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def _assign(data: dict[str, Any], dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    node = data
    for part in parents:
        if not isinstance(node.get(part), dict):
            node[part] = {}
        node = node[part]
    node[leaf] = value


class SettingsManager:
    """Load, validate and persist library settings.

    Settings live in memory as a merged copy of :data:`DEFAULT_SETTINGS`;
    every successful :meth:`set` rewrites the file and notifies listeners.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)
        self._listeners: List[SettingsListener] = []

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def data(self) -> dict[str, Any]:
        return deepcopy(self._data)

    def subscribe(self, listener: SettingsListener) -> None:
        """Call *listener* with ``(key, value)`` after every successful :meth:`set`."""
        self._listeners.append(listener)

    def load(self) -> None:
        """Read the settings file, or create it from defaults when missing."""

        path = self._resolve_path()
        payload = read_json(path) if path.exists() else None
        if payload is not None and not isinstance(payload, dict):
            raise SettingsLoadError(f"Settings file {path} does not hold an object")
        try:
            self._data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        LOGGER.debug("[SETTINGS] Loaded %s", path)
        self._write()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value at dotted *key* such as ``"store.backend"``."""
        return _lookup(self._data, key, default)

    def set(self, key: str, value: Any) -> None:
        """Update dotted *key* and persist; an invalid value changes nothing."""

        if isinstance(value, Path):
            value = str(value)
        candidate = deepcopy(self._data)
        _assign(candidate, key, value)
        try:
            self._data = merge_with_defaults(candidate)
        except ValidationError as exc:
            raise SettingsValidationError(f"{key}: {exc.message}") from exc
        self._write()
        LOGGER.info("[SETTINGS] %s updated", key)
        for listener in list(self._listeners):
            listener(key, value)

    def _resolve_path(self) -> Path:
        if self._path is None:
            self._path = default_settings_path()
        return self._path

    def _write(self) -> None:
        path = self._resolve_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        write_json(path, self._data)


__all__ = ["SettingsManager", "default_settings_path"]
