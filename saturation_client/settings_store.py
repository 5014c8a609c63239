"""JSON-backed configuration store with per-key change notification."""
from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from saturation_client.lifecycle import Subscription

SETTINGS_FILE = "saturation_settings.json"

KEY_MONITOR_IDS = "monitor-ids"
KEY_SATURATION_FACTORS = "saturation-factors"
KEY_HUE_SHIFTS = "hue-shifts"
KEY_INVERT_COLORS = "invert-colors"
KEY_USE_PER_MONITOR = "use-per-monitor-settings"

_LIST_KEYS = (KEY_MONITOR_IDS, KEY_SATURATION_FACTORS, KEY_HUE_SHIFTS, KEY_INVERT_COLORS)

DEFAULTS: Dict[str, Any] = {
    KEY_MONITOR_IDS: [],
    KEY_SATURATION_FACTORS: [1.0],
    KEY_HUE_SHIFTS: [0.0],
    KEY_INVERT_COLORS: [False],
    KEY_USE_PER_MONITOR: False,
}

_LOGGER = logging.getLogger("Saturation.Client.Settings")

PostFn = Callable[[Callable[[], None]], None]
ChangeHandler = Callable[[str], None]


def _post_immediately(callback: Callable[[], None]) -> None:
    callback()


@dataclass(frozen=True)
class Configuration:
    """Read-only view of the stored keys; list entries are kept as stored, malformed or not."""

    monitor_ids: Tuple[str, ...] = ()
    saturation_factors: Tuple[Any, ...] = (1.0,)
    hue_shifts: Tuple[Any, ...] = (0.0,)
    invert_colors: Tuple[Any, ...] = (False,)
    use_per_monitor_settings: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Configuration":
        return cls(
            monitor_ids=tuple(str(item) for item in data.get(KEY_MONITOR_IDS, ())),
            saturation_factors=tuple(data.get(KEY_SATURATION_FACTORS, ())),
            hue_shifts=tuple(data.get(KEY_HUE_SHIFTS, ())),
            invert_colors=tuple(data.get(KEY_INVERT_COLORS, ())),
            use_per_monitor_settings=bool(data.get(KEY_USE_PER_MONITOR, False)),
        )


class SettingsPort(Protocol):
    def get(self) -> Configuration: ...

    def set(self, partial: Mapping[str, Any]) -> List[str]: ...

    def subscribe(self, handler: ChangeHandler) -> Subscription: ...


def _normalise(key: str, value: Any) -> Any:
    if key in _LIST_KEYS:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"{key} expects a list, got {type(value).__name__}")
        if key == KEY_MONITOR_IDS:
            return [str(item) for item in value]
        return list(value)
    if key == KEY_USE_PER_MONITOR:
        return bool(value)
    raise KeyError(key)


class SettingsStore:
    """Typed key/value store persisted to ``saturation_settings.json``.

    Writes are applied in memory and saved immediately; subscribers hear about
    each changed key through ``post_fn`` so a write issued inside a handler is
    observed by a later dispatch, not re-entrantly.
    """

    def __init__(self, path: Path, *, post_fn: Optional[PostFn] = None) -> None:
        self._path = Path(path)
        self._post = post_fn or _post_immediately
        self._values: Dict[str, Any] = deepcopy(DEFAULTS)
        self._handlers: List[ChangeHandler] = []
        self._values.update(self._read_file() or {})

    @property
    def path(self) -> Path:
        return self._path

    # Port ---------------------------------------------------------------

    def get(self) -> Configuration:
        return Configuration.from_mapping(self._values)

    def set(self, partial: Mapping[str, Any]) -> List[str]:
        """Apply ``partial`` and persist it; returns the keys whose values changed."""
        staged: Dict[str, Any] = {}
        for key, value in partial.items():
            if key not in DEFAULTS:
                raise KeyError(key)
            staged[key] = _normalise(key, value)
        changed = [key for key, value in staged.items() if self._values.get(key) != value]
        if not changed:
            return []
        for key in changed:
            self._values[key] = staged[key]
        self.save()
        for key in changed:
            self._notify(key)
        return changed

    def subscribe(self, handler: ChangeHandler) -> Subscription:
        self._handlers.append(handler)

        def _release() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return Subscription(_release, label="settings-changed")

    # Persistence ---------------------------------------------------------

    def reload(self) -> List[str]:
        """Re-read the file after an external edit and notify for changed keys.

        A file that cannot be read or parsed (for example one caught half
        written) leaves the current values in place.
        """
        values = self._read_file()
        if values is None:
            _LOGGER.debug("Reload of %s skipped; keeping current settings", self._path)
            return []
        loaded = deepcopy(DEFAULTS)
        loaded.update(values)
        changed = [key for key in DEFAULTS if self._values.get(key) != loaded[key]]
        for key in changed:
            self._values[key] = loaded[key]
        if changed:
            _LOGGER.debug("Settings reloaded from %s; changed keys=%s", self._path, changed)
        for key in changed:
            self._notify(key)
        return changed

    def save(self) -> None:
        payload = {key: self._values[key] for key in DEFAULTS}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            _LOGGER.warning("Failed to save settings to %s: %s", self._path, exc)

    def _read_file(self) -> Optional[Dict[str, Any]]:
        """Stored keys that parsed cleanly; ``{}`` when the file is missing, ``None`` when it is unusable."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            _LOGGER.warning("Unable to read settings from %s: %s", self._path, exc)
            return None
        try:
            data = json.loads(raw)
        except ValueError as exc:
            _LOGGER.warning("Ignoring malformed settings file %s: %s", self._path, exc)
            return None
        if not isinstance(data, dict):
            _LOGGER.warning("Ignoring settings file %s: top-level value is not an object", self._path)
            return None
        values: Dict[str, Any] = {}
        for key in DEFAULTS:
            if key not in data:
                continue
            try:
                values[key] = _normalise(key, data[key])
            except TypeError as exc:
                _LOGGER.debug("Using default for %s: %s", key, exc)
        return values

    # Notification --------------------------------------------------------

    def _notify(self, key: str) -> None:
        self._post(lambda: self._dispatch(key))

    def _dispatch(self, key: str) -> None:
        for handler in list(self._handlers):
            try:
                handler(key)
            except Exception as exc:
                _LOGGER.warning("Settings change handler failed for %s: %s", key, exc, exc_info=exc)
