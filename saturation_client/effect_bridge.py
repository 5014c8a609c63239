"""Outbound side of the sync layer: the effect port and a file-backed implementation."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from saturation_client.monitor_resolver import MAX_MONITORS_SUPPORTED

EFFECT_STATE_FILE = "effect_state.json"

_LOGGER = logging.getLogger("Saturation.Client.Effect")


class EffectPort(Protocol):
    def attach(self) -> None: ...

    def detach(self) -> None: ...

    def set_params(self, params: Mapping[str, Any]) -> None: ...

    def set_monitor_params(self, count: int, rects: Sequence[int], compositor_size: Tuple[int, int]) -> None: ...


class EffectStateFile:
    """Publishes effect parameters to a JSON file an external renderer watches.

    The file exists only while attached; removing it tells the renderer to
    fall back to neutral output.
    """

    def __init__(self, path: Path, *, logger: Optional[logging.Logger] = None) -> None:
        self._path = Path(path)
        self._logger = logger or _LOGGER
        self._attached = False
        self._state: Dict[str, Any] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def state(self) -> Dict[str, Any]:
        return dict(self._state)

    def attach(self) -> None:
        if self._attached:
            return
        self._attached = True
        self._state = {
            "max_monitors": MAX_MONITORS_SUPPORTED,
            "monitors": {"count": 0, "rects": [], "compositor_size": [0, 0]},
            "params": {},
        }
        self._write()
        self._logger.debug("Effect attached; publishing to %s", self._path)

    def detach(self) -> None:
        if not self._attached:
            return
        self._attached = False
        self._state = {}
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        self._logger.debug("Effect detached; removed %s", self._path)

    def set_params(self, params: Mapping[str, Any]) -> None:
        if not self._attached:
            self._logger.debug("Effect params dropped while detached")
            return
        self._state["params"] = dict(params)
        self._write()

    def set_monitor_params(self, count: int, rects: Sequence[int], compositor_size: Tuple[int, int]) -> None:
        if not self._attached:
            self._logger.debug("Monitor params dropped while detached")
            return
        flat: List[int] = [int(value) for value in rects]
        self._state["monitors"] = {
            "count": int(count),
            "rects": flat,
            "compositor_size": [int(compositor_size[0]), int(compositor_size[1])],
        }
        self._write()

    def _write(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._state, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            self._logger.warning("Failed to publish effect state to %s: %s", self._path, exc)
