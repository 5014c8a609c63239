from __future__ import annotations

from typing import Callable, Optional

from saturation_client.control_surface import ControlSurface


class ActiveStateController:
    """Enabled/disabled switch driven by the user; never persisted, starts enabled."""

    def __init__(
        self,
        surface: ControlSurface,
        *,
        resync_fn: Callable[[bool], None],
        on_state_change: Optional[Callable[[bool], None]] = None,
        log_fn: Optional[Callable[..., None]] = None,
    ) -> None:
        self._surface = surface
        self._resync = resync_fn
        self._on_state_change = on_state_change
        self._log_fn = log_fn
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def enable(self) -> None:
        self.set_enabled(True)

    def disable(self) -> None:
        self.set_enabled(False)

    def toggle(self) -> bool:
        self.set_enabled(not self._active)
        return self._active

    def set_enabled(self, enabled: bool) -> None:
        flag = bool(enabled)
        if flag == self._active:
            return
        self._active = flag
        self._log("Saturation effect %s", "enabled" if flag else "disabled")
        self._surface.set_active(flag)
        self._resync(flag)
        if self._on_state_change is not None:
            try:
                self._on_state_change(flag)
            except Exception as exc:
                self._log("Active state listener failed: %s", exc)

    def _log(self, message: str, *args: object) -> None:
        logger = self._log_fn
        if logger is None:
            return
        try:
            logger(message, *args)
        except Exception:
            pass
