"""Bidirectional binding between the saturation slider and ``saturation-factors[0]``.

The controller stays free of Qt types: the host injects callables that push a
value into the displayed control and toggle its interactivity. Qt emits a
value-changed signal for programmatic updates too, so every programmatic set
happens inside ``programmatic_update()`` and user handlers ignore calls made
while it is held.
"""
from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, Iterator, Optional

from saturation_client.effect_params import (
    GLOBAL_SATURATION_MAX,
    GLOBAL_SATURATION_MIN,
    clamp,
    read_global_saturation,
)
from saturation_client.settings_store import KEY_SATURATION_FACTORS, SettingsPort

SNAP_CENTER = 0.5
SNAP_THRESHOLD = 0.05


@dataclass(frozen=True)
class ControlState:
    active: bool = True
    slider_value: float = SNAP_CENTER
    echo_suppressed: bool = False


def slider_from_saturation(saturation: float) -> float:
    return clamp(saturation / 2.0, 0.0, 1.0)


def saturation_from_slider(value: float) -> float:
    return clamp(value * 2.0, GLOBAL_SATURATION_MIN, GLOBAL_SATURATION_MAX)


def should_snap(value: float) -> bool:
    delta = abs(value - SNAP_CENTER)
    return delta <= SNAP_THRESHOLD or math.isclose(delta, SNAP_THRESHOLD, abs_tol=1e-9)


def begin_programmatic(state: ControlState) -> ControlState:
    return replace(state, echo_suppressed=True)


def end_programmatic(state: ControlState) -> ControlState:
    return replace(state, echo_suppressed=False)


def with_slider_value(state: ControlState, value: float) -> ControlState:
    return replace(state, slider_value=clamp(float(value), 0.0, 1.0))


def with_active(state: ControlState, active: bool) -> ControlState:
    return replace(state, active=bool(active))


class ControlSurface:
    def __init__(
        self,
        settings: SettingsPort,
        *,
        set_slider_value_fn: Callable[[float], None],
        set_interactive_fn: Callable[[bool], None],
        log_fn: Optional[Callable[..., None]] = None,
    ) -> None:
        self._settings = settings
        self._set_slider_value: Optional[Callable[[float], None]] = set_slider_value_fn
        self._set_interactive: Optional[Callable[[bool], None]] = set_interactive_fn
        self._log_fn = log_fn
        self._state = ControlState(slider_value=slider_from_saturation(read_global_saturation(settings.get())))

    @property
    def state(self) -> ControlState:
        return self._state

    @property
    def attached(self) -> bool:
        return self._set_slider_value is not None

    @contextmanager
    def programmatic_update(self) -> Iterator[None]:
        self._state = begin_programmatic(self._state)
        try:
            yield
        finally:
            self._state = end_programmatic(self._state)

    def refresh_from_settings(self) -> None:
        """Pull the global saturation from the store into the slider without writing back."""
        value = slider_from_saturation(read_global_saturation(self._settings.get()))
        self._push_value(value)

    def handle_value_changed(self, value: float) -> None:
        if self._state.echo_suppressed:
            return
        self._state = with_slider_value(self._state, value)
        self._write_back(self._state.slider_value)

    def handle_release(self, value: float) -> None:
        if self._state.echo_suppressed:
            return
        if should_snap(value):
            self._push_value(SNAP_CENTER)
            value = SNAP_CENTER
        self._state = with_slider_value(self._state, value)
        self._write_back(self._state.slider_value)

    def set_active(self, active: bool) -> None:
        self._state = with_active(self._state, active)
        setter = self._set_interactive
        if setter is None:
            self._log("Control surface detached; interactivity change to %s skipped", active)
            return
        setter(bool(active))

    def detach(self) -> None:
        """Drop the UI callbacks once the widgets are destroyed; later events become no-ops."""
        self._set_slider_value = None
        self._set_interactive = None

    def _push_value(self, value: float) -> None:
        self._state = with_slider_value(self._state, value)
        setter = self._set_slider_value
        if setter is None:
            self._log("Control surface detached; slider refresh skipped")
            return
        with self.programmatic_update():
            setter(self._state.slider_value)

    def _write_back(self, slider_value: float) -> None:
        saturation = saturation_from_slider(slider_value)
        factors = list(self._settings.get().saturation_factors)
        if factors:
            factors[0] = saturation
        else:
            factors = [saturation]
        self._settings.set({KEY_SATURATION_FACTORS: factors})

    def _log(self, message: str, *args: object) -> None:
        logger = self._log_fn
        if logger is None:
            return
        try:
            logger(message, *args)
        except Exception:
            pass
