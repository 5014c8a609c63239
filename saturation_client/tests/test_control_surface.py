from __future__ import annotations

import types
from typing import Any, Dict, List, Mapping

import pytest

from saturation_client.control_surface import (
    ControlState,
    ControlSurface,
    saturation_from_slider,
    should_snap,
    slider_from_saturation,
)
from saturation_client.lifecycle import Subscription
from saturation_client.settings_store import KEY_SATURATION_FACTORS, Configuration


class FakeSettings:
    def __init__(self, factors=(1.0,)) -> None:
        self.factors = list(factors)
        self.writes: List[Dict[str, Any]] = []

    def get(self) -> Configuration:
        return Configuration(saturation_factors=tuple(self.factors))

    def set(self, partial: Mapping[str, Any]) -> List[str]:
        self.writes.append(dict(partial))
        self.factors = list(partial[KEY_SATURATION_FACTORS])
        return [KEY_SATURATION_FACTORS]

    def subscribe(self, handler) -> Subscription:
        return Subscription(lambda: None)


def _build(settings: FakeSettings, *, echo: bool = True):
    calls = types.SimpleNamespace(slider=[], interactive=[], logs=[])
    surface_ref: Dict[str, ControlSurface] = {}

    def set_slider_value(value: float) -> None:
        calls.slider.append(value)
        if echo:
            # Qt reports programmatic sets through the same valueChanged signal.
            surface_ref["surface"].handle_value_changed(value)

    surface = ControlSurface(
        settings,
        set_slider_value_fn=set_slider_value,
        set_interactive_fn=calls.interactive.append,
        log_fn=lambda msg, *args: calls.logs.append((msg, args)),
    )
    surface_ref["surface"] = surface
    return surface, calls


def test_initial_state_reflects_stored_global_saturation() -> None:
    surface, _calls = _build(FakeSettings([1.4]))

    assert surface.state == ControlState(active=True, slider_value=pytest.approx(0.7), echo_suppressed=False)


def test_external_change_updates_slider_without_write_back() -> None:
    settings = FakeSettings([1.0])
    surface, calls = _build(settings)

    settings.factors = [0.6, 1.5]
    surface.refresh_from_settings()

    assert calls.slider == [pytest.approx(0.3)]
    assert settings.writes == []
    assert surface.state.echo_suppressed is False


def test_refresh_clamps_out_of_range_storage() -> None:
    settings = FakeSettings([9.0])
    surface, calls = _build(settings)

    surface.refresh_from_settings()

    assert calls.slider == [1.0]
    assert settings.writes == []


def test_user_change_writes_only_global_slot() -> None:
    settings = FakeSettings([1.0, 0.3, 1.7])
    surface, _calls = _build(settings)

    surface.handle_value_changed(0.8)

    assert settings.writes == [{KEY_SATURATION_FACTORS: [1.6, 0.3, 1.7]}]
    assert surface.state.slider_value == 0.8


def test_user_change_creates_missing_global_slot() -> None:
    settings = FakeSettings([])
    surface, _calls = _build(settings)

    surface.handle_value_changed(0.25)

    assert settings.writes == [{KEY_SATURATION_FACTORS: [0.5]}]


@pytest.mark.parametrize("released", [0.45, 0.47, 0.5, 0.53, 0.55])
def test_release_near_center_snaps_to_neutral(released: float) -> None:
    settings = FakeSettings([1.0, 0.2])
    surface, calls = _build(settings)

    surface.handle_release(released)

    assert calls.slider == [0.5]
    assert settings.writes == [{KEY_SATURATION_FACTORS: [1.0, 0.2]}]
    assert surface.state.slider_value == 0.5


@pytest.mark.parametrize("released", [0.0, 0.2, 0.44, 0.56, 0.9, 1.0])
def test_release_away_from_center_persists_unmodified(released: float) -> None:
    settings = FakeSettings([1.0])
    surface, calls = _build(settings)

    surface.handle_release(released)

    assert calls.slider == []
    assert settings.writes == [{KEY_SATURATION_FACTORS: [released * 2.0]}]


@pytest.mark.parametrize("value", [0.0, 0.1, 0.3, 0.5, 0.77, 1.0])
def test_slider_round_trip_is_lossless(value: float) -> None:
    assert slider_from_saturation(saturation_from_slider(value)) == value


def test_snap_threshold_boundaries() -> None:
    assert should_snap(0.55)
    assert should_snap(0.45)
    assert not should_snap(0.5501)
    assert not should_snap(0.4499)


def test_guard_is_released_when_display_update_fails() -> None:
    settings = FakeSettings([1.0])

    def _boom(_value: float) -> None:
        raise RuntimeError("widget gone")

    surface = ControlSurface(settings, set_slider_value_fn=_boom, set_interactive_fn=lambda _flag: None)

    with pytest.raises(RuntimeError):
        surface.refresh_from_settings()
    assert surface.state.echo_suppressed is False

    surface.handle_value_changed(0.25)
    assert settings.writes == [{KEY_SATURATION_FACTORS: [0.5]}]


def test_set_active_toggles_interactivity() -> None:
    surface, calls = _build(FakeSettings())

    surface.set_active(False)
    surface.set_active(True)

    assert calls.interactive == [False, True]
    assert surface.state.active is True


def test_detached_surface_ignores_ui_updates() -> None:
    settings = FakeSettings([0.4])
    surface, calls = _build(settings)
    surface.detach()

    surface.refresh_from_settings()
    surface.set_active(False)

    assert surface.attached is False
    assert calls.slider == []
    assert calls.interactive == []
    assert calls.logs
