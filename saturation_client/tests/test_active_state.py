from __future__ import annotations

import types

from saturation_client.active_state import ActiveStateController
from saturation_client.control_surface import ControlSurface
from saturation_client.lifecycle import Subscription
from saturation_client.settings_store import Configuration


class ReadOnlySettings:
    def __init__(self) -> None:
        self.writes = []

    def get(self) -> Configuration:
        return Configuration(saturation_factors=(1.5, 0.5))

    def set(self, partial):
        self.writes.append(partial)
        return list(partial)

    def subscribe(self, handler) -> Subscription:
        return Subscription(lambda: None)


def _build():
    calls = types.SimpleNamespace(interactive=[], resync=[], listener=[], order=[])
    settings = ReadOnlySettings()

    def set_interactive(flag: bool) -> None:
        calls.interactive.append(flag)
        calls.order.append("surface")

    def resync(flag: bool) -> None:
        calls.resync.append(flag)
        calls.order.append("resync")

    surface = ControlSurface(settings, set_slider_value_fn=lambda _v: None, set_interactive_fn=set_interactive)
    controller = ActiveStateController(surface, resync_fn=resync, on_state_change=calls.listener.append)
    return controller, surface, settings, calls


def test_starts_enabled() -> None:
    controller, surface, _settings, calls = _build()

    assert controller.active is True
    assert surface.state.active is True
    assert calls.resync == []


def test_disable_dims_surface_then_resyncs() -> None:
    controller, surface, settings, calls = _build()

    controller.disable()

    assert controller.active is False
    assert surface.state.active is False
    assert calls.order == ["surface", "resync"]
    assert calls.resync == [False]
    assert calls.listener == [False]
    assert settings.writes == []


def test_repeated_transition_is_ignored() -> None:
    controller, _surface, _settings, calls = _build()

    controller.enable()
    controller.disable()
    controller.disable()

    assert calls.resync == [False]


def test_toggle_flips_and_reports_state() -> None:
    controller, _surface, settings, calls = _build()

    assert controller.toggle() is False
    assert controller.toggle() is True
    assert calls.interactive == [False, True]
    assert calls.resync == [False, True]
    assert settings.writes == []


def test_listener_failure_does_not_block_transition() -> None:
    calls = []
    surface = ControlSurface(
        ReadOnlySettings(), set_slider_value_fn=lambda _v: None, set_interactive_fn=lambda _flag: None
    )

    def _boom(_flag: bool) -> None:
        raise RuntimeError("listener")

    controller = ActiveStateController(
        surface,
        resync_fn=calls.append,
        on_state_change=_boom,
        log_fn=lambda *args: None,
    )

    controller.disable()

    assert controller.active is False
    assert calls == [False]
