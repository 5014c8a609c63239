from __future__ import annotations

from typing import List

import pytest
from PyQt6.QtWidgets import QApplication

from saturation_client.active_state import ActiveStateController
from saturation_client.control_surface import ControlSurface
from saturation_client.display_topology import DisplayInfo
from saturation_client.qt_host import SLIDER_STEPS, QtDisplayTopology, SaturationIndicator
from saturation_client.settings_store import KEY_SATURATION_FACTORS, SETTINGS_FILE, SettingsStore


@pytest.fixture
def qt_app():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def _bind(indicator: SaturationIndicator, store: SettingsStore) -> ActiveStateController:
    surface = ControlSurface(
        store,
        set_slider_value_fn=indicator.set_slider_value,
        set_interactive_fn=indicator.set_interactive,
    )
    active_state = ActiveStateController(surface, resync_fn=lambda _flag: None)
    indicator.bind(surface, active_state)
    return active_state


@pytest.mark.pyqt_required
def test_programmatic_refresh_does_not_write_back(qt_app, tmp_path):
    store = SettingsStore(tmp_path / SETTINGS_FILE)
    store.set({KEY_SATURATION_FACTORS: [0.6]})
    indicator = SaturationIndicator()
    try:
        _bind(indicator, store)
        writes: List[dict] = []
        original_set = store.set
        store.set = lambda partial: (writes.append(partial), original_set(partial))[1]  # type: ignore[method-assign]

        indicator._surface.refresh_from_settings()

        assert indicator.slider.value() == int(round(0.3 * SLIDER_STEPS))
        assert writes == []
    finally:
        indicator.destroy()


@pytest.mark.pyqt_required
def test_user_slider_change_writes_global_saturation(qt_app, tmp_path):
    store = SettingsStore(tmp_path / SETTINGS_FILE)
    indicator = SaturationIndicator()
    try:
        _bind(indicator, store)

        indicator.slider.setValue(750)

        assert store.get().saturation_factors[0] == pytest.approx(1.5)
    finally:
        indicator.destroy()


@pytest.mark.pyqt_required
def test_toggle_action_dims_slider(qt_app, tmp_path):
    store = SettingsStore(tmp_path / SETTINGS_FILE)
    indicator = SaturationIndicator()
    try:
        active_state = _bind(indicator, store)

        indicator.toggle_action.setChecked(False)

        assert active_state.active is False
        assert indicator.slider.isEnabled() is False

        indicator.toggle_action.setChecked(True)
        assert indicator.slider.isEnabled() is True
    finally:
        indicator.destroy()


@pytest.mark.pyqt_required
def test_topology_snapshot_lists_screens(qt_app):
    posted = []
    topology = QtDisplayTopology(qt_app, post_fn=posted.append)
    try:
        snapshot = topology.snapshot()
        assert len(snapshot.displays) == len(qt_app.screens())
        assert all(isinstance(display, DisplayInfo) for display in snapshot.displays)

        seen = []
        topology.subscribe(lambda: seen.append("changed"))
        topology._schedule_changed()
        topology._schedule_changed()
        assert len(posted) == 1
        posted[0]()
        assert seen == ["changed"]
    finally:
        topology.close()


@pytest.mark.pyqt_required
def test_programmatic_disable_unchecks_toggle(qt_app, tmp_path):
    store = SettingsStore(tmp_path / SETTINGS_FILE)
    indicator = SaturationIndicator()
    try:
        surface = ControlSurface(
            store,
            set_slider_value_fn=indicator.set_slider_value,
            set_interactive_fn=indicator.set_interactive,
        )
        resyncs: List[bool] = []
        active_state = ActiveStateController(
            surface,
            resync_fn=resyncs.append,
            on_state_change=indicator.set_toggle_checked,
        )
        indicator.bind(surface, active_state)

        active_state.disable()

        assert indicator.toggle_action.isChecked() is False
        assert indicator.slider.isEnabled() is False
        assert resyncs == [False]
    finally:
        indicator.destroy()
