"""PyQt6 adapters: display topology, settings file watching and the tray indicator."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from PyQt6.QtCore import QFileSystemWatcher, QObject, Qt, QTimer
from PyQt6.QtGui import QAction, QGuiApplication, QIcon, QScreen
from PyQt6.QtWidgets import (
    QGraphicsOpacityEffect,
    QHBoxLayout,
    QLabel,
    QMenu,
    QSlider,
    QSystemTrayIcon,
    QWidget,
    QWidgetAction,
)

from saturation_client.active_state import ActiveStateController
from saturation_client.control_surface import ControlSurface
from saturation_client.display_topology import MonitorSnapshot, TopologySnapshot, snapshot_from_monitors
from saturation_client.lifecycle import Subscription
from saturation_client.settings_store import SettingsStore

_LOGGER = logging.getLogger("Saturation.Client.Qt")

SLIDER_STEPS = 1000
DIMMED_OPACITY = 0.45
ICON_NAME = "color-select-symbolic"


def qt_post(callback: Callable[[], None]) -> None:
    """Queue ``callback`` behind the handler currently running on the Qt event loop."""
    QTimer.singleShot(0, callback)


class QtDisplayTopology(QObject):
    """Display topology port backed by ``QGuiApplication.screens()``."""

    def __init__(self, app: QGuiApplication, *, post_fn: Callable[[Callable[[], None]], None] = qt_post) -> None:
        super().__init__()
        self._app = app
        self._post = post_fn
        self._handlers: List[Callable[[], None]] = []
        self._pending = False
        app.screenAdded.connect(self._on_screen_added)
        app.screenRemoved.connect(self._on_screen_removed)
        for screen in app.screens():
            self._watch(screen)

    def monitors(self) -> List[MonitorSnapshot]:
        snapshot: List[MonitorSnapshot] = []
        for index, screen in enumerate(QGuiApplication.screens()):
            geometry = screen.geometry()
            name = screen.name() or screen.manufacturer() or f"screen-{index}"
            snapshot.append((name, geometry.x(), geometry.y(), geometry.width(), geometry.height()))
        return snapshot

    def snapshot(self) -> TopologySnapshot:
        compositor_size = None
        primary = QGuiApplication.primaryScreen()
        if primary is not None:
            virtual = primary.virtualGeometry()
            compositor_size = (virtual.width(), virtual.height())
        return snapshot_from_monitors(self.monitors(), compositor_size)

    def subscribe(self, handler: Callable[[], None]) -> Subscription:
        self._handlers.append(handler)

        def _release() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return Subscription(_release, label="topology-changed")

    def close(self) -> None:
        self._handlers.clear()
        try:
            self._app.screenAdded.disconnect(self._on_screen_added)
            self._app.screenRemoved.disconnect(self._on_screen_removed)
        except TypeError:
            pass

    def _watch(self, screen: QScreen) -> None:
        screen.geometryChanged.connect(self._schedule_changed)

    def _on_screen_added(self, screen: QScreen) -> None:
        _LOGGER.debug("Screen added: %s", screen.name())
        self._watch(screen)
        self._schedule_changed()

    def _on_screen_removed(self, screen: QScreen) -> None:
        # The removed screen is still listed while this signal runs.
        _LOGGER.debug("Screen removed: %s", screen.name())
        self._schedule_changed()

    def _schedule_changed(self, *_args: object) -> None:
        if self._pending:
            return
        self._pending = True
        self._post(self._emit_changed)

    def _emit_changed(self) -> None:
        self._pending = False
        for handler in list(self._handlers):
            try:
                handler()
            except Exception as exc:
                _LOGGER.warning("Topology change handler failed: %s", exc, exc_info=exc)


class SettingsFileWatcher(QObject):
    """Reloads the store when another tool rewrites the settings file."""

    def __init__(self, store: SettingsStore) -> None:
        super().__init__()
        self._store = store
        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_file_changed)
        self._watcher.directoryChanged.connect(self._on_directory_changed)
        path = store.path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._watcher.addPath(str(path.parent))
        self._watch_file()

    def close(self) -> None:
        paths = self._watcher.files() + self._watcher.directories()
        if paths:
            self._watcher.removePaths(paths)

    def _watch_file(self) -> None:
        path = str(self._store.path)
        if Path(path).exists() and path not in self._watcher.files():
            self._watcher.addPath(path)

    def _on_file_changed(self, _path: str) -> None:
        # Editors that replace the file drop it from the watch list.
        self._watch_file()
        self._store.reload()

    def _on_directory_changed(self, _path: str) -> None:
        if str(self._store.path) not in self._watcher.files():
            self._watch_file()
            self._store.reload()


class SaturationIndicator(QObject):
    """Tray icon whose menu carries the enable toggle and the saturation slider."""

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        super().__init__()
        self._logger = logger or _LOGGER
        self._surface: Optional[ControlSurface] = None
        self._active_state: Optional[ActiveStateController] = None

        self._menu = QMenu()
        self._toggle_action = QAction("Enabled", self._menu)
        self._toggle_action.setCheckable(True)
        self._toggle_action.setChecked(True)
        self._menu.addAction(self._toggle_action)
        self._menu.addSeparator()

        container = QWidget(self._menu)
        layout = QHBoxLayout(container)
        layout.setContentsMargins(12, 4, 12, 4)
        layout.addWidget(QLabel("Saturation", container))
        self._slider = QSlider(Qt.Orientation.Horizontal, container)
        self._slider.setRange(0, SLIDER_STEPS)
        self._slider.setMinimumWidth(180)
        layout.addWidget(self._slider)
        self._opacity = QGraphicsOpacityEffect(container)
        self._opacity.setOpacity(1.0)
        container.setGraphicsEffect(self._opacity)
        self._slider_action = QWidgetAction(self._menu)
        self._slider_action.setDefaultWidget(container)
        self._menu.addAction(self._slider_action)

        self._tray = QSystemTrayIcon(QIcon.fromTheme(ICON_NAME))
        self._tray.setToolTip("Saturation")
        self._tray.setContextMenu(self._menu)
        if not QSystemTrayIcon.isSystemTrayAvailable():
            self._logger.warning("System tray unavailable; saturation indicator will not be visible")
        self._tray.show()

    @property
    def slider(self) -> QSlider:
        return self._slider

    @property
    def toggle_action(self) -> QAction:
        return self._toggle_action

    def bind(self, surface: ControlSurface, active_state: ActiveStateController) -> None:
        self._surface = surface
        self._active_state = active_state
        self._slider.valueChanged.connect(self._on_value_changed)
        self._slider.sliderReleased.connect(self._on_slider_released)
        self._toggle_action.toggled.connect(self._on_toggled)

    def set_slider_value(self, value: float) -> None:
        self._slider.setValue(int(round(value * SLIDER_STEPS)))

    def set_interactive(self, interactive: bool) -> None:
        self._slider.setEnabled(interactive)
        self._opacity.setOpacity(1.0 if interactive else DIMMED_OPACITY)

    def set_toggle_checked(self, checked: bool) -> None:
        # Re-entry through toggled is a no-op: the state already matches.
        if self._toggle_action.isChecked() != checked:
            self._toggle_action.setChecked(checked)

    def destroy(self) -> None:
        try:
            self._slider.valueChanged.disconnect(self._on_value_changed)
            self._slider.sliderReleased.disconnect(self._on_slider_released)
            self._toggle_action.toggled.disconnect(self._on_toggled)
        except TypeError:
            pass
        self._surface = None
        self._active_state = None
        self._tray.hide()
        self._menu.deleteLater()
        self._tray.deleteLater()

    def _slider_fraction(self) -> float:
        return self._slider.value() / float(SLIDER_STEPS)

    def _on_value_changed(self, _raw: int) -> None:
        surface = self._surface
        if surface is None:
            return
        surface.handle_value_changed(self._slider_fraction())

    def _on_slider_released(self) -> None:
        surface = self._surface
        if surface is None:
            return
        surface.handle_release(self._slider_fraction())

    def _on_toggled(self, checked: bool) -> None:
        active_state = self._active_state
        if active_state is None:
            return
        active_state.set_enabled(checked)
