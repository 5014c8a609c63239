"""Event pipeline tying settings, display topology, the effect and the slider together."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Protocol

from saturation_client.active_state import ActiveStateController
from saturation_client.control_surface import ControlSurface
from saturation_client.display_topology import DisplayTopologyPort
from saturation_client.effect_bridge import EffectPort
from saturation_client.effect_params import EffectParameters, sync
from saturation_client.lifecycle import SubscriptionSet, run_teardown_steps
from saturation_client.monitor_resolver import ResolvedMonitorSet, resolve
from saturation_client.settings_store import KEY_MONITOR_IDS, SettingsPort

_LOGGER = logging.getLogger("Saturation.Client.Sync")

TOPOLOGY_SLOT = "topology-changed"
SETTINGS_SLOT = "settings-changed"


class IndicatorPort(Protocol):
    def set_slider_value(self, value: float) -> None: ...

    def set_interactive(self, interactive: bool) -> None: ...

    def set_toggle_checked(self, checked: bool) -> None: ...

    def bind(self, surface: ControlSurface, active_state: ActiveStateController) -> None: ...

    def destroy(self) -> None: ...


@dataclass(frozen=True)
class SyncState:
    active: bool = True
    monitors: ResolvedMonitorSet = field(default_factory=ResolvedMonitorSet)


class SaturationSync:
    """Owns subscriptions for one activation and recomputes everything from live sources per event."""

    def __init__(
        self,
        settings: SettingsPort,
        topology: DisplayTopologyPort,
        effect: EffectPort,
        *,
        indicator_factory: Callable[[], IndicatorPort],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._topology = topology
        self._effect_source = effect
        self._indicator_factory = indicator_factory
        self._logger = logger or _LOGGER
        self._subscriptions = SubscriptionSet(self._logger)
        self._state = SyncState()
        self._effect: Optional[EffectPort] = None
        self._indicator: Optional[IndicatorPort] = None
        self._surface: Optional[ControlSurface] = None
        self._active_state: Optional[ActiveStateController] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def surface(self) -> Optional[ControlSurface]:
        return self._surface

    @property
    def active_state(self) -> Optional[ActiveStateController]:
        return self._active_state

    @property
    def activated(self) -> bool:
        return self._effect is not None

    # Activation ------------------------------------------------------------

    def activate(self) -> None:
        if self._effect is not None:
            return
        self._state = SyncState()
        effect = self._effect_source
        effect.attach()
        self._effect = effect

        self._subscriptions.add(SETTINGS_SLOT, self._settings.subscribe(self._on_settings_changed))
        self._subscriptions.add(TOPOLOGY_SLOT, self._topology.subscribe(self._on_topology_changed))

        indicator = self._indicator_factory()
        surface = ControlSurface(
            self._settings,
            set_slider_value_fn=indicator.set_slider_value,
            set_interactive_fn=indicator.set_interactive,
            log_fn=self._logger.debug,
        )
        active_state = ActiveStateController(
            surface,
            resync_fn=self._on_active_changed,
            on_state_change=indicator.set_toggle_checked,
            log_fn=self._logger.info,
        )
        indicator.bind(surface, active_state)
        self._indicator = indicator
        self._surface = surface
        self._active_state = active_state

        self._subscriptions.log_state("after activation")
        self._logger.info("Saturation sync activated")
        self.sync_monitors()
        self.sync_parameters()
        self.refresh_surface()

    def deactivate(self) -> None:
        """Release topology and settings subscriptions, detach the effect, destroy the UI; every step runs."""
        failed = run_teardown_steps(
            [
                ("release topology subscription", lambda: self._subscriptions.release(TOPOLOGY_SLOT)),
                ("release settings subscription", lambda: self._subscriptions.release(SETTINGS_SLOT)),
                ("detach effect", self._detach_effect),
                ("destroy indicator", self._destroy_indicator),
            ],
            self._logger,
        )
        self._subscriptions.log_state("left after teardown")
        self._subscriptions.release_all()
        self._state = SyncState()
        if failed:
            self._logger.warning("Saturation sync deactivated with failed steps: %s", ", ".join(failed))
        else:
            self._logger.info("Saturation sync deactivated")

    def _detach_effect(self) -> None:
        effect = self._effect
        self._effect = None
        if effect is not None:
            effect.detach()

    def _destroy_indicator(self) -> None:
        indicator = self._indicator
        surface = self._surface
        self._indicator = None
        self._surface = None
        self._active_state = None
        if surface is not None:
            surface.detach()
        if indicator is not None:
            indicator.destroy()

    # Pipeline --------------------------------------------------------------

    def sync_monitors(self) -> Optional[ResolvedMonitorSet]:
        effect = self._effect
        if effect is None:
            self._logger.debug("Monitor sync skipped: effect not attached")
            return None
        snapshot = self._topology.snapshot()
        monitors = resolve(self._settings.get().monitor_ids, snapshot)
        self._state = replace(self._state, monitors=monitors)
        effect.set_monitor_params(monitors.count, monitors.flat_rects(), snapshot.compositor_size)
        self._logger.debug(
            "Resolved %d monitor(s) from %s; compositor=%s",
            monitors.count,
            list(snapshot.connector_ids()),
            snapshot.compositor_size,
        )
        return monitors

    def sync_parameters(self) -> Optional[EffectParameters]:
        effect = self._effect
        if effect is None:
            self._logger.debug("Parameter sync skipped: effect not attached")
            return None
        params = sync(self._settings.get(), self._state.monitors.count, self._state.active)
        effect.set_params(params.as_payload())
        self._logger.debug(
            "Effect params: active=%s per_monitor=%s saturation=%s hue=%s invert=%s",
            self._state.active,
            params.use_per_monitor,
            list(params.saturation),
            list(params.hue_radians),
            list(params.invert),
        )
        return params

    def refresh_surface(self) -> None:
        surface = self._surface
        if surface is None:
            return
        surface.refresh_from_settings()

    # Event handlers ----------------------------------------------------------

    def _on_settings_changed(self, key: str) -> None:
        if self._effect is None:
            return
        if key == KEY_MONITOR_IDS:
            self.sync_monitors()
        self.sync_parameters()
        self.refresh_surface()

    def _on_topology_changed(self) -> None:
        if self._effect is None:
            return
        self.sync_monitors()
        self.sync_parameters()
        self.refresh_surface()

    def _on_active_changed(self, active: bool) -> None:
        self._state = replace(self._state, active=bool(active))
        self.sync_parameters()
        if active:
            self.refresh_surface()
