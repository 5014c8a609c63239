from .display_topology import DisplayInfo, TopologySnapshot
from .effect_params import EffectParameters, read_global_saturation, sync
from .monitor_resolver import MAX_MONITORS_SUPPORTED, ResolvedMonitorSet, resolve
from .settings_store import Configuration, SettingsStore

__all__ = [
    "Configuration",
    "DisplayInfo",
    "EffectParameters",
    "MAX_MONITORS_SUPPORTED",
    "ResolvedMonitorSet",
    "SettingsStore",
    "TopologySnapshot",
    "read_global_saturation",
    "resolve",
    "sync",
]
