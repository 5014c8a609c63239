"""Translate stored configuration into the parameter arrays the effect consumes."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from saturation_client.settings_store import Configuration

NEUTRAL_SATURATION = 1.0
NEUTRAL_HUE = 0.0
NEUTRAL_INVERT = 0.0

GLOBAL_SATURATION_MIN = 0.0
GLOBAL_SATURATION_MAX = 2.0

_DEG_TO_RAD = math.pi / 180.0


@dataclass(frozen=True)
class EffectParameters:
    use_per_monitor: bool
    saturation: Tuple[float, ...]
    hue_radians: Tuple[float, ...]
    invert: Tuple[float, ...]

    def as_payload(self) -> Dict[str, Any]:
        """Shape expected by the effect; the shader only accepts floats and ints."""
        return {
            "use_per_monitor": 1 if self.use_per_monitor else 0,
            "saturation_factors": list(self.saturation),
            "hue_shifts": list(self.hue_radians),
            "color_inverts": list(self.invert),
        }


def parse_numeric(raw: Any, default: float = 0.0) -> float:
    """Lenient float parse: falsy, unparsable and NaN entries fall back to ``default``."""
    if not raw:
        return default
    if isinstance(raw, (list, tuple, dict, set)):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(value):
        return default
    return value


def _entry(values: Sequence[Any], index: int) -> Any:
    if 0 <= index < len(values):
        return values[index]
    return None


def sync(config: Configuration, resolved_count: int, active: bool) -> EffectParameters:
    """Build per-slot arrays of length ``resolved_count + 1``; slot 0 is the global value.

    Values pass through unclamped. When ``active`` is False every slot carries
    the neutral triple; stored configuration is not touched either way.
    """
    slots = max(0, int(resolved_count)) + 1
    saturation: List[float] = []
    hue: List[float] = []
    invert: List[float] = []
    for index in range(slots):
        saturation.append(parse_numeric(_entry(config.saturation_factors, index)))
        hue.append(parse_numeric(_entry(config.hue_shifts, index)) * _DEG_TO_RAD)
        invert.append(1.0 if _entry(config.invert_colors, index) else 0.0)

    if not active:
        saturation = [NEUTRAL_SATURATION] * slots
        hue = [NEUTRAL_HUE] * slots
        invert = [NEUTRAL_INVERT] * slots

    return EffectParameters(
        use_per_monitor=bool(config.use_per_monitor_settings),
        saturation=tuple(saturation),
        hue_radians=tuple(hue),
        invert=tuple(invert),
    )


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(max(value, minimum), maximum)


def read_global_saturation(config: Configuration) -> float:
    """Current global saturation for the UI: missing or non-finite reads as 1.0, always within [0, 2]."""
    raw = _entry(config.saturation_factors, 0)
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        value = NEUTRAL_SATURATION
    if not math.isfinite(value):
        value = NEUTRAL_SATURATION
    return clamp(value, GLOBAL_SATURATION_MIN, GLOBAL_SATURATION_MAX)
