from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from saturation_client.display_topology import Rect, TopologySnapshot

# Uniform array size in the effect shader is MAX_MONITORS_SUPPORTED + 1 (slot 0 is global).
MAX_MONITORS_SUPPORTED = 4


@dataclass(frozen=True)
class ResolvedMonitorSet:
    rects: Tuple[Rect, ...] = ()
    count: int = 0

    def flat_rects(self) -> List[int]:
        flat: List[int] = []
        for rect in self.rects:
            flat.extend(rect)
        return flat


def resolve(
    stored_ids: Sequence[str],
    topology: TopologySnapshot,
    *,
    limit: int = MAX_MONITORS_SUPPORTED,
) -> ResolvedMonitorSet:
    """Map stored connector ids onto live display rects, in stored order.

    Ids without a live display are skipped and later slots move up; duplicated
    ids resolve to duplicated rects.
    """
    rects: List[Rect] = []
    for connector_id in list(stored_ids)[: max(0, limit)]:
        display = topology.find(str(connector_id))
        if display is None:
            continue
        rects.append(display.rect)
    return ResolvedMonitorSet(rects=tuple(rects), count=len(rects))
