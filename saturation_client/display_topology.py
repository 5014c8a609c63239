"""Immutable display topology snapshots and the port the sync layer reads them through."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, Tuple

from saturation_client.lifecycle import Subscription

Rect = Tuple[int, int, int, int]
MonitorSnapshot = Tuple[str, int, int, int, int]


@dataclass(frozen=True)
class DisplayInfo:
    connector_id: str
    x: int
    y: int
    width: int
    height: int

    @property
    def rect(self) -> Rect:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class TopologySnapshot:
    displays: Tuple[DisplayInfo, ...] = ()
    compositor_size: Tuple[int, int] = (0, 0)

    def find(self, connector_id: str) -> Optional[DisplayInfo]:
        for display in self.displays:
            if display.connector_id == connector_id:
                return display
        return None

    def connector_ids(self) -> Tuple[str, ...]:
        return tuple(display.connector_id for display in self.displays)


class DisplayTopologyPort(Protocol):
    def snapshot(self) -> TopologySnapshot: ...

    def subscribe(self, handler: Callable[[], None]) -> Subscription: ...


def snapshot_from_monitors(
    monitors: Iterable[MonitorSnapshot],
    compositor_size: Optional[Tuple[int, int]] = None,
) -> TopologySnapshot:
    """Build a snapshot from ``(name, x, y, w, h)`` tuples.

    When no compositor size is supplied the bounding box of all displays is used.
    """
    displays = tuple(
        DisplayInfo(str(name), int(x), int(y), int(width), int(height)) for name, x, y, width, height in monitors
    )
    if compositor_size is None:
        if displays:
            right = max(d.x + d.width for d in displays)
            bottom = max(d.y + d.height for d in displays)
            left = min(d.x for d in displays)
            top = min(d.y for d in displays)
            compositor_size = (right - left, bottom - top)
        else:
            compositor_size = (0, 0)
    return TopologySnapshot(displays=displays, compositor_size=(int(compositor_size[0]), int(compositor_size[1])))
