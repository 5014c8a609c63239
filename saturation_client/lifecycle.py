from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple


class Subscription:
    """Handle returned by ``subscribe``; ``dispose`` releases the underlying connection once."""

    def __init__(self, release_fn: Callable[[], None], *, label: str = "") -> None:
        self._release = release_fn
        self._label = label
        self._disposed = False

    @property
    def label(self) -> str:
        return self._label

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._release()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "live"
        return f"<Subscription {self._label or '?'} {state}>"


class SubscriptionSet:
    """Collects handles under named slots and releases them deterministically."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._slots: List[Tuple[str, Optional[Subscription]]] = []

    @property
    def handles(self) -> List[Subscription]:
        return [handle for _name, handle in self._slots if handle is not None]

    def add(self, name: str, handle: Optional[Subscription]) -> Optional[Subscription]:
        for index, (slot, _existing) in enumerate(self._slots):
            if slot == name:
                self._slots[index] = (name, handle)
                return handle
        self._slots.append((name, handle))
        return handle

    def release(self, name: str) -> bool:
        """Dispose one slot; returns False when the slot was never acquired or disposing failed."""
        for index, (slot, handle) in enumerate(self._slots):
            if slot != name:
                continue
            self._slots[index] = (slot, None)
            if handle is None:
                self._logger.debug("Release skipped for %s: never acquired", name)
                return False
            try:
                handle.dispose()
            except Exception as exc:
                self._logger.warning("Failed to release %s: %s", name, exc)
                return False
            return True
        self._logger.debug("Release skipped for %s: unknown slot", name)
        return False

    def release_all(self) -> None:
        for name, _handle in list(self._slots):
            self.release(name)
        self._slots.clear()

    def log_state(self, label: str) -> None:
        live = [repr(handle) for handle in self.handles if not handle.disposed]
        if live:
            self._logger.debug("Tracked subscriptions %s: %s", label, live)


def run_teardown_steps(steps: List[Tuple[str, Callable[[], None]]], logger: logging.Logger) -> List[str]:
    """Run every step in order; a failing step is logged and the rest still run. Returns failed step names."""
    failed: List[str] = []
    for name, step in steps:
        try:
            step()
        except Exception as exc:
            failed.append(name)
            logger.warning("Teardown step %s failed: %s", name, exc)
    return failed
