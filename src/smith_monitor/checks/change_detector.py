"""Change detector: flags counters that stop moving (or move unexpectedly).

Fields are dotted paths into a JSON snapshot, e.g. ``inbound.total_messages``.

- should_change=True: failing when the value is the same as on the previous
  snapshot and has not changed for at least ``detect_interval`` ms.
- should_change=False: failing whenever the value differs from the previous one.
- Values listed in ``ignores`` (compared as strings) never fail and reset the
  stall timer, e.g. "100%" for a finished compaction.

The first snapshot only primes the detector.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..monitor.runner import now_ms

_UNSET = object()


@dataclass
class WatchedField:
    path: str
    should_change: bool = True
    detect_interval: int = 0  # ms
    ignores: tuple[str, ...] = ()
    last_value: Any = _UNSET
    last_change: int = 0


@dataclass
class DetectedFailure:
    field: str
    value: Any
    unchanged_ms: int = 0


@dataclass
class ChangeDetector:
    """Tracks a set of fields across successive snapshots."""

    fields: dict[str, WatchedField] = field(default_factory=dict)
    detected_failures: list[DetectedFailure] = field(default_factory=list)
    clock: Callable[[], int] = now_ms

    @classmethod
    def watching(cls, paths: Iterable[str], clock: Callable[[], int] = now_ms) -> ChangeDetector:
        detector = cls(clock=clock)
        for path in paths:
            detector.add(path)
        return detector

    def add(
        self,
        path: str,
        should_change: bool = True,
        detect_interval: int = 0,
        *ignores: str,
    ) -> None:
        self.fields[path] = WatchedField(
            path=path,
            should_change=should_change,
            detect_interval=detect_interval,
            ignores=tuple(ignores),
        )

    def detect(self, snapshot: dict[str, Any]) -> bool:
        """Feed a snapshot; return True if any watched field is failing."""
        now = self.clock()
        self.detected_failures = []

        for watched in self.fields.values():
            value = get_value(snapshot, watched.path)
            previous = watched.last_value
            watched.last_value = value

            if previous is _UNSET or get_string_value(snapshot, watched.path) in watched.ignores:
                watched.last_change = now
                continue

            if value != previous:
                watched.last_change = now
                if not watched.should_change:
                    self.detected_failures.append(DetectedFailure(watched.path, value))
                continue

            unchanged = now - watched.last_change
            if watched.should_change and unchanged >= watched.detect_interval:
                self.detected_failures.append(DetectedFailure(watched.path, value, unchanged))

        return bool(self.detected_failures)


def get_value(snapshot: dict[str, Any], path: str) -> Any:
    """Resolve a dotted path; missing segments yield None."""
    node: Any = snapshot
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def get_string_value(snapshot: dict[str, Any], path: str) -> str:
    value = get_value(snapshot, path)
    return value if isinstance(value, str) else json.dumps(value)
