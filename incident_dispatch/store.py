"""
Incident store: the single owner of all incident records.

Records are kept newest first and bounded to a fixed capacity; appending past
the capacity drops the oldest records. Mutation goes through ``append`` and
``update_status`` only; readers get immutable snapshots.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from functools import reduce as _reduce
from typing import Callable, Iterator, Optional, TypeVar

from .incident_types import SEVERITIES, STATUS_ORDER

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CAPACITY = 10

_id_counter = itertools.count(1)


def next_incident_id() -> str:
    """Sequential id, unique for the lifetime of the process: 001, 002, ..."""
    return f"{next(_id_counter):03d}"


class InvalidTransition(Exception):
    """A mutation tried to move an incident backwards in its lifecycle."""

    def __init__(self, incident_id: str, current: str, requested: str):
        super().__init__(f"incident {incident_id}: cannot move from {current} to {requested}")
        self.incident_id = incident_id
        self.current = current
        self.requested = requested


@dataclass(frozen=True)
class Incident:
    """A single detected incident."""
    id: str
    timestamp: datetime
    location: str
    severity: str
    description: str
    camera_id: str
    notifications_sent: int = 0
    status: str = "detected"

    def __post_init__(self):
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity: {self.severity!r}")
        if self.status not in STATUS_ORDER:
            raise ValueError(f"unknown status: {self.status!r}")
        if self.notifications_sent < 0:
            raise ValueError("notifications_sent must be non-negative")
        if (self.status == "detected") != (self.notifications_sent == 0):
            raise ValueError(
                f"incident {self.id}: status {self.status!r} does not match {self.notifications_sent} notifications"
            )

    @property
    def active(self) -> bool:
        return self.status != "responded"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "location": self.location,
            "severity": self.severity,
            "description": self.description,
            "camera_id": self.camera_id,
            "notifications_sent": self.notifications_sent,
            "status": self.status,
        }


def check_transition(before: Incident, after: Incident) -> None:
    """Raise InvalidTransition unless ``after`` is a legal successor of ``before``."""
    if STATUS_ORDER[after.status] < STATUS_ORDER[before.status]:
        raise InvalidTransition(before.id, before.status, after.status)
    if after.notifications_sent < before.notifications_sent:
        raise InvalidTransition(before.id, before.status, after.status)
    if (after.id, after.timestamp, after.severity, after.description) != (
        before.id, before.timestamp, before.severity, before.description
    ):
        raise ValueError(f"incident {before.id}: identity fields are immutable")


class IncidentStore:
    """Bounded, newest-first collection of incidents."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._incidents: list[Incident] = []
        self._lock = threading.RLock()
        self._listeners: list[Callable[["IncidentStore"], None]] = []

    # --- mutation ---

    def append(self, incident: Incident) -> list[Incident]:
        """Insert at the head. Returns the records evicted to stay within capacity."""
        with self._lock:
            self._incidents.insert(0, incident)
            evicted = self._incidents[self.capacity:]
            del self._incidents[self.capacity:]
        for old in evicted:
            logger.debug("Evicted incident %s (capacity %d)", old.id, self.capacity)
        self._changed()
        return evicted

    def update_status(
        self,
        incident_id: str,
        mutation: Callable[[Incident], Incident],
        allow_regression: bool = False,
    ) -> Optional[Incident]:
        """Replace the matching record with ``mutation(record)``.

        Unknown ids are a no-op and return None. Unless ``allow_regression``
        is set, a mutation that moves the status backwards or lowers the
        notification counter raises InvalidTransition and nothing changes.
        """
        with self._lock:
            for idx, current in enumerate(self._incidents):
                if current.id == incident_id:
                    break
            else:
                return None
            updated = mutation(current)
            if updated.id != current.id:
                raise ValueError(f"incident {current.id}: mutation changed the id")
            if not allow_regression:
                check_transition(current, updated)
            self._incidents[idx] = updated
        self._changed()
        return updated

    def clear(self) -> None:
        with self._lock:
            self._incidents.clear()
        self._changed()

    # --- queries ---

    def all(self) -> list[Incident]:
        with self._lock:
            return list(self._incidents)

    def snapshot(self) -> tuple[Incident, ...]:
        with self._lock:
            return tuple(self._incidents)

    def get(self, incident_id: str) -> Optional[Incident]:
        with self._lock:
            for incident in self._incidents:
                if incident.id == incident_id:
                    return incident
        return None

    def filter(self, predicate: Callable[[Incident], bool]) -> list[Incident]:
        return [i for i in self.snapshot() if predicate(i)]

    def reduce(self, initial: T, combiner: Callable[[T, Incident], T]) -> T:
        return _reduce(combiner, self.snapshot(), initial)

    def copy(self) -> "IncidentStore":
        """Detached store holding the current records; listeners are not copied."""
        clone = IncidentStore(self.capacity)
        with self._lock:
            clone._incidents = list(self._incidents)
        return clone

    def __len__(self) -> int:
        with self._lock:
            return len(self._incidents)

    def __iter__(self) -> Iterator[Incident]:
        return iter(self.snapshot())

    # --- change notification ---

    def on_change(self, listener: Callable[["IncidentStore"], None]) -> None:
        """Register a callback run after every mutation."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)


def notified(incident: Incident) -> Incident:
    """Mutation applied by a hospital dispatch."""
    return replace(incident, notifications_sent=incident.notifications_sent + 1, status="notified")


def responded(incident: Incident) -> Incident:
    if incident.notifications_sent == 0:
        raise InvalidTransition(incident.id, incident.status, "responded")
    return replace(incident, status="responded")
