"""
Dashboard metrics derived from the incident store.

Everything here is a pure function of the store's current contents; nothing
is cached between calls.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .incident_types import STATUS_ORDER
from .locations import Camera
from .store import Incident, IncidentStore

PENDING_LIMIT = 3


def active_count(store: IncidentStore) -> int:
    return store.reduce(0, lambda n, i: n + (1 if i.active else 0))


def total_notifications(store: IncidentStore) -> int:
    return store.reduce(0, lambda n, i: n + i.notifications_sent)


def pending_for_notification(store: IncidentStore, limit: int = PENDING_LIMIT) -> list[Incident]:
    """Non-responded incidents, newest first, at most ``limit``."""
    return store.filter(lambda i: i.active)[:limit]


def counts_by_status(store: IncidentStore) -> dict[str, int]:
    def count(acc: dict[str, int], incident: Incident) -> dict[str, int]:
        acc[incident.status] += 1
        return acc
    return store.reduce({status: 0 for status in STATUS_ORDER}, count)


def active_cameras(cameras: Iterable[Camera]) -> int:
    return sum(1 for c in cameras if c.status != "offline")


@dataclass(frozen=True)
class DashboardSummary:
    active_incidents: int
    total_notifications: int
    counts_by_status: dict[str, int]
    pending: list[Incident]
    active_cameras: Optional[int] = None
    camera_count: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "active_incidents": self.active_incidents,
            "total_notifications": self.total_notifications,
            "counts_by_status": dict(self.counts_by_status),
            "pending": [i.to_dict() for i in self.pending],
            "active_cameras": self.active_cameras,
            "camera_count": self.camera_count,
        }


def summarize(
    store: IncidentStore,
    pending_limit: int = PENDING_LIMIT,
    cameras: Optional[Iterable[Camera]] = None,
    camera_count: Optional[int] = None,
) -> DashboardSummary:
    """All dashboard numbers from a single store snapshot."""
    snapshot = store.copy()
    return DashboardSummary(
        active_incidents=active_count(snapshot),
        total_notifications=total_notifications(snapshot),
        counts_by_status=counts_by_status(snapshot),
        pending=pending_for_notification(snapshot, pending_limit),
        active_cameras=active_cameras(cameras) if cameras is not None else None,
        camera_count=camera_count,
    )
