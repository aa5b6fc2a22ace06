"""
User-facing alert events (toast notifications) and their fan-out.

Two kinds are emitted: ``incident_detected`` when the generator creates an
incident and ``notification_sent`` when a hospital is notified. Alerts are
transient; only the most recent ones are kept for late readers.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

RECENT_ALERTS = 50

INCIDENT_DETECTED = "incident_detected"
NOTIFICATION_SENT = "notification_sent"


@dataclass(frozen=True)
class Alert:
    kind: str
    title: str
    message: str
    variant: str = "default"  # "destructive" for critical incidents
    data: dict[str, Any] = field(default_factory=dict)
    time: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "variant": self.variant,
            "data": dict(self.data),
            "time": self.time,
        }


def incident_detected(incident) -> Alert:
    return Alert(
        kind=INCIDENT_DETECTED,
        title="Incident Detected",
        message=f"{incident.description} at {incident.location}",
        variant="destructive" if incident.severity == "critical" else "default",
        data={
            "incident_id": incident.id,
            "description": incident.description,
            "location": incident.location,
            "severity": incident.severity,
        },
    )


def notification_sent(hospital, incident) -> Alert:
    return Alert(
        kind=NOTIFICATION_SENT,
        title="Notification Sent",
        message=f"{hospital.name} has been notified about the incident at {incident.location}",
        data={
            "hospital_id": hospital.id,
            "hospital_name": hospital.name,
            "incident_id": incident.id,
            "location": incident.location,
        },
    )


class AlertFeed:
    """Keeps the last few alerts and pushes new ones to async subscribers."""

    def __init__(self, maxlen: int = RECENT_ALERTS):
        self._recent: deque[Alert] = deque(maxlen=maxlen)
        self.subscribers: set[asyncio.Queue] = set()

    def publish(self, alert: Alert) -> None:
        self._recent.append(alert)
        logger.info("ALERT %s: %s", alert.title, alert.message)
        for q in list(self.subscribers):
            try:
                q.put_nowait(alert)
            except asyncio.QueueFull:
                logger.warning("Dropping alert for slow subscriber")

    def close(self) -> None:
        """End every open subscription."""
        for q in list(self.subscribers):
            self.subscribers.discard(q)
            try:
                q.put_nowait(None)
            except asyncio.QueueFull:
                q.get_nowait()
                q.put_nowait(None)

    def recent(self, limit: int = RECENT_ALERTS) -> list[Alert]:
        """Newest last."""
        if limit <= 0:
            return []
        return list(self._recent)[-limit:]

    def subscribe(self, maxsize: int = 100) -> "Subscription":
        """Register a listener now; alerts published from here on are queued for it."""
        return Subscription(self, maxsize)


class Subscription:
    """Async iterator over alerts for one listener. Ends when the feed closes."""

    def __init__(self, feed: AlertFeed, maxsize: int = 100):
        self._feed = feed
        self.queue: asyncio.Queue = asyncio.Queue(maxsize)
        feed.subscribers.add(self.queue)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Alert:
        alert = await self.queue.get()
        if alert is None:
            await self.aclose()
            raise StopAsyncIteration
        return alert

    async def aclose(self) -> None:
        self._feed.subscribers.discard(self.queue)
