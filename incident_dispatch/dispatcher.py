"""
Notification dispatcher: tells a hospital about an incident and records it.

Bad references are fail-soft: nothing changes, nothing is announced and the
caller gets a NOT_FOUND outcome instead of an exception. A dispatch against a
responded incident is rejected unless legacy overwrite mode is enabled.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from . import alerts
from .hospitals import Hospital, HospitalDirectory
from .store import Incident, IncidentStore, InvalidTransition, notified, responded

logger = logging.getLogger(__name__)


class DispatchOutcome(enum.Enum):
    SENT = "sent"
    RESPONDED = "responded"
    HOSPITAL_NOT_FOUND = "hospital_not_found"
    INCIDENT_NOT_FOUND = "incident_not_found"
    INVALID_TRANSITION = "invalid_transition"


@dataclass(frozen=True)
class DispatchResult:
    outcome: DispatchOutcome
    incident: Optional[Incident] = None
    hospital: Optional[Hospital] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (DispatchOutcome.SENT, DispatchOutcome.RESPONDED)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "outcome": self.outcome.value,
            "incident": self.incident.to_dict() if self.incident else None,
            "hospital": self.hospital.to_dict() if self.hospital else None,
        }


def first_pending(store: IncidentStore, limit: int = 3) -> Optional[Incident]:
    """Default dispatch target: the newest incident still awaiting a response."""
    pending = store.filter(lambda i: i.active)[:limit]
    return pending[0] if pending else None


class NotificationDispatcher:

    def __init__(
        self,
        store: IncidentStore,
        directory: HospitalDirectory,
        feed: Optional[alerts.AlertFeed] = None,
        strict: bool = True,
    ):
        self.store = store
        self.directory = directory
        self.feed = feed
        # strict=False reproduces the old behaviour where a dispatch could
        # put a responded incident back to notified
        self.strict = strict

    def dispatch(self, hospital_id: str, incident_id: str) -> DispatchResult:
        hospital = self.directory.get(hospital_id)
        if hospital is None:
            logger.warning("Dispatch ignored: unknown hospital %s", hospital_id)
            return DispatchResult(DispatchOutcome.HOSPITAL_NOT_FOUND)

        try:
            incident = self.store.update_status(
                incident_id, notified, allow_regression=not self.strict
            )
        except InvalidTransition as e:
            logger.info("Dispatch rejected: %s", e)
            return DispatchResult(
                DispatchOutcome.INVALID_TRANSITION, self.store.get(incident_id), hospital
            )
        if incident is None:
            logger.warning("Dispatch ignored: unknown incident %s", incident_id)
            return DispatchResult(DispatchOutcome.INCIDENT_NOT_FOUND, hospital=hospital)

        logger.info(
            "DISPATCHED: %s notified about %s at %s (%d sent)",
            hospital.name, incident.id, incident.location, incident.notifications_sent,
        )
        if self.feed is not None:
            self.feed.publish(alerts.notification_sent(hospital, incident))
        return DispatchResult(DispatchOutcome.SENT, incident, hospital)

    def record_response(self, incident_id: str) -> DispatchResult:
        """Mark a notified incident as responded to."""
        current = self.store.get(incident_id)
        if current is None:
            logger.warning("Response ignored: unknown incident %s", incident_id)
            return DispatchResult(DispatchOutcome.INCIDENT_NOT_FOUND)
        if current.status == "responded":
            return DispatchResult(DispatchOutcome.INVALID_TRANSITION, current)
        try:
            incident = self.store.update_status(incident_id, responded)
        except InvalidTransition as e:
            logger.info("Response rejected: %s", e)
            return DispatchResult(DispatchOutcome.INVALID_TRANSITION, current)
        if incident is None:
            # evicted between lookup and update
            return DispatchResult(DispatchOutcome.INCIDENT_NOT_FOUND)
        logger.info("RESPONDED: %s at %s", incident.id, incident.location)
        return DispatchResult(DispatchOutcome.RESPONDED, incident)
