from datetime import datetime

import pytest

from incident_dispatch.alerts import AlertFeed
from incident_dispatch.hospitals import HospitalDirectory
from incident_dispatch.store import Incident, IncidentStore, next_incident_id

FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0)


class ScriptedSampler:
    """Deterministic stand-in for random.Random.

    ``random()`` returns the scripted values in order; ``choice`` picks the
    element at the next scripted index (wrapping), or the first element.
    """

    def __init__(self, randoms=(), picks=()):
        self.randoms = list(randoms)
        self.picks = list(picks)

    def random(self):
        return self.randoms.pop(0)

    def choice(self, seq):
        idx = self.picks.pop(0) if self.picks else 0
        return seq[idx % len(seq)]


def make_incident(status="detected", notifications_sent=None, severity="high", location="Connaught Place"):
    if notifications_sent is None:
        notifications_sent = 0 if status == "detected" else 1
    return Incident(
        id=next_incident_id(),
        timestamp=FIXED_NOW,
        location=location,
        severity=severity,
        description="Vehicle collision detected",
        camera_id="CAM-3",
        notifications_sent=notifications_sent,
        status=status,
    )


@pytest.fixture
def store():
    return IncidentStore(capacity=10)


@pytest.fixture
def feed():
    return AlertFeed()


@pytest.fixture
def directory():
    return HospitalDirectory()
