"""
Incident generator: simulated camera detections on a fixed timer.

Every ``interval`` seconds one Bernoulli trial with probability
``probability`` decides whether a new incident is detected. Randomness and
time come from an injectable sampler and clock so runs can be replayed.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence, TypeVar

from . import alerts
from .incident_types import DESCRIPTIONS, SEVERITIES
from .locations import LOCATIONS, camera_id
from .store import Incident, IncidentStore, next_incident_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

INCIDENT_INTERVAL = 10  # seconds between trials
INCIDENT_PROBABILITY = 0.3
CAMERA_COUNT = 12


class Sampler(Protocol):
    """The subset of ``random.Random`` the generator relies on."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...


class IncidentGenerator:
    """Produces incidents into a store and announces them on an alert feed."""

    def __init__(
        self,
        store: IncidentStore,
        feed: Optional[alerts.AlertFeed] = None,
        interval: float = INCIDENT_INTERVAL,
        probability: float = INCIDENT_PROBABILITY,
        camera_count: int = CAMERA_COUNT,
        sampler: Optional[Sampler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0.0 <= probability <= 1.0:
            raise ValueError("probability must be between 0 and 1")
        if camera_count < 1:
            raise ValueError("camera_count must be at least 1")
        self.store = store
        self.feed = feed
        self.interval = interval
        self.probability = probability
        self.camera_count = camera_count
        self.sampler = sampler if sampler is not None else random.Random()
        self.clock = clock
        self.paused = False
        self._task: Optional[asyncio.Task] = None

    def generate_incident(self) -> Incident:
        """Build a random incident without storing it."""
        cameras = range(1, self.camera_count + 1)
        return Incident(
            id=next_incident_id(),
            timestamp=self.clock(),
            location=self.sampler.choice(LOCATIONS),
            severity=self.sampler.choice(SEVERITIES),
            description=self.sampler.choice(DESCRIPTIONS),
            camera_id=camera_id(self.sampler.choice(cameras)),
        )

    def tick(self) -> Optional[Incident]:
        """Run one trial. Returns the new incident, or None when the trial fails."""
        if self.sampler.random() >= self.probability:
            logger.debug("Tick: no incident")
            return None
        return self._emit(self.generate_incident())

    def trigger(self) -> Incident:
        """Create an incident now, bypassing the probability gate and pause state."""
        return self._emit(self.generate_incident())

    def _emit(self, incident: Incident) -> Incident:
        self.store.append(incident)
        logger.info(
            "NEW INCIDENT: %s [%s] %s at %s (%s)",
            incident.id, incident.severity, incident.description,
            incident.location, incident.camera_id,
        )
        if self.feed is not None:
            self.feed.publish(alerts.incident_detected(incident))
        return incident

    # --- timer ---

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _incident_loop(self):
        while True:
            await asyncio.sleep(self.interval)
            if not self.paused:
                self.tick()

    def start(self) -> asyncio.Task:
        """Start the timer on the running event loop. Idempotent."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._incident_loop())
            logger.info("Generator started (every %ss, p=%.2f)", self.interval, self.probability)
        return self._task

    async def stop(self) -> None:
        """Cancel the timer and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        # waits without absorbing a cancellation of the caller
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            logger.error("Generator loop failed: %r", task.exception())
        logger.info("Generator stopped")

    def pause(self):
        self.paused = True
        logger.info("PAUSED: no new incidents will be generated")

    def resume(self):
        self.paused = False
        logger.info("RESUMED: generating incidents")
