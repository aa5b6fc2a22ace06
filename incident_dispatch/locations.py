"""
Location data for incident generation and the camera roster.
Locations are free-text junction / landmark names as shown on the dashboard.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

LOCATIONS = [
    "MG Road & Brigade Road",
    "NH-48 Km 234",
    "Connaught Place",
    "Bandra-Worli Sea Link",
    "Industrial Area Phase II",
    "Rajiv Chowk Metro Station",
]

CAMERA_STATUSES = ("active", "offline", "alert")


@dataclass(frozen=True)
class Camera:
    """A monitoring camera. Seeded once; status never changes in the simulation."""
    id: str
    location: str
    status: str = "active"
    last_detection: Optional[datetime] = None
    ai_confidence: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.last_detection is not None:
            data["last_detection"] = self.last_detection.isoformat()
        return data


def camera_id(n: int) -> str:
    return f"CAM-{n}"


def seed_cameras(now: Optional[datetime] = None) -> list[Camera]:
    """Initial camera roster shown on the feed grid."""
    now = now or datetime.now()
    return [
        Camera(camera_id(1), "Main St & 5th Ave"),
        Camera(camera_id(2), "Highway 101 Mile 23", "alert", last_detection=now, ai_confidence=94),
        Camera(camera_id(3), "Central Plaza"),
        Camera(camera_id(4), "Oak Street Bridge", "offline"),
        Camera(camera_id(5), "Industrial District"),
        Camera(camera_id(6), "Downtown Intersection"),
    ]
