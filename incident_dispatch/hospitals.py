"""
Hospital directory: static responder facilities that can be notified.
Read-only reference data; listing order is stable.
"""

from dataclasses import dataclass
from typing import Optional

CAPACITY_TIERS = ("low", "medium", "high")


@dataclass(frozen=True)
class Hospital:
    id: str
    name: str
    distance: str
    estimated_time: str
    capacity: str
    specialties: tuple[str, ...]
    phone: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "distance": self.distance,
            "estimated_time": self.estimated_time,
            "capacity": self.capacity,
            "specialties": list(self.specialties),
            "phone": self.phone,
        }


HOSPITALS = [
    Hospital("H1", "AIIMS Delhi", "0.8 km", "3 min", "high",
             ("Emergency", "Trauma", "Surgery"), "+91 11 2658 8500"),
    Hospital("H2", "Apollo Hospitals", "1.2 km", "4 min", "medium",
             ("Emergency", "Cardiology"), "+91 44 2829 3333"),
    Hospital("H3", "Fortis Hospital", "2.1 km", "6 min", "high",
             ("Trauma", "Surgery", "ICU"), "+91 11 4277 6222"),
]


class HospitalDirectory:
    """Lookup over a fixed set of hospitals."""

    def __init__(self, hospitals: Optional[list[Hospital]] = None):
        self._hospitals = tuple(HOSPITALS if hospitals is None else hospitals)
        self._by_id = {h.id: h for h in self._hospitals}

    def list(self) -> list[Hospital]:
        return list(self._hospitals)

    def get(self, hospital_id: str) -> Optional[Hospital]:
        return self._by_id.get(hospital_id)

    def __len__(self) -> int:
        return len(self._hospitals)
