"""
Incident categories for the camera monitoring simulation.
These mirror what the roadside detection models would classify.
"""

SEVERITIES = ["low", "medium", "high", "critical"]

# Status progression order, forward only
STATUS_ORDER = {"detected": 0, "notified": 1, "responded": 2}

DESCRIPTIONS = [
    "Vehicle collision detected",
    "Pedestrian incident",
    "Multi-vehicle accident",
    "Emergency vehicle needed",
    "Traffic obstruction",
    "Medical emergency",
]
