"""
Incident dispatch simulator.

Generates synthetic traffic-camera incidents, tracks their lifecycle
(detected → notified → responded) and notifies hospitals on request.
"""

__version__ = "0.1.0"
