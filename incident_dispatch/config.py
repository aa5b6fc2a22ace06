"""
Service configuration. Every setting is overridable via an env var.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .dashboard import PENDING_LIMIT
from .generator import CAMERA_COUNT, INCIDENT_INTERVAL, INCIDENT_PROBABILITY
from .store import DEFAULT_CAPACITY

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _bool(value: str, name: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class Settings:
    incident_interval: float = INCIDENT_INTERVAL
    incident_probability: float = INCIDENT_PROBABILITY
    store_capacity: int = DEFAULT_CAPACITY
    pending_limit: int = PENDING_LIMIT
    camera_count: int = CAMERA_COUNT
    strict_transitions: bool = True
    start_paused: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8081
    log_level: str = "INFO"

    def __post_init__(self):
        if self.incident_interval <= 0:
            raise ValueError("DISPATCH_INCIDENT_INTERVAL must be positive")
        if not 0.0 <= self.incident_probability <= 1.0:
            raise ValueError("DISPATCH_INCIDENT_PROBABILITY must be between 0 and 1")
        if self.store_capacity < 1:
            raise ValueError("DISPATCH_STORE_CAPACITY must be at least 1")
        if self.pending_limit < 1:
            raise ValueError("DISPATCH_PENDING_LIMIT must be at least 1")
        if self.camera_count < 1:
            raise ValueError("DISPATCH_CAMERA_COUNT must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            incident_interval=float(env.get("DISPATCH_INCIDENT_INTERVAL", defaults.incident_interval)),
            incident_probability=float(env.get("DISPATCH_INCIDENT_PROBABILITY", defaults.incident_probability)),
            store_capacity=int(env.get("DISPATCH_STORE_CAPACITY", defaults.store_capacity)),
            pending_limit=int(env.get("DISPATCH_PENDING_LIMIT", defaults.pending_limit)),
            camera_count=int(env.get("DISPATCH_CAMERA_COUNT", defaults.camera_count)),
            strict_transitions=_bool(env.get("DISPATCH_STRICT_TRANSITIONS", "true"), "DISPATCH_STRICT_TRANSITIONS"),
            start_paused=_bool(env.get("DISPATCH_START_PAUSED", "false"), "DISPATCH_START_PAUSED"),
            api_host=env.get("DISPATCH_API_HOST", defaults.api_host),
            api_port=int(env.get("DISPATCH_API_PORT", defaults.api_port)),
            log_level=env.get("DISPATCH_LOG_LEVEL", defaults.log_level).upper(),
        )
