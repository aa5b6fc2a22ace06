import pytest

from incident_dispatch.config import Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.incident_interval == 10
    assert settings.incident_probability == 0.3
    assert settings.store_capacity == 10
    assert settings.pending_limit == 3
    assert settings.camera_count == 12
    assert settings.strict_transitions is True
    assert settings.start_paused is False
    assert settings.api_port == 8081


def test_overrides():
    settings = Settings.from_env({
        "DISPATCH_INCIDENT_INTERVAL": "2.5",
        "DISPATCH_INCIDENT_PROBABILITY": "1",
        "DISPATCH_STORE_CAPACITY": "4",
        "DISPATCH_STRICT_TRANSITIONS": "no",
        "DISPATCH_START_PAUSED": "TRUE",
        "DISPATCH_LOG_LEVEL": "debug",
    })
    assert settings.incident_interval == 2.5
    assert settings.incident_probability == 1.0
    assert settings.store_capacity == 4
    assert settings.strict_transitions is False
    assert settings.start_paused is True
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"DISPATCH_INCIDENT_PROBABILITY": "2"},
    {"DISPATCH_STORE_CAPACITY": "0"},
    {"DISPATCH_PENDING_LIMIT": "abc"},
    {"DISPATCH_START_PAUSED": "maybe"},
])
def test_invalid_values(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)
