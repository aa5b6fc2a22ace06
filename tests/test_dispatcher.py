import pytest

from incident_dispatch.alerts import NOTIFICATION_SENT
from incident_dispatch.dispatcher import DispatchOutcome, NotificationDispatcher, first_pending

from .conftest import make_incident


@pytest.fixture
def dispatcher(store, directory, feed):
    return NotificationDispatcher(store, directory, feed)


def test_dispatch_notifies_and_counts(store, feed, dispatcher):
    inc = make_incident()
    store.append(inc)

    result = dispatcher.dispatch("H1", inc.id)
    assert result.outcome is DispatchOutcome.SENT
    assert result.ok
    assert store.get(inc.id).status == "notified"
    assert store.get(inc.id).notifications_sent == 1

    result = dispatcher.dispatch("H2", inc.id)
    assert result.outcome is DispatchOutcome.SENT
    assert store.get(inc.id).status == "notified"
    assert store.get(inc.id).notifications_sent == 2

    alerts = feed.recent()
    assert [a.kind for a in alerts] == [NOTIFICATION_SENT, NOTIFICATION_SENT]
    assert alerts[0].data["hospital_name"] == "AIIMS Delhi"
    assert alerts[1].data["hospital_name"] == "Apollo Hospitals"
    assert alerts[1].data["location"] == inc.location
    assert "Apollo Hospitals has been notified" in alerts[1].message


def test_unknown_hospital_leaves_store_unchanged(store, feed, dispatcher):
    inc = make_incident()
    store.append(inc)
    before = store.snapshot()

    result = dispatcher.dispatch("unknown-hospital", inc.id)

    assert result.outcome is DispatchOutcome.HOSPITAL_NOT_FOUND
    assert not result.ok
    assert store.snapshot() == before
    assert feed.recent() == []


def test_unknown_incident_leaves_store_unchanged(store, feed, dispatcher):
    store.append(make_incident())
    before = store.snapshot()

    result = dispatcher.dispatch("H1", "unknown-incident")

    assert result.outcome is DispatchOutcome.INCIDENT_NOT_FOUND
    assert store.snapshot() == before
    assert feed.recent() == []


def test_dispatch_against_responded_is_rejected(store, feed, dispatcher):
    inc = make_incident(status="responded", notifications_sent=1)
    store.append(inc)

    result = dispatcher.dispatch("H1", inc.id)

    assert result.outcome is DispatchOutcome.INVALID_TRANSITION
    assert result.incident == inc
    assert store.get(inc.id) == inc
    assert feed.recent() == []


def test_legacy_mode_overwrites_responded(store, directory, feed):
    dispatcher = NotificationDispatcher(store, directory, feed, strict=False)
    inc = make_incident(status="responded", notifications_sent=1)
    store.append(inc)

    result = dispatcher.dispatch("H3", inc.id)

    assert result.outcome is DispatchOutcome.SENT
    assert store.get(inc.id).status == "notified"
    assert store.get(inc.id).notifications_sent == 2


def test_record_response_after_notification(store, dispatcher):
    inc = make_incident()
    store.append(inc)
    dispatcher.dispatch("H1", inc.id)

    result = dispatcher.record_response(inc.id)

    assert result.outcome is DispatchOutcome.RESPONDED
    assert store.get(inc.id).status == "responded"
    assert store.get(inc.id).notifications_sent == 1
    assert dispatcher.record_response(inc.id).outcome is DispatchOutcome.INVALID_TRANSITION


def test_record_response_requires_notification(store, dispatcher):
    inc = make_incident()
    store.append(inc)
    assert dispatcher.record_response(inc.id).outcome is DispatchOutcome.INVALID_TRANSITION
    assert store.get(inc.id).status == "detected"


def test_record_response_unknown_incident(dispatcher):
    assert dispatcher.record_response("nope").outcome is DispatchOutcome.INCIDENT_NOT_FOUND


def test_counter_never_decreases_over_lifecycle(store, dispatcher):
    inc = make_incident()
    store.append(inc)
    seen = [0]
    for action in ("H1", "H2", "respond", "H3", "H1"):
        if action == "respond":
            dispatcher.record_response(inc.id)
        else:
            dispatcher.dispatch(action, inc.id)
        seen.append(store.get(inc.id).notifications_sent)
    assert seen == sorted(seen)
    assert store.get(inc.id).status == "responded"


def test_first_pending_skips_responded(store):
    older = make_incident()
    store.append(older)
    store.append(make_incident(status="responded"))
    assert first_pending(store) == older


def test_first_pending_empty_store(store):
    assert first_pending(store) is None
