from incident_dispatch import dashboard
from incident_dispatch.locations import seed_cameras
from incident_dispatch.store import notified

from .conftest import make_incident


def fill(store):
    store.append(make_incident(status="notified", notifications_sent=2))
    store.append(make_incident(status="responded", notifications_sent=1))
    store.append(make_incident())
    store.append(make_incident())
    store.append(make_incident(status="notified", notifications_sent=1))


def test_active_count_and_total_notifications(store):
    fill(store)
    assert dashboard.active_count(store) == 4
    assert dashboard.total_notifications(store) == 4


def test_metrics_follow_mutations(store):
    fill(store)
    newest = store.all()[0]
    store.update_status(newest.id, notified)
    assert dashboard.total_notifications(store) == 5
    assert dashboard.total_notifications(store) == sum(i.notifications_sent for i in store.all())
    assert dashboard.active_count(store) == len([i for i in store.all() if i.status != "responded"])


def test_pending_is_capped_and_newest_first(store):
    fill(store)
    pending = dashboard.pending_for_notification(store)
    assert len(pending) == 3
    assert pending == [i for i in store.all() if i.active][:3]
    assert all(i.status != "responded" for i in pending)
    assert len(dashboard.pending_for_notification(store, limit=10)) == 4


def test_counts_by_status(store):
    fill(store)
    assert dashboard.counts_by_status(store) == {"detected": 2, "notified": 2, "responded": 1}


def test_empty_store(store):
    summary = dashboard.summarize(store)
    assert summary.active_incidents == 0
    assert summary.total_notifications == 0
    assert summary.pending == []
    assert summary.counts_by_status == {"detected": 0, "notified": 0, "responded": 0}
    assert summary.active_cameras is None
    assert summary.camera_count is None


def test_summary_includes_cameras(store):
    fill(store)
    summary = dashboard.summarize(store, pending_limit=2, cameras=seed_cameras(), camera_count=12)
    assert summary.active_cameras == 5
    assert summary.camera_count == 12
    assert len(summary.pending) == 2
    data = summary.to_dict()
    assert data["active_incidents"] == 4
    assert data["pending"][0]["id"] == store.all()[0].id
