"""
Web push tests.

pywebpush.webpush is replaced with a recorder; nothing leaves the process.
"""

import json
from types import SimpleNamespace

import pytest
import requests
from pywebpush import WebPushException

from homebake.models import Batch, NotificationAttempt, PushSubscription, User
from homebake.services import activity_service, invite_service, push_service


SUBSCRIPTION = {
    "endpoint": "https://push.example.test/send/abc",
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


@pytest.fixture
def vapid(app, monkeypatch):
    monkeypatch.setitem(app.config, "VAPID_PUBLIC_KEY", "test-public")
    monkeypatch.setitem(app.config, "VAPID_PRIVATE_KEY", "test-private")


@pytest.fixture
def sent(monkeypatch):
    """Records every webpush call and answers 201."""
    calls = []

    def fake_webpush(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(status_code=201)

    monkeypatch.setattr(push_service, "webpush", fake_webpush)
    return calls


@pytest.fixture
def subscribed_owner(db_session, owner):
    push_service.save_subscription(owner.id, SUBSCRIPTION, user_agent="pytest")
    return owner


class TestSubscriptions:

    def test_save_requires_keys(self, db_session, owner):
        with pytest.raises(push_service.PushError):
            push_service.save_subscription(owner.id, {"endpoint": "https://push.example.test/x"})

    def test_save_is_upsert(self, db_session, owner):
        push_service.save_subscription(owner.id, SUBSCRIPTION)
        push_service.save_subscription(owner.id, dict(SUBSCRIPTION, endpoint="https://push.example.test/new"))
        [record] = db_session.query(PushSubscription).all()
        assert record.endpoint == "https://push.example.test/new"

    def test_api_round_trip(self, client, owner_headers):
        resp = client.post(
            "/api/notifications/subscription",
            json={"subscription": SUBSCRIPTION},
            headers=owner_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["subscription"]["has_subscription"] is True

        resp = client.patch("/api/notifications/preferences", json={"enabled": False}, headers=owner_headers)
        assert resp.get_json()["subscription"]["enabled"] is False

        resp = client.delete("/api/notifications/subscription", headers=owner_headers)
        assert resp.get_json() == {"removed": True}

    def test_preferences_require_boolean(self, client, owner_headers):
        resp = client.patch("/api/notifications/preferences", json={"enabled": "yes"}, headers=owner_headers)
        assert resp.status_code == 400


class TestDelivery:

    def test_staff_activity_pushed_to_owner(self, vapid, sent, subscribed_owner, sales_rep):
        activity_service.log_activity(sales_rep, "sale", "Recorded sale: 2x Family Loaf")

        [call] = sent
        assert call["subscription_info"]["endpoint"] == SUBSCRIPTION["endpoint"]
        payload = json.loads(call["data"])
        assert payload["title"] == "HomeBake Sale Recorded"
        assert payload["url"] == "/owner-dashboard"
        assert call["ttl"] == 86400

    def test_owner_activity_not_pushed(self, vapid, sent, subscribed_owner):
        assert activity_service.log_activity(subscribed_owner, "sale", "Owner sale") is None
        result = push_service.notify_owners("sale", "Olu Owner", "x", actor_role="owner")
        assert result["skipped"] == "owner activity"
        assert sent == []

    def test_skipped_without_vapid(self, sent, subscribed_owner, sales_rep):
        result = push_service.notify_owners("sale", sales_rep.name, "x", actor_role="sales_rep")
        assert result["skipped"] == "push not configured"
        assert sent == []

    def test_disabled_subscription_skipped(self, vapid, sent, subscribed_owner):
        push_service.set_enabled(subscribed_owner.id, False)
        result = push_service.notify_owners("batch", "Mary", "Batch created", actor_role="manager")
        assert result["skipped"] == "no recipients"

    def test_gone_subscription_disabled(self, vapid, db_session, subscribed_owner, monkeypatch):
        def gone(**kwargs):
            raise WebPushException("Push failed", response=SimpleNamespace(status_code=410, text="Gone"))

        monkeypatch.setattr(push_service, "webpush", gone)
        result = push_service.notify_owners("login", "Sam", "Sam logged in", actor_role="sales_rep")
        assert result["sent"] == 0

        record = push_service.get_subscription(subscribed_owner.id)
        assert record.enabled is False
        assert record.endpoint is None
        attempt = db_session.query(NotificationAttempt).one()
        assert (attempt.status, attempt.status_code) == ("failed", 410)

    def test_network_error_is_recorded_not_raised(self, vapid, db_session, subscribed_owner, monkeypatch):
        def offline(**kwargs):
            raise requests.ConnectionError("no route to host")

        monkeypatch.setattr(push_service, "webpush", offline)
        result = push_service.notify_owners("sale", "Sam", "x", actor_role="sales_rep")
        assert result == {"sent": 0, "total": 1, "skipped": None}
        # Transient failures keep the subscription
        assert push_service.get_subscription(subscribed_owner.id).enabled is True


class TestUnusableKeys:
    """The real webpush runs here; a bad VAPID key must not fail the request."""

    @pytest.fixture
    def bad_vapid(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "VAPID_PUBLIC_KEY", "test-public")
        monkeypatch.setitem(app.config, "VAPID_PRIVATE_KEY", "not-a-real-key")

    def test_batch_still_created(self, bad_vapid, client, db_session, subscribed_owner,
                                 manager_headers, bread_type):
        resp = client.post(
            "/api/batches",
            json={"bread_type_id": bread_type.id, "shift": "morning", "target_quantity": 50},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        assert db_session.query(Batch).count() == 1

        attempt = db_session.query(NotificationAttempt).one()
        assert attempt.status == "failed"
        assert attempt.error
        # Not a gone subscription, so it stays enabled
        assert push_service.get_subscription(subscribed_owner.id).enabled is True

    def test_signup_still_succeeds(self, bad_vapid, client, db_session, subscribed_owner):
        invite = invite_service.create_invite("sales_rep", subscribed_owner)
        resp = client.post("/api/auth/signup", json={
            "token": invite.token,
            "name": "Ngozi",
            "email": "ngozi@homebake.test",
            "password": "Password123!",
        })
        assert resp.status_code == 201
        assert db_session.query(User).filter_by(email="ngozi@homebake.test").count() == 1
        assert db_session.query(NotificationAttempt).filter_by(status="failed").count() == 1

    def test_send_reports_build_errors(self, bad_vapid, db_session, subscribed_owner):
        record = push_service.get_subscription(subscribed_owner.id)
        ok, status_code, error = push_service.send_to_subscription(record, {"title": "x"})
        assert ok is False
        assert status_code is None
        assert error


class TestMonitoring:

    def test_metrics_and_health(self, vapid, sent, client, subscribed_owner, owner_headers):
        push_service.notify_owners("sale", "Sam", "x", actor_role="sales_rep")

        resp = client.get("/api/notifications/monitoring?action=metrics", headers=owner_headers)
        metrics = resp.get_json()["metrics"]
        assert metrics["total_attempts"] == 1
        assert metrics["success_rate"] == 100.0

        resp = client.get("/api/notifications/monitoring?action=health", headers=owner_headers)
        assert resp.get_json()["health"]["overall_status"] == "healthy"

    def test_unknown_action(self, client, owner_headers):
        resp = client.get("/api/notifications/monitoring?action=purge", headers=owner_headers)
        assert resp.status_code == 400
        assert "cleanup" in resp.get_json()["available_actions"]

    def test_health_critical_without_vapid(self, db_session):
        assert push_service.health_check()["overall_status"] == "critical"
