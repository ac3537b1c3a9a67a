"""
Activity feed and ChangeFeed subscriber tests.
"""

import httpx
import pytest

from homebake.client import ChangeFeed, HomeBakeClient, QueryCache
from homebake.client.query_cache import batches_key, inventory_key, sales_key
from homebake.models import Activity
from homebake.services import activity_service

from conftest import TEST_PASSWORD


@pytest.fixture
def owner_api(app, owner):
    client = HomeBakeClient("http://testserver", transport=httpx.WSGITransport(app=app))
    client.login(owner.email, TEST_PASSWORD)
    yield client
    client.close()


@pytest.fixture
def rep_api(app, sales_rep):
    client = HomeBakeClient("http://testserver", transport=httpx.WSGITransport(app=app))
    client.login(sales_rep.email, TEST_PASSWORD)
    yield client
    client.close()


class FlakyClient:
    """Stands in for HomeBakeClient.activity_feed."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def activity_feed(self, since_id=0, limit=100):
        self.calls.append(since_id)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestFeedEndpoint:

    def test_returns_rows_after_cursor_oldest_first(self, client, db_session, sales_rep, manager, owner_headers):
        first = activity_service.log_activity(sales_rep, "sale", "one")
        second = activity_service.log_activity(manager, "batch", "two")
        third = activity_service.log_activity(sales_rep, "end_shift", "three")

        resp = client.get(f"/api/activities/feed?since_id={first.id}", headers=owner_headers)
        data = resp.get_json()
        assert [a["id"] for a in data["items"]] == [second.id, third.id]
        assert data["next_cursor"] == third.id
        assert data["latest_id"] == third.id

    def test_cursor_unchanged_when_nothing_new(self, client, db_session, sales_rep, owner_headers):
        activity = activity_service.log_activity(sales_rep, "sale", "one")
        resp = client.get(f"/api/activities/feed?since_id={activity.id}", headers=owner_headers)
        assert resp.get_json()["items"] == []
        assert resp.get_json()["next_cursor"] == activity.id

    def test_owner_actions_not_logged(self, db_session, owner):
        assert activity_service.log_activity(owner, "sale", "owner sale") is None
        assert db_session.query(Activity).count() == 0

    def test_negative_limit_clamped(self, client, db_session, sales_rep, owner_headers):
        activity_service.log_activity(sales_rep, "sale", "one")
        activity_service.log_activity(sales_rep, "sale", "two")

        rows, next_cursor = activity_service.feed_since(0, limit=-1)
        assert len(rows) == 1
        assert next_cursor == rows[0].id

        resp = client.get("/api/activities?limit=-1&offset=-3", headers=owner_headers)
        data = resp.get_json()
        assert data["count"] == 1
        assert data["items"][0]["message"] == "two"

    def test_list_rejects_unknown_type(self, client, owner_headers):
        resp = client.get("/api/activities?type=refund", headers=owner_headers)
        assert resp.status_code == 400


class TestChangeFeed:

    def test_poll_dispatches_and_invalidates(self, db_session, owner_api, sales_rep):
        cache = QueryCache()
        cache.set(inventory_key(), {"items": []})
        cache.set(sales_key("morning"), [])
        cache.set(batches_key("morning"), [])

        feed = ChangeFeed(owner_api, cache=cache)
        received = []
        feed.subscribe("sale", received.append)

        activity_service.log_activity(sales_rep, "sale", "Recorded sale: 1x Family Loaf")
        items = feed.poll_once()

        assert [a["activity_type"] for a in items] == ["sale"]
        assert [a["message"] for a in received] == ["Recorded sale: 1x Family Loaf"]
        assert cache.keys() == [batches_key("morning")]
        assert feed.cursor == items[0]["id"]
        assert feed.poll_once() == []

    def test_sales_rep_feed_invalidates_cache(self, db_session, rep_api, manager):
        cache = QueryCache()
        cache.set(inventory_key(), {"items": []})
        cache.set(batches_key("night"), [])
        cache.set(sales_key("night"), [])

        feed = ChangeFeed(rep_api, cache=cache)
        activity_service.log_activity(manager, "batch", "Created batch: 40x Family Loaf", shift="night")

        assert feed.tick() == feed.interval
        assert feed.failures == 0
        assert cache.keys() == [sales_key("night")]
        assert feed.cursor > 0

    def test_wildcard_and_unsubscribe(self):
        responses = [
            {"items": [{"id": 1, "activity_type": "login"}], "next_cursor": 1},
            {"items": [{"id": 2, "activity_type": "login"}], "next_cursor": 2},
        ]
        feed = ChangeFeed(FlakyClient(responses))
        everything, logins = [], []
        feed.subscribe("*", everything.append)
        unsubscribe = feed.subscribe("login", logins.append)

        feed.poll_once()
        unsubscribe()
        feed.poll_once()

        assert [a["id"] for a in everything] == [1, 2]
        assert [a["id"] for a in logins] == [1]

    def test_subscriber_errors_do_not_stop_dispatch(self):
        feed = ChangeFeed(FlakyClient([{"items": [{"id": 5, "activity_type": "sale"}], "next_cursor": 5}]))
        received = []

        def broken(activity):
            raise RuntimeError("boom")

        feed.subscribe("sale", broken)
        feed.subscribe("sale", received.append)
        feed.poll_once()
        assert [a["id"] for a in received] == [5]
        assert feed.cursor == 5

    def test_backoff_on_errors_and_reset(self):
        error = ConnectionError("offline")
        client = FlakyClient([error, error, error, {"items": [], "next_cursor": 0}])
        feed = ChangeFeed(client, interval=15, max_backoff=60)

        assert feed.tick() == 30
        assert feed.tick() == 60
        assert feed.tick() == 60
        assert feed.failures == 3

        assert feed.tick() == 15
        assert feed.failures == 0

    def test_cursor_carried_between_polls(self):
        client = FlakyClient([
            {"items": [{"id": 9, "activity_type": "batch"}], "next_cursor": 9},
            {"items": [], "next_cursor": 9},
        ])
        feed = ChangeFeed(client, since_id=4)
        feed.poll_once()
        feed.poll_once()
        assert client.calls == [4, 9]
