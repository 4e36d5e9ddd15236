from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from milehigh.config import Settings
from milehigh.data.cache import SnapshotStore
from milehigh.data.models import Snapshot
from milehigh.main import create_app
from milehigh.services.container import ServiceContainer

from conftest import FakeFetcher, ev, wait_until


def _container(fetcher, **kw) -> ServiceContainer:
    kw.setdefault("poller_enabled", False)
    kw.setdefault("groups", ("A", "B", "C"))
    return ServiceContainer(Settings(**kw), fetcher=fetcher)


@pytest.fixture
def container(fake_fetcher) -> ServiceContainer:
    return _container(fake_fetcher)


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "service": "milehigh-events"}


def test_index_before_first_poll(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Mile High Gopher Events" in r.text
    assert "<h1>" not in r.text


def test_index_after_poll(client, container):
    container.poller.run_once()
    r = client.get("/")
    assert r.status_code == 200
    assert "<h1>A</h1>" in r.text
    assert "<h1>C</h1>" in r.text
    # B failed this cycle and is left off the page
    assert "<h1>B</h1>" not in r.text
    assert r.text.index("event 2") < r.text.index("event 1")


def test_events_json_empty_before_first_poll(client):
    j = client.get("/v1/events").json()
    assert j["ok"] is True
    assert j["events"] == {}
    assert j["generation"] == 0


def test_events_json(client, container):
    container.poller.run_once()
    j = client.get("/v1/events").json()
    assert j["generation"] == 1
    assert j["events"] == {
        "A": [{"id": "2", "name": "event 2", "time": 100}, {"id": "1", "name": "event 1", "time": 300}],
        "C": [{"id": "c1", "name": "event c1", "time": 50}],
    }


def test_events_json_limit(client, container):
    container.poller.run_once()
    j = client.get("/v1/events", params={"limit": 1}).json()
    assert [e["id"] for e in j["events"]["A"]] == ["2"]
    assert client.get("/v1/events", params={"limit": -1}).status_code == 422


def test_health_poller_reports_failures(client, container):
    container.poller.run_once()
    j = client.get("/health/poller").json()
    assert j["ok"] is True
    assert j["poller"]["cycles"] == 1
    assert j["store"]["populated"] is True
    assert "connection refused" in j["failures"]["B"]


def test_top_n_setting_clamps_page():
    fetcher = FakeFetcher({"A": [ev(str(i), i, f"talk {i}") for i in range(5)]})
    c = _container(fetcher, groups=("A",), top_n=2)
    c.poller.run_once()
    with TestClient(create_app(c)) as client:
        page = client.get("/").text
    assert page.count("<li>") == 2


def test_stylesheet_is_served(client):
    r = client.get("/assets/styles.css")
    assert r.status_code == 200
    assert "body" in r.text


def test_poller_runs_with_app_lifespan(fake_fetcher):
    c = _container(fake_fetcher, poller_enabled=True, poll_interval_s=60)
    with TestClient(create_app(c)) as client:
        assert wait_until(lambda: c.poller.cycles >= 1)
        assert "A" in client.get("/v1/events").json()["events"]
        assert c.poller.running()
    # shutdown stops the loop
    assert not c.poller.running()


class RacingStore(SnapshotStore):
    """Installs the next generation right after every read, like a poll finishing mid-request."""

    def _bump(self) -> None:
        n = self.generation + 1
        SnapshotStore.replace(self, Snapshot.build({"A": [ev(f"g{n}", n)]}, failures={"B": f"g{n}"}))

    def read(self):
        cur = super().read()
        self._bump()
        return cur

    def view(self):
        cur = super().view()
        self._bump()
        return cur


def _racing_container() -> ServiceContainer:
    c = _container(FakeFetcher({}), groups=("A",))
    store = RacingStore()
    SnapshotStore.replace(store, Snapshot.build({"A": [ev("g1", 1)]}, failures={"B": "g1"}))
    c.store = store
    c.poller.store = store
    return c


def test_events_json_generation_matches_events_under_concurrent_replace():
    c = _racing_container()
    with TestClient(create_app(c)) as client:
        for _ in range(3):
            j = client.get("/v1/events").json()
            assert j["events"]["A"][0]["id"] == f"g{j['generation']}"


def test_health_poller_failures_match_store_status_under_concurrent_replace():
    c = _racing_container()
    with TestClient(create_app(c)) as client:
        for _ in range(3):
            j = client.get("/health/poller").json()
            assert j["ok"] is True
            assert j["failures"] == {"B": f"g{j['store']['generation']}"}


def test_logo_is_served(client):
    r = client.get("/assets/logo.svg")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("image/svg+xml")
    assert "<svg" in r.text
