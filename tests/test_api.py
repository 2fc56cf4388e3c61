from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient

from bidpilot.api import scrape as scrape_api
from bidpilot.api import tenders as tenders_api
from bidpilot.core.clock import FrozenClock
from bidpilot.core.settings import settings
from bidpilot.ingest.activity import LogEntry, SourceStats
from bidpilot.ingest.base import SourceOutcome
from bidpilot.ingest.registry import SourceRegistration
from bidpilot.main import app

from conftest import NOW

OPERATOR = {settings.IDENTITY_HEADER: settings.ADMIN_EMAIL}


class FakeScheduler:
    def __init__(self):
        self.registry = [
            SourceRegistration(id="publicprocurement.ng", scrape=None, url="https://www.publicprocurement.ng/feed/"),
            SourceRegistration(id="etenders.com.ng", scrape=None, enabled=False, url="https://etenders.com.ng/"),
        ]
        self.runs = 0

    async def run_manual(self):
        self.runs += 1
        return [
            SourceOutcome(source="publicprocurement.ng", added=2, skipped=1, scraped=3),
            SourceOutcome(source="nocopo.gov.ng", error="HTTP 503"),
        ]


class FakeActivity:
    def __init__(self):
        self.calls = []

    async def recent(self, limit=100, source=None):
        self.calls.append(("recent", limit, source))
        return [LogEntry(id=1, source="scheduler", action="start", message="go", timestamp=NOW)]

    async def since(self, timestamp, limit=50):
        self.calls.append(("since", timestamp, limit))
        return []

    async def stats(self):
        return {"publicprocurement.ng": SourceStats(added=4, skipped=6, errors=1, last_run=NOW)}

    async def cleanup(self):
        return 12


class FakeTenderStore:
    def __init__(self):
        self.calls = []

    async def list_recent(self, limit=50):
        self.calls.append(("recent", limit))
        return [{"id": 1, "title": "Bridge Maintenance", "deadline": date(2026, 3, 10)}]

    async def upcoming(self, today, limit=50):
        self.calls.append(("upcoming", today, limit))
        return []

    async def by_category(self, category, limit=50):
        self.calls.append(("category", category, limit))
        return []


@pytest.fixture
def fakes():
    scheduler, activity, store = FakeScheduler(), FakeActivity(), FakeTenderStore()
    app.dependency_overrides[scrape_api.get_scrape_scheduler] = lambda: scheduler
    app.dependency_overrides[scrape_api.get_activity_logger] = lambda: activity
    app.dependency_overrides[tenders_api.get_tender_store] = lambda: store
    app.dependency_overrides[tenders_api.get_clock] = lambda: FrozenClock(NOW)
    yield scheduler, activity, store
    app.dependency_overrides.clear()


@pytest.fixture
def client(fakes):
    return TestClient(app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "ok"


def test_missing_identity_is_401(client):
    assert client.get("/admin/scrape/logs").status_code == 401
    assert client.post("/admin/scrape/run").status_code == 401


def test_non_operator_is_403(client, fakes):
    resp = client.post("/admin/scrape/run", headers={settings.IDENTITY_HEADER: "someone@else.ng"})
    assert resp.status_code == 403
    assert fakes[0].runs == 0


def test_identity_match_ignores_case(client):
    headers = {settings.IDENTITY_HEADER: settings.ADMIN_EMAIL.upper()}
    assert client.get("/admin/scrape/stats", headers=headers).status_code == 200


def test_manual_run_returns_outcomes(client, fakes):
    resp = client.post("/admin/scrape/run", headers=OPERATOR)

    assert resp.status_code == 200
    assert resp.json() == {
        "results": [
            {"source": "publicprocurement.ng", "added": 2, "skipped": 1, "scraped": 3},
            {"source": "nocopo.gov.ng", "added": 0, "skipped": 0, "scraped": 0, "error": "HTTP 503"},
        ],
        "added": 2,
        "skipped": 1,
        "errors": 1,
    }
    assert fakes[0].runs == 1


def test_logs_pass_filters_through(client, fakes):
    resp = client.get("/admin/scrape/logs", params={"limit": 20, "source": "nocopo.gov.ng"}, headers=OPERATOR)

    assert resp.status_code == 200
    assert resp.json()["logs"][0]["action"] == "start"
    assert resp.json()["logs"][0]["timestamp"] == NOW.isoformat()
    assert fakes[1].calls == [("recent", 20, "nocopo.gov.ng")]


def test_logs_since_parses_timestamp(client, fakes):
    resp = client.get("/admin/scrape/logs/since", params={"ts": "2026-03-01T08:00:00"}, headers=OPERATOR)

    assert resp.status_code == 200
    assert resp.json() == {"logs": []}
    assert fakes[1].calls == [("since", datetime(2026, 3, 1, 8, 0, 0), 50)]


def test_logs_since_requires_timestamp(client):
    assert client.get("/admin/scrape/logs/since", headers=OPERATOR).status_code == 422


def test_stats(client):
    resp = client.get("/admin/scrape/stats", headers=OPERATOR)
    assert resp.json() == {
        "publicprocurement.ng": {"added": 4, "skipped": 6, "errors": 1, "last_run": NOW.isoformat()}
    }


def test_sources_show_enabled_flags(client):
    resp = client.get("/admin/scrape/sources", headers=OPERATOR)
    assert [(s["id"], s["enabled"]) for s in resp.json()["sources"]] == [
        ("publicprocurement.ng", True),
        ("etenders.com.ng", False),
    ]


def test_cleanup(client):
    resp = client.post("/admin/scrape/cleanup", headers=OPERATOR)
    assert resp.json() == {"deleted": 12}


def test_tender_listings(client, fakes):
    store = fakes[2]

    recent = client.get("/tenders/recent", params={"limit": 5})
    assert recent.json()["tenders"][0]["deadline"] == "2026-03-10"

    client.get("/tenders/upcoming")
    resp = client.get("/tenders/category/solar-renewable")
    assert resp.json() == {"category": "Solar & Renewable", "tenders": []}

    assert store.calls == [
        ("recent", 5),
        ("upcoming", NOW.date(), 50),
        ("category", "Solar & Renewable", 50),
    ]
