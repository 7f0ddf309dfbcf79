"""Tests for the HTTP API."""

from contextlib import asynccontextmanager
from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from crashbot.analysis import Classifier
from crashbot.database import SCHEMA_SQL
from crashbot.exceptions import PersistenceError
from crashbot.issues import IssueLedger, MemoryIssueStore, PostgresIssueStore
from crashbot.web import create_app

RESOURCE_LOG = "[my_resource] some_script.lua:42: error"


class BrokenStore(MemoryIssueStore):
    async def upsert(self, resource_name, cause, description, now):
        raise PersistenceError("database is down")

    async def list_issues(self, status=None, limit=None):
        raise PersistenceError("database is down")


class UnreachableStore(MemoryIssueStore):
    async def ensure_schema(self):
        raise PersistenceError("connection refused")


class FakeConnection:
    def __init__(self):
        self.executed = []

    async def execute(self, sql):
        self.executed.append(sql)


class FakePool:
    """Stands in for an asyncpg pool."""

    def __init__(self):
        self.conn = FakeConnection()

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


class ExplodingNotifier:
    async def issue_created(self, record):
        raise RuntimeError("webhook misconfigured")


@pytest.fixture
def client(local_strategy, clock):
    ledger = IssueLedger(MemoryIssueStore(), clock=clock)
    app = create_app(Classifier([local_strategy]), ledger)
    with TestClient(app) as client:
        yield client


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "CrashBot API"
        assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


class TestStartup:
    """Test application wiring and startup."""

    def test_startup_creates_schema(self, local_strategy):
        pool = FakePool()
        app = create_app(Classifier([local_strategy]), IssueLedger(PostgresIssueStore(pool=pool)))
        with TestClient(app):
            pass
        assert pool.conn.executed == [SCHEMA_SQL]

    def test_unreachable_store_does_not_block_startup(self, local_strategy):
        """Analysis keeps working while the issue store is down."""
        app = create_app(Classifier([local_strategy]), IssueLedger(UnreachableStore()))
        with TestClient(app) as client:
            assert client.get("/api/health").status_code == 200
            response = client.post("/api/analyze", json={"crashLog": "GTA5_b1234.exe EXCEPTION_ACCESS_VIOLATION"})
            assert response.status_code == 200

    def test_module_level_app(self):
        from crashbot.web import server
        assert isinstance(server.app, FastAPI)
        assert "/api/analyze" in {route.path for route in server.app.routes}


class TestAnalyze:
    """Test POST /api/analyze."""

    def test_client_crash(self, client):
        response = client.post("/api/analyze", json={"crashLog": "GTA5_b1234.exe EXCEPTION_ACCESS_VIOLATION"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["reported"] is False
        analysis = data["analysis"]
        assert analysis["crash_type"] == "client"
        assert analysis["cause"] == "Memory Access Violation"
        assert analysis["resource_name"] is None
        assert analysis["solutions"]

    def test_resource_crash_is_reported(self, client):
        for _ in range(2):
            response = client.post("/api/analyze", json={"crashLog": RESOURCE_LOG})
            assert response.json()["reported"] is True

        analysis = response.json()["analysis"]
        assert analysis["crash_type"] == "resource"
        assert analysis["resource_name"] == "my_resource"

        issues = client.get("/api/issues").json()
        assert issues["pending"] == 1
        assert issues["issues"][0]["resource_name"] == "my_resource"
        assert issues["issues"][0]["occurrence_count"] == 2

    @pytest.mark.parametrize("body", [{}, {"crashLog": ""}, {"crashLog": "   "}, {"crashLog": None}])
    def test_missing_log(self, client, body):
        """Missing log text is a client error, not an analysis failure."""
        response = client.post("/api/analyze", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No crash log provided"}

    def test_invalid_body(self, client):
        response = client.post("/api/analyze", content=b"not json",
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_all_strategies_failed(self, failing_strategy):
        app = create_app(Classifier([failing_strategy]), IssueLedger(MemoryIssueStore()))
        with TestClient(app) as client:
            response = client.post("/api/analyze", json={"crashLog": "some log"})

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Failed to analyze crash log"
        assert "upstream unavailable" in data["message"]

    def test_ledger_failure_still_returns_analysis(self, local_strategy):
        """A ledger outage does not hide the analysis from the player."""
        app = create_app(Classifier([local_strategy]), IssueLedger(BrokenStore()))
        with TestClient(app) as client:
            response = client.post("/api/analyze", json={"crashLog": RESOURCE_LOG})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["reported"] is False
        assert "warning" in data
        assert data["analysis"]["resource_name"] == "my_resource"

    def test_notifier_failure_still_reports(self, local_strategy):
        """A broken webhook does not cost the player the analysis."""
        ledger = IssueLedger(MemoryIssueStore(), notifier=ExplodingNotifier())
        app = create_app(Classifier([local_strategy]), ledger)
        with TestClient(app) as client:
            response = client.post("/api/analyze", json={"crashLog": RESOURCE_LOG})

        assert response.status_code == 200
        data = response.json()
        assert data["reported"] is True
        assert data["analysis"]["resource_name"] == "my_resource"


class TestIssues:
    """Test the staff issue endpoints."""

    def test_empty(self, client):
        assert client.get("/api/issues").json() == {"issues": [], "pending": 0}

    def test_mark_fixed(self, client):
        client.post("/api/analyze", json={"crashLog": RESOURCE_LOG})

        response = client.post("/api/issues/my_resource/fix", json={"fixedBy": "dev1"})
        assert response.status_code == 200
        issue = response.json()["issue"]
        assert issue["status"] == "fixed"
        assert issue["fixed_by"] == "dev1"
        assert issue["fixed_at"] is not None

        again = client.post("/api/issues/my_resource/fix", json={"fixedBy": "dev2"})
        assert again.status_code == 200
        assert again.json()["issue"]["fixed_by"] == "dev1"

        assert client.get("/api/issues/prioritized").json() == {"issues": []}
        assert client.get("/api/issues?status=fixed").json()["issues"][0]["resource_name"] == "my_resource"

    def test_mark_fixed_unknown(self, client):
        response = client.post("/api/issues/ghost/fix", json={"fixedBy": "dev1"})
        assert response.status_code == 404

    def test_mark_fixed_requires_fixed_by(self, client):
        client.post("/api/analyze", json={"crashLog": RESOURCE_LOG})
        response = client.post("/api/issues/my_resource/fix", json={})
        assert response.status_code == 400

    def test_bad_status_filter(self, client):
        assert client.get("/api/issues?status=closed").status_code == 400

    def test_bad_limit(self, client):
        assert client.get("/api/issues?limit=0").status_code == 400

    def test_store_outage(self, local_strategy):
        app = create_app(Classifier([local_strategy]), IssueLedger(BrokenStore()))
        with TestClient(app) as client:
            assert client.get("/api/issues").status_code == 503
            assert client.get("/api/issues/prioritized").status_code == 503
