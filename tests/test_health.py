"""
tests/test_health.py — Health Check Tests
==========================================
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from triplace.services import health_service
from triplace.services.health_service import overall_status, perform_health_check


class TestOverallStatus:
    @pytest.mark.parametrize(("checks", "expected"), [
        ({"database": "pass", "storage": "pass"}, "healthy"),
        ({"database": "pass", "storage": "fail"}, "degraded"),
        ({"database": "fail", "storage": "fail"}, "unhealthy"),
    ])
    def test_failure_count(self, checks, expected):
        assert overall_status(checks) == expected


class TestPerformHealthCheck:
    def test_healthy(self, db_engine):
        report = perform_health_check(db_engine)
        assert report["status"] == "healthy"
        assert report["checks"] == {"database": "pass", "storage": "pass"}
        assert report["response_time_ms"] >= 0
        assert report["uptime_seconds"] >= 0

    def test_degraded_without_schema(self):
        # Connects fine but has no tables, so only the storage probe fails.
        engine = create_engine("sqlite://", poolclass=StaticPool)
        report = perform_health_check(engine)
        assert report["status"] == "degraded"
        assert report["checks"] == {"database": "pass", "storage": "fail"}

    def test_unhealthy(self, db_engine):
        with (
            patch.object(health_service, "_probe_database", return_value=False),
            patch.object(health_service, "_probe_storage", return_value=False),
        ):
            report = perform_health_check(db_engine)
        assert report["status"] == "unhealthy"
        assert health_service.STATUS_CODES[report["status"]] == 503


class TestHealthEndpoint:
    def test_degraded_is_202(self, client):
        with patch.object(health_service, "_probe_storage", return_value=False):
            resp = client.get("/api/health")
        assert resp.status_code == 202
        assert resp.json()["status"] == "degraded"

    def test_unhealthy_is_503(self, client):
        with (
            patch.object(health_service, "_probe_database", return_value=False),
            patch.object(health_service, "_probe_storage", return_value=False),
        ):
            resp = client.get("/api/health/detailed")
        assert resp.status_code == 503
        assert resp.json()["checks"]["database"] == "fail"
