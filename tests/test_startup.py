"""Tests for application startup checks and service endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from trackport import __version__
from trackport.startup import (
    StartupCheckError,
    check_database_connection,
    run_all_startup_checks,
)


class TestDatabaseConnectionCheck:
    """Tests for database connection validation."""

    def test_check_database_connection_success(self):
        with patch("trackport.startup.SessionLocal") as mock_session:
            mock_ctx = MagicMock()
            mock_ctx.__enter__ = MagicMock(return_value=mock_ctx)
            mock_ctx.__exit__ = MagicMock(return_value=False)
            result = MagicMock()
            result.scalar = MagicMock(return_value=1)
            mock_ctx.execute = MagicMock(return_value=result)
            mock_session.return_value = mock_ctx

            # Should not raise
            check_database_connection()

    def test_connection_refused_has_hint(self):
        with patch(
            "trackport.startup.SessionLocal",
            side_effect=Exception("Connection refused"),
        ):
            with pytest.raises(StartupCheckError) as exc_info:
                check_database_connection()

        assert "Cannot connect" in str(exc_info.value)
        assert "DATABASE_URL" in exc_info.value.hint

    def test_unknown_error_has_no_hint(self):
        with patch("trackport.startup.SessionLocal", side_effect=Exception("weird")):
            with pytest.raises(StartupCheckError) as exc_info:
                check_database_connection()

        assert exc_info.value.hint is None

    def test_run_all_startup_checks(self):
        with patch("trackport.startup.check_database_connection") as check:
            run_all_startup_checks()

        check.assert_called_once()


class TestServiceEndpoints:
    """Tests for the root and health endpoints."""

    def test_root(self, api_client: TestClient):
        response = api_client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == __version__

    def test_health_healthy(self, api_client: TestClient):
        with patch("trackport.db.connection.check_connection", return_value=True):
            response = api_client.get("/health")

        assert response.json() == {"status": "healthy", "database": "healthy"}

    def test_health_degraded(self, api_client: TestClient):
        with patch("trackport.db.connection.check_connection", return_value=False):
            response = api_client.get("/health")

        assert response.json() == {"status": "degraded", "database": "unhealthy"}
