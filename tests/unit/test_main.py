"""
Unit tests for FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from mr_combiner.config import settings
from mr_combiner.main import app, configure_git_identity
from mr_combiner.services.activity_guard import ActivityGuard
from mr_combiner.utils.shell import CommandResult


@pytest.fixture
def client():
    """Create a test client for the FastAPI application."""
    return TestClient(app)


def test_health_check(client):
    """Test health check endpoint."""
    guard = ActivityGuard()
    guard.try_admit(3)
    with patch("mr_combiner.api.webhooks.activity_guard", guard):
        response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["active_projects"] == [3]


def test_unknown_route(client):
    """Test that unknown routes answer with a JSON error."""
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_request_id_header_is_echoed(client):
    """Test that the logging middleware propagates X-Request-ID."""
    response = client.get("/health", headers={"X-Request-ID": "req-1"})

    assert response.headers["X-Request-ID"] == "req-1"


def test_configure_git_identity():
    """Test that the commit identity is written to the global git config."""
    calls = []

    def fake_run(argv):
        calls.append(argv)
        return CommandResult(argv=tuple(argv), returncode=0, output="")

    with patch("mr_combiner.main.run_command", side_effect=fake_run):
        configure_git_identity()

    assert calls == [
        ["git", "config", "--global", "user.email", settings.git_email],
        ["git", "config", "--global", "user.name", settings.git_user],
    ]


def test_configure_git_identity_failure():
    """Test that startup refuses to continue when git config fails."""
    failed = CommandResult(argv=("git",), returncode=1, output="error: could not lock config file")

    with patch("mr_combiner.main.run_command", return_value=failed):
        with pytest.raises(RuntimeError, match="could not lock config file"):
            configure_git_identity()
