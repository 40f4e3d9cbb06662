"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status and version
  - No authentication required
  - Never throttled: listed in the rate limiter's skip_paths
"""

from __future__ import annotations


def test_health_returns_200_with_version(api_client):
    """Health endpoint returns 200 with status and version."""
    resp = api_client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_health_is_not_rate_limited(api_client):
    """Load balancer health checks must never see 429 or carry rate-limit headers."""
    for _ in range(120):
        resp = api_client.get("/api/v1/health")
        assert resp.status_code == 200
    assert "X-RateLimit-Limit" not in resp.headers
