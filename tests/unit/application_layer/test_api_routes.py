"""
Unit Tests for API Routes

Tests the health and cache administration routes with TestClient against a
mocked CacheManager, plus a few end-to-end checks against a real manager on
the in-memory backend.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from layercache.application.api.middleware import RequestLoggingMiddleware
from layercache.application.app import create_app
from layercache.core.exceptions import CacheFlushForbiddenError, CacheKeyError
from layercache.infrastructure.cache.cache_manager import CacheManager, CacheOptions


@pytest.fixture
def client(mock_cache_manager, test_settings):
    """Test client around a mocked manager."""
    mock_cache_manager.local.size = 3
    mock_cache_manager.breaker.state.value = "closed"
    app = create_app(cache_manager=mock_cache_manager, settings=test_settings)
    return TestClient(app)


@pytest.mark.unit
class TestHealthRoutes:
    def test_health_endpoint_returns_200(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-1"})
        assert response.headers["X-Request-ID"] == "req-1"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]

    def test_root(self, client):
        data = client.get("/").json()
        assert data["name"] == "layercache"
        assert data["environment"] == "test"

    def test_detailed_health_degraded_is_200(self, client, mock_cache_manager):
        mock_cache_manager.health_check.return_value = {
            "status": "degraded",
            "local": {"status": "healthy", "size": 0},
            "remote": {"status": "unhealthy", "circuit_breaker": {"state": "closed"}},
            "stats": {},
            "pending_warmup": 0,
        }

        response = client.get("/health/detailed")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_detailed_health_open_circuit_is_503(self, client, mock_cache_manager):
        mock_cache_manager.health_check.return_value = {
            "status": "degraded",
            "local": {"status": "healthy", "size": 0},
            "remote": {"status": "unhealthy", "circuit_breaker": {"state": "open"}},
            "stats": {},
            "pending_warmup": 0,
        }

        response = client.get("/health/detailed")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_missing_manager_is_503(self, test_settings):
        app = create_app(settings=test_settings)
        response = TestClient(app).get("/admin/cache/stats")
        assert response.status_code == 503


@pytest.mark.unit
class TestAdminRoutes:
    def test_stats(self, client, mock_cache_manager):
        mock_cache_manager.get_stats.return_value = {
            "hits": 3,
            "misses": 1,
            "errors": 0,
            "evictions": 2,
            "hit_rate": 0.75,
            "l1_hits": 2,
            "l2_hits": 1,
            "total_requests": 4,
        }

        response = client.get("/admin/cache/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["hit_rate"] == 0.75
        assert data["local_size"] == 3
        assert data["circuit_state"] == "closed"

    def test_invalidate_tags(self, client, mock_cache_manager):
        mock_cache_manager.invalidate_by_tags.return_value = ["user:1", "user:2"]

        response = client.post("/admin/cache/invalidate", json={"tags": ["users"]})

        assert response.status_code == 200
        assert response.json() == {
            "tags": ["users"],
            "invalidated": ["user:1", "user:2"],
            "count": 2,
        }
        mock_cache_manager.invalidate_by_tags.assert_awaited_once_with(["users"])

    @pytest.mark.parametrize("body", [{"tags": []}, {"tags": ["  "]}, {}])
    def test_invalidate_validation(self, client, body):
        assert client.post("/admin/cache/invalidate", json=body).status_code == 422

    def test_delete_pattern(self, client, mock_cache_manager):
        mock_cache_manager.delete.return_value = 4

        response = client.delete("/admin/cache", params={"pattern": "user:*"})

        assert response.status_code == 200
        assert response.json() == {"pattern": "user:*", "deleted": 4}

    def test_delete_requires_pattern(self, client):
        assert client.delete("/admin/cache").status_code == 422

    def test_flush(self, client):
        response = client.post("/admin/cache/flush")

        assert response.status_code == 200
        assert response.json() == {"flushed": True, "environment": "test"}

    def test_flush_forbidden_is_403(self, client, mock_cache_manager):
        mock_cache_manager.flush.side_effect = CacheFlushForbiddenError("not in production")

        response = client.post("/admin/cache/flush")

        assert response.status_code == 403
        assert response.json()["detail"] == "not in production"

    def test_cache_errors_become_500(self, client, mock_cache_manager):
        mock_cache_manager.delete.side_effect = CacheKeyError("KEYS failed", key="user:*")

        response = client.delete("/admin/cache", params={"pattern": "user:*"})

        assert response.status_code == 500
        assert response.json()["error_type"] == "CacheKeyError"


@pytest.mark.unit
class TestAdminRoutesWithRealManager:
    @pytest.fixture
    def real_app(self, in_memory_backend, manual_clock, breaker, production_settings):
        manager = CacheManager(
            in_memory_backend, settings=production_settings, breaker=breaker, clock=manual_clock
        )
        return manager, create_app(cache_manager=manager, settings=production_settings)

    async def test_flush_forbidden_in_production(self, real_app):
        manager, app = real_app
        await manager.set("user:1", 1)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            response = await http.post("/admin/cache/flush")

        assert response.status_code == 403
        assert await manager.get("user:1") == 1

    async def test_invalidate_and_stats(self, real_app):
        manager, app = real_app
        await manager.set("user:1", 1, CacheOptions(tags=["users"]))
        await manager.get("user:1")

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            invalidated = await http.post("/admin/cache/invalidate", json={"tags": ["users"]})
            stats = await http.get("/admin/cache/stats")

        assert invalidated.json()["invalidated"] == ["user:1"]
        assert stats.json()["l1_hits"] == 1
        assert stats.json()["local_size"] == 0
        assert await manager.get("user:1") is None


@pytest.mark.unit
class TestRequestLoggingMiddleware:
    def test_sensitive_headers_redacted(self):
        headers = RequestLoggingMiddleware._sanitize_headers(
            {"Authorization": "Bearer abc", "X-Request-ID": "req-1"}
        )
        assert headers == {"Authorization": "[REDACTED]", "X-Request-ID": "req-1"}

