"""
Unit Tests for API Routes

Tests the page and admin cache routes through TestClient, with the app wired
to FakeDirectory and (where needed) an in-memory Redis stand-in.
"""

import pytest
from fastapi.testclient import TestClient

from directory_cache.application.app import create_app
from directory_cache.core.config.constants import PAGE_CACHE_CONTROL
from directory_cache.core.exceptions import ConfigurationError
from tests.test_fixtures import client_factory, make_settings

PERSON_URL = "/api/v1/persons/mendocino/jane-doe"


def drain_background_writes(test_client: TestClient) -> None:
    """Wait, on the app's own loop, for Redis writes scheduled by earlier requests."""
    test_client.portal.call(test_client.app.state.cache_manager.drain)


@pytest.fixture
def client(settings, fake_directory):
    """Memory-only app."""
    with TestClient(create_app(fake_directory, settings)) as test_client:
        yield test_client


@pytest.fixture
def redis_client(redis_settings, fake_directory, kv_client):
    """App with both tiers, Redis backed by an in-memory client."""
    app = create_app(fake_directory, redis_settings, redis_client_factory=client_factory(kv_client))
    with TestClient(app) as test_client:
        yield test_client


@pytest.mark.unit
class TestPageRoutes:
    """Test the public page data routes and their cache headers."""

    def test_person_first_from_database_then_memory(self, client):
        first = client.get(PERSON_URL)
        second = client.get(PERSON_URL)

        assert first.status_code == 200
        assert first.headers["X-Cache-Source"] == "database"
        assert second.headers["X-Cache-Source"] == "memory"
        assert float(first.headers["X-Cache-Latency"]) > 0
        assert float(second.headers["X-Cache-Latency"]) < float(first.headers["X-Cache-Latency"])
        assert first.json() == second.json()
        assert first.json()["person"]["created_at"] == "2024-03-01T12:30:45.123Z"

    def test_latency_header_has_two_decimals(self, client):
        latency = client.get(PERSON_URL).headers["X-Cache-Latency"]
        assert len(latency.split(".")[1]) == 2

    def test_cdn_cache_control(self, client):
        response = client.get("/api/v1/homepage")
        assert response.headers["Cache-Control"] == PAGE_CACHE_CONTROL

    def test_no_cache_request_forces_database(self, client, fake_directory):
        client.get(PERSON_URL)

        response = client.get(PERSON_URL, headers={"Cache-Control": "no-cache"})

        assert response.headers["X-Cache-Source"] == "database"
        assert "Cache-Control" not in response.headers
        assert fake_directory.calls["person"] == 2

    def test_town_page(self, client):
        response = client.get("/api/v1/towns/mendocino")

        assert response.status_code == 200
        assert response.json()["slug"] == "mendocino"
        assert len(response.json()["persons"]) == 2

    def test_homepage(self, client):
        response = client.get("/api/v1/homepage")

        assert response.status_code == 200
        assert response.json()["total_detained"] == 2

    def test_unknown_person_is_404(self, client):
        response = client.get("/api/v1/persons/mendocino/nobody")

        assert response.status_code == 404
        assert "X-Cache-Source" not in response.headers

    def test_unknown_town_is_404(self, client):
        assert client.get("/api/v1/towns/atlantis").status_code == 404

    def test_blank_slug_is_400(self, client):
        response = client.get("/api/v1/towns/%20")

        assert response.status_code == 400
        assert response.json()["error_type"] == "CacheKeyError"

    def test_request_id_is_echoed(self, client):
        response = client.get("/api/v1/homepage", headers={"X-Request-ID": "req-abc"})
        assert response.headers["X-Request-ID"] == "req-abc"

    def test_request_id_generated_when_missing(self, client):
        assert client.get("/api/v1/homepage").headers["X-Request-ID"]

    def test_distributed_source_after_memory_clear(self, redis_client):
        redis_client.get(PERSON_URL)
        drain_background_writes(redis_client)
        redis_client.post("/api/v1/admin/cache/clear/memory")

        response = redis_client.get(PERSON_URL)

        assert response.headers["X-Cache-Source"] == "distributed"


@pytest.mark.unit
class TestAdminRoutes:
    """Test the admin cache endpoints."""

    def test_clear_memory(self, client):
        client.get(PERSON_URL)
        client.get("/api/v1/homepage")

        response = client.post("/api/v1/admin/cache/clear/memory")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Memory cache cleared successfully"
        assert body["entries_removed"] == 2
        assert client.get(PERSON_URL).headers["X-Cache-Source"] == "database"

    def test_clear_redis_when_disabled(self, client):
        body = client.post("/api/v1/admin/cache/clear/redis").json()

        assert body["available"] is False
        assert body["message"] == "Redis cache is not enabled or not available"

    def test_clear_redis(self, redis_client, kv_client):
        redis_client.get(PERSON_URL)
        drain_background_writes(redis_client)
        kv_client.data["sessions:keep-me"] = b"1"

        body = redis_client.post("/api/v1/admin/cache/clear/redis").json()

        assert body["available"] is True
        assert body["entries_removed"] == 1
        assert list(kv_client.data) == ["sessions:keep-me"]

    def test_stats_and_reset(self, client):
        client.get(PERSON_URL)
        client.get(PERSON_URL)

        stats = client.get("/api/v1/admin/cache/stats").json()["stats"]

        assert stats["memory"]["hits"] == 1
        assert stats["memory"]["misses"] == 1
        assert stats["database"]["by_key"] == {"person:mendocino/jane-doe": 1}

        reset = client.post("/api/v1/admin/cache/stats/reset").json()
        assert reset["message"] == "Cache statistics reset successfully"

        stats = client.get("/api/v1/admin/cache/stats").json()["stats"]
        assert stats["memory"]["hits"] == 0
        assert stats["database"]["queries"] == 0

    def test_config(self, client):
        body = client.get("/api/v1/admin/cache/config").json()

        assert body["config"]["CACHE_MEMORY_ENABLE"] is True
        assert body["config"]["REDIS_HOST"] == "not configured"
        assert body["redis_health"] is None

    def test_config_with_redis(self, redis_client):
        body = redis_client.get("/api/v1/admin/cache/config").json()

        assert body["config"]["redis_available"] is True
        assert body["redis_health"]["namespace"] == "bring-me-home:cache:v1"

    def test_invalidate_person(self, client):
        client.get(PERSON_URL)

        body = client.delete("/api/v1/admin/cache/persons/mendocino/jane-doe").json()

        assert body["key"] == "person:mendocino/jane-doe"
        assert body["memory"] is True
        assert body["distributed"] is None
        assert client.get(PERSON_URL).headers["X-Cache-Source"] == "database"

    def test_invalidate_town_and_homepage(self, client):
        client.get("/api/v1/towns/mendocino")

        town = client.delete("/api/v1/admin/cache/towns/mendocino").json()
        homepage = client.delete("/api/v1/admin/cache/homepage").json()

        assert town["memory"] is True
        assert homepage["memory"] is False


@pytest.mark.unit
class TestAdminAccess:
    """Test the optional admin token guard."""

    @pytest.fixture
    def guarded_client(self, fake_directory):
        settings = make_settings(CACHE_ADMIN_TOKEN="s3cret")
        with TestClient(create_app(fake_directory, settings)) as test_client:
            yield test_client

    def test_missing_token_rejected(self, guarded_client):
        assert guarded_client.get("/api/v1/admin/cache/stats").status_code == 403

    def test_wrong_token_rejected(self, guarded_client):
        response = guarded_client.get(
            "/api/v1/admin/cache/stats", headers={"X-Admin-Token": "guess"}
        )
        assert response.status_code == 403

    def test_non_ascii_token_rejected(self, guarded_client):
        response = guarded_client.get(
            "/api/v1/admin/cache/stats", headers={"X-Admin-Token": "sécret".encode("utf-8")}
        )
        assert response.status_code == 403

    def test_correct_token_accepted(self, guarded_client):
        response = guarded_client.get(
            "/api/v1/admin/cache/stats", headers={"X-Admin-Token": "s3cret"}
        )
        assert response.status_code == 200

    def test_pages_are_not_guarded(self, guarded_client):
        assert guarded_client.get("/api/v1/homepage").status_code == 200


@pytest.mark.unit
class TestRoot:
    def test_root_info(self, client):
        body = client.get("/").json()

        assert body["cache_enabled"] is True
        assert body["docs"] == "/docs"


@pytest.mark.unit
class TestAppFactory:
    @pytest.mark.parametrize("base_path", ["api/v1", "/api/v1/"])
    def test_unusable_base_path_rejected(self, fake_directory, base_path):
        with pytest.raises(ConfigurationError):
            create_app(fake_directory, make_settings(API_BASE_PATH=base_path))

    def test_custom_base_path(self, fake_directory):
        settings = make_settings(API_BASE_PATH="/cache-api")
        with TestClient(create_app(fake_directory, settings)) as test_client:
            assert test_client.get("/cache-api/homepage").status_code == 200
