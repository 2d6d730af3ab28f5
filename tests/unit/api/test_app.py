"""Tests for application setup, middleware and health endpoints."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from discord_auth.api.http.app import create_app, shutdown, startup
from discord_auth.api.http.app_data import default_auth_handler_factory
from discord_auth.core.services import IdentityReconciler
from discord_auth.core.storage.session_storage import InMemorySessionStorage
from discord_auth.runtime.config.config_data import ConfigurationError


class TestStartup:
    """Test building the application services."""

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_fast(self, app_config):
        app_config.discord.client_secret = ""

        with pytest.raises(ConfigurationError, match="discord.client_secret"):
            await startup(FastAPI(), default_auth_handler_factory)

    @pytest.mark.asyncio
    async def test_wires_dependencies(self, app_config):
        app = FastAPI()

        await startup(app, default_auth_handler_factory)
        try:
            deps = app.state.app_dependencies
            assert isinstance(deps.session_storage, InMemorySessionStorage)
            assert deps.discord_oauth_client.redirect_uri == "http://testserver/signin-discord"
            assert deps.database_service.health_check()
            assert str(deps.http_client.base_url) == "https://discord.com/api/"
        finally:
            await shutdown(app)

    def test_lifespan_refuses_to_start_without_credentials(self, app_config):
        app_config.discord.client_id = ""
        app = create_app()

        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass

    def test_default_handler_is_identity_reconciler(self, session):
        assert isinstance(default_auth_handler_factory(session), IdentityReconciler)


class TestCreateApp:
    def test_wildcard_cors_rejected_in_production(self, app_config):
        app_config.app.environment = "production"
        app_config.app.cors.origins = ["*"]

        with pytest.raises(ConfigurationError):
            create_app()

    def test_docs_hidden_in_production(self, app_config):
        app_config.app.environment = "production"
        assert create_app().docs_url is None

    def test_custom_auth_handler_factory(self, app_config):
        factory = lambda db_session: None  # noqa: E731

        with patch("discord_auth.api.http.app.startup") as mock_startup, patch(
            "discord_auth.api.http.app.shutdown"
        ):
            app = create_app(auth_handler_factory=factory)
            with TestClient(app):
                pass

        assert mock_startup.call_args.args[1] is factory


class TestMiddleware:
    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]

    def test_request_id_is_propagated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "healthy", "service": "discord-auth"}

    def test_readiness(self, client):
        response = client.get("/health/ready")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["session_storage"]["type"] == "in-memory"
        assert body["checks"]["discord"]["configured"] is True

    def test_readiness_reports_database_outage(self, client, db_service):
        with patch.object(db_service, "health_check", return_value=False):
            response = client.get("/health/ready")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["status"] == "not_ready"
