"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from discord_auth.api.http.app_data import (
    ApplicationDependencies,
    AuthHandlerFactory,
    default_auth_handler_factory,
)
from discord_auth.api.http.routers import (
    create_discord_auth_router,
    discord_api_router,
    health_router,
)
from discord_auth.core.services import (
    AuthorizationSessionService,
    DbSessionService,
    DiscordApiClient,
    DiscordOAuthClientService,
    ExternalSessionService,
    GuildCache,
    UserSessionService,
)
from discord_auth.core.services.discord.api_client import build_discord_http_client
from discord_auth.core.storage.session_storage import (
    RedisSessionStorage,
    create_session_storage,
)
from discord_auth.runtime.config.config_data import ConfigurationError, validate_discord_config
from discord_auth.runtime.context import get_config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    # Query strings carry OAuth codes and state, so only the path is logged
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code, duration_ms=round(duration_ms, 1)
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


async def startup(app: FastAPI, auth_handler_factory: AuthHandlerFactory) -> None:
    """Build the application-wide services.

    Raises:
        ConfigurationError: If the Discord credentials are missing.
    """
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    validate_discord_config(config)

    database_service = DbSessionService(config)
    if config.database.create_tables:
        database_service.create_all()

    session_storage = await create_session_storage(config.redis)

    http_client = build_discord_http_client(config.discord)
    guild_cache = GuildCache(
        ttl_seconds=config.discord.guild_cache_ttl_seconds,
        max_entries=config.discord.guild_cache_max_entries,
    )
    api_client = DiscordApiClient(http_client, guild_cache, config.discord)
    oauth_client = DiscordOAuthClientService(
        http_client,
        api_client,
        config.discord,
        redirect_uri=f"{config.app.base_url}{config.discord.signin_path}",
    )

    app.state.app_dependencies = ApplicationDependencies(
        database_service=database_service,
        session_storage=session_storage,
        authorization_session_service=AuthorizationSessionService(session_storage),
        external_session_service=ExternalSessionService(session_storage),
        user_session_service=UserSessionService(session_storage),
        http_client=http_client,
        guild_cache=guild_cache,
        discord_api_client=api_client,
        discord_oauth_client=oauth_client,
        auth_handler_factory=auth_handler_factory,
    )
    logger.info("Discord redirect URI: {}", oauth_client.redirect_uri)


async def shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")
    app_dependencies: ApplicationDependencies = app.state.app_dependencies

    await app_dependencies.user_session_service.purge_expired()
    await app_dependencies.http_client.aclose()
    if isinstance(app_dependencies.session_storage, RedisSessionStorage):
        await app_dependencies.session_storage.close()
    app_dependencies.database_service.dispose()


def create_app(auth_handler_factory: AuthHandlerFactory | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        auth_handler_factory: Builds the login handler for a request's database
            session. Defaults to the identity reconciler.
    """
    config = get_config()
    handler_factory = auth_handler_factory or default_auth_handler_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await startup(app, handler_factory)
        try:
            yield
        finally:
            await shutdown(app)

    is_production = config.app.environment == "production"
    app = FastAPI(
        title="discord-auth",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )

    if is_production and "*" in config.app.cors.origins:
        raise ConfigurationError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.include_router(create_discord_auth_router(config.discord))
    app.include_router(discord_api_router)
    app.include_router(health_router)

    return app
