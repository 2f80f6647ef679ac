from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from src.identity.api.middlewares import setup_middlewares
from src.identity.api.v1.router import api_router
from src.identity.core.config import get_settings
from src.identity.core.db import dispose_engine, get_session
from src.identity.core.errors import setup_exception_handlers
from src.identity.core.health import setup_health_endpoint, setup_metrics
from src.identity.core.logging import get_logger, setup_logging
from src.identity.core.login_exchange import LoginExchangeStore
from src.identity.core.rate_limit import limiter, rate_limit_exceeded_handler
from src.identity.core.shutdown import request_tracker
from src.identity.repositories import AuthSessionRepository
from src.identity.services import SessionService

logger = get_logger(__name__)


async def cleanup_expired_sessions() -> None:
    """Drop sessions that expired while the service was down."""
    try:
        async with get_session() as session:
            deleted = await SessionService(AuthSessionRepository(session), session).cleanup_expired()
    except SQLAlchemyError as e:
        logger.warning("Expired session cleanup failed", error=str(e))
        return
    logger.info("Expired sessions removed", count=deleted)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    await cleanup_expired_sessions()
    login_store: LoginExchangeStore = app.state.login_store
    login_store.start()

    yield

    grace_period = settings.shutdown_grace_period
    logger.info(
        f"Shutdown initiated, waiting for {request_tracker.in_flight_count} in-flight requests..."
    )
    await request_tracker.start_shutdown()
    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            f"Shutdown timeout after {grace_period}s - "
            f"{request_tracker.in_flight_count} requests may not have completed"
        )

    logger.info("Closing connections...")
    await login_store.stop()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "Registration, login, tokens and profile"},
    {"name": "oauth", "description": "Google and GitHub sign-in"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Identity and authentication service",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    app.state.login_store = LoginExchangeStore(
        ttl=timedelta(minutes=settings.login_code_expire_minutes),
        sweep_interval=settings.login_code_sweep_seconds,
    )

    setup_exception_handlers(app)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
