"""Universe API application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.latency_logging import latency_logging_with_stats_middleware
from src.api.middleware.request_size import request_size_limit_middleware
from src.api.routes import admin, auth, conversations, health, listings, posts, profiles, universities
from src.core.config import Settings, get_settings
from src.core.rate_limiter import init_rate_limiter, shutdown_rate_limiter
from src.core.supabase import close_async_supabase_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_ROUTERS = (
    auth.router,
    universities.router,
    profiles.router,
    conversations.router,
    listings.router,
    posts.router,
    admin.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logger.info("Universe API starting (%s)", settings.app_env)
    await init_rate_limiter()

    yield

    # Realtime channels hold websockets to Supabase; close them before the loop ends.
    await close_async_supabase_client()
    await shutdown_rate_limiter()
    logger.info("Universe API stopped")


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Last added runs first: size check, then latency, then error rendering.
    for dispatch in (error_handler_middleware, latency_logging_with_stats_middleware, request_size_limit_middleware):
        app.add_middleware(BaseHTTPMiddleware, dispatch=dispatch)


def create_app() -> FastAPI:
    settings = get_settings()
    docs_enabled = settings.debug

    app = FastAPI(
        title="Universe API",
        description="Campus community backend: messaging, listings, feed and moderation",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    _install_middleware(app, settings)

    app.include_router(health.router)
    api = APIRouter(prefix="/api/v1")
    for router in API_ROUTERS:
        api.include_router(router)
    app.include_router(api)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.debug)
