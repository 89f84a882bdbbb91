"""FastAPI application factory."""

import base64
import logging
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import settings
from src.api.routes import router
from src.calculators.safety_check import load_benchmark_table

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: load the benchmark table. Shutdown: nothing to release."""
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting up...")

    app.state.benchmarks = load_benchmark_table()

    yield

    logger.info("Shutting down...")


UNAUTHORIZED = Response(
    content="Unauthorized",
    status_code=401,
    headers={"WWW-Authenticate": "Basic"},
)


AUTH_USERNAME = settings.auth_username.encode()
AUTH_PASSWORD = settings.auth_password.encode()


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Enforce HTTP Basic Auth on all requests."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        auth = request.headers.get("Authorization")
        if auth and auth.startswith("Basic "):
            try:
                decoded = base64.b64decode(auth[6:]).decode()
                username, password = decoded.split(":", 1)
            except (ValueError, UnicodeDecodeError):
                return UNAUTHORIZED
            if secrets.compare_digest(username.encode(), AUTH_USERNAME) and secrets.compare_digest(
                password.encode(), AUTH_PASSWORD
            ):
                return await call_next(request)
        return UNAUTHORIZED


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Tax Position Engine", lifespan=lifespan)
    app.add_middleware(BasicAuthMiddleware)
    app.include_router(router)
    return app
