# This file loads env variables and must thus be imported before anything else.
from . import env_loader  # noqa: F401
from .env_loader import get_current_environment, get_cors_origins, get_jwt_secret

"""FastAPI application setup for the taskflow API.

Exposes account, sign-in and task routes. This module configures CORS,
logging behavior and error rendering, and builds the shared services that
route handlers receive through dependencies.
"""

import os
import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .federation import FederationAdapter
from .routers import users_router, tasks_router, oauth_router
from .tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(
    token_service: TokenService | None = None,
    federation_adapter: FederationAdapter | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        token_service: Overrides the token service built from JWT_SECRET.
        federation_adapter: Overrides the Postgres-backed federation adapter.
    """
    app = FastAPI(title="taskflow")
    app.state.token_service = token_service or TokenService(secret=get_jwt_secret())
    app.state.federation_adapter = federation_adapter or FederationAdapter()

    app.include_router(users_router)
    app.include_router(tasks_router)
    app.include_router(oauth_router)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/api/health")
    def health_check() -> dict[str, str]:
        """Public liveness check."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": get_current_environment(),
        }

    return app


# Configure basic logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s - %(filename)s:%(lineno)d",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Configure the logging for the API itself if the user specifies it.
if "LOG_LEVEL" in os.environ:
    match os.environ["LOG_LEVEL"].upper():
        case "DEBUG":
            log_level = logging.DEBUG
        case "INFO":
            log_level = logging.INFO
        case "WARNING":
            log_level = logging.WARNING
        case "ERROR":
            log_level = logging.ERROR
        case "CRITICAL":
            log_level = logging.CRITICAL
        case _:
            raise ValueError(f"Invalid log level: {os.environ['LOG_LEVEL']}")
    logging.getLogger("taskflow").setLevel(log_level)

app = create_app()
