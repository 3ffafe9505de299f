"""Load environment variables early for the FastAPI app.

For local dev, loads a .env.dev file. When ENV is "staging" or "prod", env
vars are injected by the platform, so no .env file is loaded.
"""

import os
import sys
from typing import Literal
from dotenv import load_dotenv

EnvironmentName = Literal["dev", "staging", "prod"]

# Required environment variables that must be set for the app to run.
# If any are missing, the app will fail to start with a clear error message.
REQUIRED_ENV_VARS = [
    "DATABASE_URL",
    "JWT_SECRET",
]

DEV_API_BASE_URL = "http://localhost:4000"
DEFAULT_FRONTEND_URL = "http://localhost:5173"
DEV_CORS_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",
]


def validate_required_env_vars() -> None:
    """Validate that all required environment variables are set.

    Raises:
        SystemExit: If any required environment variables are missing.
    """
    missing = [var for var in REQUIRED_ENV_VARS if not os.getenv(var)]
    if get_current_environment() != "dev" and not os.getenv("PUBLIC_API_BASE_URL"):
        missing.append("PUBLIC_API_BASE_URL")
    if missing:
        print(
            f"ERROR: Missing required environment variables: {', '.join(missing)}",
            file=sys.stderr,
        )
        print(
            "Please set these variables in your .env file or environment.",
            file=sys.stderr,
        )
        sys.exit(1)


def get_current_environment() -> EnvironmentName:
    """Get the current environment (dev, staging, or prod)."""
    env = os.getenv("ENV", "dev")
    if env in ("dev", "staging", "prod"):
        return env  # type: ignore[return-value]
    raise ValueError(f"Invalid ENV value: {env}. Must be 'dev', 'staging', or 'prod'.")


def get_jwt_secret() -> str:
    """Get the token-signing secret. Validated at startup."""
    return os.environ["JWT_SECRET"]


def get_public_api_base_url() -> str:
    """Get the public host of this API, used to build OAuth callback URLs.

    Falls back to the local dev server only when running in dev.
    """
    url = os.getenv("PUBLIC_API_BASE_URL")
    if not url:
        if get_current_environment() != "dev":
            raise KeyError("PUBLIC_API_BASE_URL")
        url = DEV_API_BASE_URL
    return url.rstrip("/")


def get_frontend_url() -> str:
    """Get the browser client's origin."""
    return os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/")


def get_cors_origins() -> list[str]:
    """Origins allowed by CORS. Production only trusts the configured frontend."""
    if get_current_environment() == "prod":
        return [get_frontend_url()]
    return DEV_CORS_ORIGINS


# Load env vars before any app code runs.
env = get_current_environment()
if env in ("staging", "prod"):
    print(f"Running in {env} environment (env vars injected by the platform)")
else:
    print("Loading environment variables from .env.dev")
    load_dotenv(".env.dev", verbose=True)

# Validate required env vars after loading.
validate_required_env_vars()
