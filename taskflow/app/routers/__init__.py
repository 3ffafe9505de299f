from .users import router as users_router
from .tasks import router as tasks_router
from .oauth import router as oauth_router

__all__ = [
    "users_router",
    "tasks_router",
    "oauth_router",
]
