from .user import UserFactory
from .task import TaskFactory
from .user_store import InMemoryUserStore

__all__ = [
    "UserFactory",
    "TaskFactory",
    "InMemoryUserStore",
]
