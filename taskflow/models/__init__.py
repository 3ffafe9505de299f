from .user import User, UserRecord, Role, Provider, FederatedProvider
from .task import Task, TaskCreate, TaskUpdate, TaskStatus, TaskPriority

__all__ = [
    "User",
    "UserRecord",
    "Role",
    "Provider",
    "FederatedProvider",
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskStatus",
    "TaskPriority",
]
