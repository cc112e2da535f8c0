"""TaskHub Client -- TaskHub REST API 异步客户端

packages/client 的公开接口导出。
"""

from .client import TaskHubClient
from .config import ClientConfig, load_client_config
from .exceptions import ApiError, ApiUnreachableError, ClientError, NotLoggedInError
from .models import TaskRecord, TaskSummary, UserRecord, UserRef
from .state import ClientState

__all__ = [
    "TaskHubClient",
    "ClientState",
    "ClientConfig",
    "load_client_config",
    "TaskRecord",
    "TaskSummary",
    "UserRecord",
    "UserRef",
    "ClientError",
    "ApiError",
    "ApiUnreachableError",
    "NotLoggedInError",
]
