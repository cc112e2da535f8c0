"""ClientConfig -- 客户端配置加载

从环境变量加载配置。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

_DEFAULT_TIMEOUT_S = 10.0


class ClientConfig(BaseModel):
    """客户端配置

    环境变量:
        TASKHUB_API_URL: API 基础地址（默认 http://localhost:8000）
        TASKHUB_API_TIMEOUT_S: 请求超时（秒，默认 10）
    """

    base_url: str = Field(default="http://localhost:8000", description="API 基础 URL")
    timeout_s: float = Field(default=_DEFAULT_TIMEOUT_S, gt=0, description="请求超时（秒）")


def load_client_config() -> ClientConfig:
    """从环境变量加载客户端配置；非法超时值记录警告并使用默认值"""
    kwargs: dict = {}

    if val := os.environ.get("TASKHUB_API_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("TASKHUB_API_TIMEOUT_S"):
        try:
            timeout = float(val)
            if timeout <= 0:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKHUB_API_TIMEOUT_S",
                value=val,
                fallback=_DEFAULT_TIMEOUT_S,
            )

    return ClientConfig(**kwargs)
