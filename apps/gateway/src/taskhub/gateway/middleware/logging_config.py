"""structlog 配置模块

TASKHUB_LOG_FORMAT: "dev"（默认，终端可读输出）或 "json"（生产环境）
TASKHUB_LOG_LEVEL:  根 logger 级别，默认 INFO

凭据类字段（password / token / authorization）在渲染前统一打码。
"""

import logging
import os

import structlog

REDACTED = "***"

SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "token_hash", "authorization"}
)

# 访问日志由 LoggingMiddleware 输出，关闭 uvicorn 自带的一份
_QUIET_LOGGERS = ("uvicorn.access",)


def redact_secrets(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog + 标准库 logging（可重复调用）"""
    log_format = os.environ.get("TASKHUB_LOG_FORMAT", "dev").lower()
    log_level = os.environ.get("TASKHUB_LOG_LEVEL", "INFO").upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_build_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
