"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、会话 token 有效期、密码哈希强度等可配置项。
所有值在调用时读取环境变量，便于测试中覆盖。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKHUB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKHUB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskhub.db"),
    )


def get_token_ttl_hours() -> int:
    """会话 token 有效期（小时）"""
    return int(os.environ.get("TASKHUB_TOKEN_TTL_HOURS", "24"))


def get_password_iterations() -> int:
    """PBKDF2 迭代次数"""
    return int(os.environ.get("TASKHUB_PASSWORD_ITERATIONS", "200000"))


# 密码最小长度（注册时校验）
PASSWORD_MIN_LENGTH: int = 6

# 搜索关键词最多取前 N 个词
SEARCH_MAX_TERMS: int = 16
