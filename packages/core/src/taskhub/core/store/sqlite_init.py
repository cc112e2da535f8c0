"""SQLite 数据库初始化

PRAGMA 配置 + users/tasks/sessions 三张表 + tasks_fts 全文索引。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id        TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    email          TEXT NOT NULL UNIQUE,
    password_hash  TEXT NOT NULL,
    role           TEXT NOT NULL DEFAULT 'employee',
    created_at     TEXT NOT NULL
);
"""

# tasks 表 DDL
# assigned_to / created_by 使用 RESTRICT：被任务引用的用户不可删除
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id      TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    description  TEXT NOT NULL,
    category     TEXT NOT NULL,
    status       TEXT NOT NULL DEFAULT 'pending',
    assigned_to  TEXT NOT NULL,
    created_by   TEXT NOT NULL,
    due_date     TEXT NOT NULL,
    tags         TEXT NOT NULL DEFAULT '[]',
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    version      INTEGER NOT NULL DEFAULT 1,

    FOREIGN KEY (assigned_to) REFERENCES users(user_id) ON DELETE RESTRICT,
    FOREIGN KEY (created_by) REFERENCES users(user_id) ON DELETE RESTRICT
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_by ON tasks(created_by);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# 标题全文索引（porter 词干 + unicode61 分词）
_TASKS_FTS_DDL = """
CREATE VIRTUAL TABLE IF NOT EXISTS tasks_fts USING fts5(
    task_id UNINDEXED,
    title,
    tokenize = 'porter unicode61'
);
"""

# 触发器保持 tasks_fts 与 tasks 同步
_TASKS_FTS_TRIGGERS = [
    """
    CREATE TRIGGER IF NOT EXISTS tasks_fts_insert AFTER INSERT ON tasks BEGIN
        INSERT INTO tasks_fts (task_id, title) VALUES (new.task_id, new.title);
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS tasks_fts_delete AFTER DELETE ON tasks BEGIN
        DELETE FROM tasks_fts WHERE task_id = old.task_id;
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS tasks_fts_update AFTER UPDATE OF title ON tasks BEGIN
        UPDATE tasks_fts SET title = new.title WHERE task_id = old.task_id;
    END;
    """,
]

# sessions 表 DDL（只保存 token 的 SHA-256）
_SESSIONS_DDL = """
CREATE TABLE IF NOT EXISTS sessions (
    token_hash  TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL,

    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);
"""

_SESSIONS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引/触发器

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_USERS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_TASKS_FTS_DDL)
    await conn.execute(_SESSIONS_DDL)

    # 创建索引与触发器
    for sql in _TASKS_INDEXES + _TASKS_FTS_TRIGGERS + _SESSIONS_INDEXES:
        await conn.execute(sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
