"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，验证 SQLite 连通性与 WAL 模式。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
from taskhub.core.store.sqlite_init import verify_wal_mode

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. wal_mode: 是否启用 WAL
    """
    checks = {}
    all_ok = True

    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
        if await verify_wal_mode(store_group.conn):
            checks["wal_mode"] = "ok"
        else:
            # 未启用 WAL 视为未就绪
            checks["wal_mode"] = "off"
            all_ok = False
    except Exception as e:
        log.warning("readiness_check_failed", error=str(e))
        checks["sqlite"] = "unavailable"
        all_ok = False

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
