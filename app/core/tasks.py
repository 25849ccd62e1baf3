# app/core/tasks.py

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from app.core.database import get_async_session_context

logger = logging.getLogger(__name__)


async def health_check_database_task(ctx):
    """
    ARQ 워커에 의해 실행될 주기적인 데이터베이스 헬스 체크 태스크.
    데이터베이스 연결 상태를 확인하고 결과를 로그와 반환값으로 남깁니다.
    """
    logger.info("ARQ task: database health check")

    try:
        async with get_async_session_context() as db:
            result = await db.execute(select(1))
            if result.scalar_one_or_none() == 1:
                return {"status": "success", "message": "Database connection successful."}
            error_msg = "Database health check failed: No result from test query."
            logger.error(error_msg)
            return {"status": "failed", "message": error_msg}
    except SQLAlchemyError as e:
        # 실패는 워커 결과로 남기고, 알림 연동은 워커 쪽에서 처리합니다.
        logger.exception("Database health check failed")
        return {"status": "failed", "message": f"Database connection error: {e}"}
