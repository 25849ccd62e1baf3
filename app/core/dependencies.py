# app/core/dependencies.py

"""
FastAPI 애플리케이션의 의존성 주입(Dependency Injection)을 정의하는 모듈입니다.

- 데이터베이스 세션 관리 (get_db_session).
- 현재 인증된 사용자 정보 획득 (get_current_active_user, get_current_admin_user).
- 목록 조회용 페이지 파라미터 (PageParams).
"""

from typing import AsyncGenerator

from fastapi import Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session as get_main_app_session

# flake8: noqa
from app.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
    oauth2_scheme,
    get_current_user_from_token,
    get_current_active_user,
    get_current_admin_user,
)


# --- 데이터베이스 세션 의존성 주입 ---
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    app.core.database.get_session을 래핑하여 사용합니다.
    """
    async for session in get_main_app_session():
        yield session


# --- 페이지네이션 ---
MAX_PAGE_LIMIT = 100


class PageParams:
    """
    목록 조회 공통 쿼리 파라미터.
    범위를 벗어난 값은 오류 대신 보정합니다. (page < 1 → 1, limit < 1 → 10, limit > 100 → 100)
    offset = (page - 1) × limit
    """

    def __init__(
        self,
        page: int = Query(1, description="1부터 시작하는 페이지 번호"),
        limit: int = Query(10, description="페이지당 항목 수 (최대 100)"),
    ):
        self.page = page if page >= 1 else 1
        self.limit = min(limit, MAX_PAGE_LIMIT) if limit >= 1 else 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
