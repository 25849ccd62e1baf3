# app/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 요청 단위 세션(get_session)과 백그라운드 작업용 세션 컨텍스트를 제공합니다.
- 애플리케이션 시작 시 데이터베이스 테이블을 생성하는 함수를 포함합니다 (개발용).

세션(AsyncSession)은 하나의 작업 단위(트랜잭션 핸들)이며,
재고 원장과 거래 오케스트레이터의 모든 함수는 이 세션을 명시적 인자로 전달받습니다.
"""

import logging
from typing import AsyncGenerator, Any, Dict
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import configure_mappers, sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# =============================================================================
# 모든 도메인 모델 임포트
# =============================================================================
# 모든 SQLModel 테이블 클래스가 SQLModel.metadata에 등록되어야
# create_all()과 configure_mappers()가 전체 관계를 인식합니다.
from app.domains.usr import models      # noqa
from app.domains.shared import models   # noqa
from app.domains.inv import models      # noqa
from app.domains.trx import models      # noqa

logger = logging.getLogger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    """URL 방언에 맞는 create_async_engine 옵션을 반환합니다. (SQLite는 풀 크기 설정 불가)"""
    options: Dict[str, Any] = {"echo": settings.DEBUG_MODE, "future": True}
    if make_url(url).get_backend_name() != "sqlite":
        options.update(
            pool_recycle=3600,  # 1시간마다 연결 재활용
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
        )
    return options


_database_url = settings.DATABASE_URL.get_secret_value()

engine: AsyncEngine = create_async_engine(_database_url, **engine_options(_database_url))

# 비동기 세션을 생성하는 '세션 공장'을 정의합니다.
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata


# =============================================================================
# 데이터베이스 초기화 및 테이블 생성 함수
# =============================================================================
async def create_db_and_tables(bind: AsyncEngine = engine) -> None:
    """
    모든 테이블을 생성합니다. (기존 테이블은 삭제하지 않습니다)
    운영 환경의 스키마 변경은 alembic 마이그레이션으로 관리합니다.
    """
    configure_mappers()
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created (or already present).")


# =============================================================================
# 비동기 데이터베이스 세션 의존성 주입
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    요청마다 새로운 세션을 생성하고, 요청 처리 후 세션을 자동으로 닫습니다.
    커밋/롤백은 세션을 사용하는 CRUD 계층이 결정합니다.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    ARQ Task 등 비동기 컨텍스트에서 사용할 수 있는
    독립적인 비동기 DB 세션을 제공하는 컨텍스트 관리자입니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
