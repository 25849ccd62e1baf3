# tests/conftest.py

import os
from typing import AsyncGenerator, Callable, Awaitable
from contextlib import asynccontextmanager

# app.core.config 의 Settings 는 import 시점에 필수 값을 읽으므로 먼저 기본값을 채웁니다.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# app.main을 임포트하여 FastAPI 앱 인스턴스에 접근합니다.
from app.main import app as main_app
from app.core import dependencies as deps
from app.core.database import get_session, create_db_and_tables
from app.core.security import get_password_hash

# --- 모델 임포트 (app.core.database 가 모든 도메인 모델을 metadata 에 등록합니다) ---
from app.domains.usr import models as usr_models
from app.domains.inv import models as inv_models


# --- 테스트용 데이터베이스 설정 ---
# TEST_DATABASE_URL 을 지정하면 해당 DB(예: postgresql+asyncpg://...)를 사용하고,
# 지정하지 않으면 테스트마다 임시 SQLite 파일을 사용합니다.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """
    테스트 함수마다 빈 데이터베이스를 준비합니다.
    거래 로직이 직접 커밋/롤백하므로 외부 트랜잭션 롤백 대신 테이블을 매번 새로 만듭니다.
    """
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test_warehouse.db'}"
    engine = create_async_engine(url, echo=False, future=True, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await create_db_and_tables(bind=engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """테스트와 API 호출이 함께 사용하는 비동기 데이터베이스 세션을 제공합니다."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with TestingSessionLocal() as session:
        yield session


# --- 역할별 사용자 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """역할과 속성을 지정하여 테스트 사용자를 생성하는 팩토리 함수를 반환합니다."""
    async def _create_user(
        username: str,
        password: str,
        role: usr_models.UserRole,
        is_active: bool = True,
        **kwargs,
    ) -> usr_models.User:
        user = usr_models.User(
            username=username,
            password_hash=get_password_hash(password),
            email=f"{username}@example.com",
            role=role,
            is_active=is_active,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _create_user


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(user_factory: Callable) -> usr_models.User:
    """관리자(ADMIN) 사용자를 생성합니다."""
    return await user_factory("sysadm", "sysadmpass123", role=usr_models.UserRole.ADMIN, full_name="Admin Test User")


@pytest_asyncio.fixture(scope="function")
async def test_user(user_factory: Callable) -> usr_models.User:
    """창고 직원(STAFF) 사용자를 생성합니다."""
    return await user_factory("staff", "staffpass123", role=usr_models.UserRole.STAFF, full_name="Staff Test User")


# --- 인증 클라이언트 픽스처 ---
# 세션 의존성만 오버라이드하고, 사용자 인증은 실제 /usr/auth/token 로그인과
# Bearer 토큰 검증을 그대로 거칩니다.
def _override_sessions(db_session: AsyncSession) -> dict:
    def override_get_session():
        yield db_session

    return {
        get_session: override_get_session,
        deps.get_db_session: override_get_session,
    }


@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(db_session: AsyncSession):
    """특정 사용자로 로그인된 AsyncClient 를 만드는 비동기 컨텍스트 매니저 팩토리를 반환합니다."""
    @asynccontextmanager
    async def _create_client_context(username: str, password: str) -> AsyncGenerator[AsyncClient, None]:
        original_overrides = main_app.dependency_overrides.copy()
        try:
            main_app.dependency_overrides.update(_override_sessions(db_session))

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                res = await client.post("/api/v1/usr/auth/token", data={"username": username, "password": password})
                if res.status_code != 200:
                    pytest.fail(f"Login failed for {username}: {res.text}")

                client.headers["Authorization"] = f"Bearer {res.json()['access_token']}"
                yield client
        finally:
            main_app.dependency_overrides.clear()
            main_app.dependency_overrides.update(original_overrides)

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(authorized_client_factory, test_admin_user: usr_models.User) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory("sysadm", "sysadmpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def authorized_client(authorized_client_factory, test_user: usr_models.User) -> AsyncGenerator[AsyncClient, None]:
    """창고 직원으로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory("staff", "staffpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성합니다."""
    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides.update(_override_sessions(db_session))
        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client
    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


# --- 도메인 공통 픽스처 ---
@pytest_asyncio.fixture(scope="function")
def item_factory(db_session: AsyncSession) -> Callable[..., Awaitable[inv_models.Item]]:
    """품목을 직접 저장하고, opening_qty 를 주면 해당 기초 재고 행도 함께 만듭니다."""
    async def _create_item(code: str, name: str, opening_qty: int = None, **kwargs) -> inv_models.Item:
        item = inv_models.Item(code=code, name=name, unit=kwargs.pop("unit", "pcs"), **kwargs)
        db_session.add(item)
        await db_session.commit()
        await db_session.refresh(item)
        if opening_qty is not None:
            db_session.add(inv_models.StockRecord(
                item_id=item.id, opening_qty=opening_qty, qty_in=0, qty_out=0, current_qty=opening_qty,
            ))
            await db_session.commit()
        return item
    return _create_item


@pytest_asyncio.fixture(scope="function")
async def test_item(item_factory) -> inv_models.Item:
    """기초 재고 10개가 있는 품목"""
    return await item_factory("ITM-A", "Ball Bearing 6204", opening_qty=10, category="Bearing")


@pytest_asyncio.fixture(scope="function")
async def fresh_item(item_factory) -> inv_models.Item:
    """재고 행이 없는(한 번도 입고되지 않은) 품목"""
    return await item_factory("ITM-B", "Oil Seal 35x52", category="Seal")
