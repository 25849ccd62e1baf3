# app/main.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager
from arq.connections import create_pool, RedisSettings
from arq.cron import cron

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# 핵심 설정 및 데이터베이스 모듈 임포트
from app import API_PREFIX, APP_NAME, APP_VERSION
from app.core.config import settings
from app.core.database import engine, get_session
from app.core import exceptions as exc

# 태스크 모듈 임포트
from app.core import tasks as core_tasks
from app.domains.inv import tasks as inv_tasks

# 도메인 라우터 임포트
from app.domains.usr.routers import router as usr_router
from app.domains.inv.routers import router as inv_router
from app.domains.trx.routers import router as trx_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ARQ 워커가 실행할 태스크 함수 목록
worker_functions = [
    core_tasks.health_check_database_task,
    inv_tasks.reconcile_stock_ledger_task,
]


# ARQ 워커 설정 클래스 (실행: arq app.main.ArqWorkerSettings)
class ArqWorkerSettings:
    redis_settings = RedisSettings(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    functions = worker_functions
    cron_jobs = [
        # 매일 00:00 DB 헬스 체크
        cron(core_tasks.health_check_database_task, hour={0}, minute={0}, timeout=300, keep_result=600),
        # 매일 01:00 재고 원장 정합성 점검
        cron(inv_tasks.reconcile_stock_ledger_task, hour={1}, minute={0}, timeout=1800, keep_result=3600),
    ]


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 애플리케이션의 수명 주기 이벤트(ARQ Redis 풀, DB 엔진)를 함께 처리합니다.
    스키마는 alembic 마이그레이션으로 관리하므로 여기서 테이블을 만들지 않습니다.
    """
    logger.info("Starting %s %s (%s)", APP_NAME, APP_VERSION, settings.APP_ENV)
    app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
    logger.info("ARQ Redis pool created.")

    yield

    logger.info("Shutting down %s", APP_NAME)
    if app.state.redis:
        await app.state.redis.close()
    await engine.dispose()


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title=APP_NAME,
    description="Warehouse inventory API: item catalog, stock ledger, purchases and sales.",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# -- CORS 미들웨어 설정 --
# 프로덕션에서는 CORS_ORIGINS 를 실제 프론트엔드 도메인으로 제한합니다.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -- 예외 핸들러 --
# 도메인 예외는 타입별 code/status_code 를 그대로 응답에 싣습니다.
@app.exception_handler(exc.WarehouseError)
async def warehouse_error_handler(request: Request, error: exc.WarehouseError):
    if error.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, error.detail)
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail, "code": error.code, **error.extra()},
    )


# 요청 스키마 검증 실패도 도메인 ValidationError 와 같은 형식으로 응답합니다.
@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, error: RequestValidationError):
    return JSONResponse(
        status_code=exc.ValidationError.status_code,
        content={
            "detail": "Request validation failed",
            "code": exc.ValidationError.code,
            "errors": jsonable_encoder(error.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, error: SQLAlchemyError):
    logger.error("Unhandled database error on %s %s", request.method, request.url.path, exc_info=error)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": exc.PersistenceError.code},
    )


# -- 도메인 라우터 포함 --
app.include_router(usr_router, prefix=f"{API_PREFIX}/usr")
app.include_router(inv_router, prefix=f"{API_PREFIX}/inv")
app.include_router(trx_router, prefix=f"{API_PREFIX}/trx")


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """API의 시작점을 알리고 문서 링크를 제공합니다."""
    return {"message": f"Welcome to {APP_NAME}. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    애플리케이션의 헬스 체크 엔드포인트입니다.
    데이터베이스 연결을 테스트하여 서비스의 정상 작동 여부를 확인합니다.
    """
    try:
        result = await session.exec(select(1))
        if result.first():
            return {"status": "ok", "database_connection": "successful"}
    except SQLAlchemyError as e:
        logger.exception("Health check query failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection error during health check",
        ) from e
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Database health check failed: No result from test query",
    )
