# app/core/config.py

from typing import List
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일을 명시적으로 지정
        env_file_encoding='utf-8',
        extra='ignore',                      # .env 파일에 정의되었지만 모델에 없는 변수는 무시
        case_sensitive=True
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "Warehouse Inventory API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Item catalog, stock ledger, purchases and sales"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable SQL echo and verbose logging")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="SQLAlchemy async database URL (postgresql+asyncpg://...)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24, description="Access token expiration time in minutes")

    # --- arq / Redis 설정 ---
    REDIS_HOST: str = Field("localhost", description="Redis host for the arq worker")
    REDIS_PORT: int = Field(6379, description="Redis port for the arq worker")

    # --- 채번(numbering) 접두사 ---
    ITEM_CODE_PREFIX: str = Field("BRG", description="Prefix of generated item codes")
    PURCHASE_NUMBER_PREFIX: str = Field("BL", description="Prefix of purchase document numbers")
    SALE_NUMBER_PREFIX: str = Field("JL", description="Prefix of sale document numbers")


settings = Settings()
