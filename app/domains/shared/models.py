# app/domains/shared/models.py

"""
'shared' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.
"""

from typing import Optional
from datetime import datetime, UTC

from sqlalchemy import BigInteger
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
from sqlmodel import Field, SQLModel, Column


# =============================================================================
# 1. document_sequences 테이블 모델
# =============================================================================
class DocumentSequence(SQLModel, table=True):
    """
    이름이 붙은 채번 카운터입니다. (예: "item_code:BRG", "purchase:BL/20250101")
    행 잠금(SELECT ... FOR UPDATE) 상태에서만 증가하며,
    증가분은 호출자의 트랜잭션이 커밋될 때만 반영됩니다.
    """
    __tablename__ = "document_sequences"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, sa_column_kwargs={"unique": True}, description="카운터 이름 (접두사 + 범위)")
    current_value: int = Field(default=0, sa_type=BigInteger, description="마지막으로 발급된 번호")

    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="마지막 발급 일시"
    )
