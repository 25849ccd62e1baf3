# app/domains/inv/models.py

"""
'inv' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- items: 품목 마스터 (코드는 생성 후 변경 불가)
- stocks: 품목당 1행의 현재고 집계 (current_qty = opening_qty + qty_in - qty_out)
- stock_histories: 재고 변동 이력 (추가 전용, 수정/삭제 없음)
"""

from typing import Optional
from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum

from sqlmodel import Field, SQLModel, Column
from sqlalchemy import CheckConstraint, Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class StockMovementKind(str, Enum):
    """재고 이력의 입출고 구분 (DB에는 value 문자열로 저장)"""
    IN = "in"
    OUT = "out"


class ReferenceKind(str, Enum):
    """재고 이력이 가리키는 거래 문서의 종류"""
    PURCHASE = "purchase"
    SALE = "sale"


# =============================================================================
# 1. items 테이블 모델
# =============================================================================
class ItemBase(SQLModel):
    code: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="품목 코드 (예: BRG001)")
    name: str = Field(max_length=200, index=True, description="품목명")
    category: Optional[str] = Field(default=None, max_length=100, description="품목 분류")
    unit: str = Field(max_length=20, description="단위 (예: pcs, box, kg)")
    buy_price: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(18, 2), nullable=False, server_default="0"))
    sell_price: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(18, 2), nullable=False, server_default="0"))


class Item(ItemBase, table=True):
    __tablename__ = "items"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


# =============================================================================
# 2. stocks 테이블 모델
# =============================================================================
class StockRecordBase(SQLModel):
    item_id: int = Field(foreign_key="items.id", sa_column_kwargs={"unique": True}, description="품목 ID (품목당 1행)")
    opening_qty: int = Field(default=0, description="기초 재고")
    qty_in: int = Field(default=0, description="누적 입고 수량")
    qty_out: int = Field(default=0, description="누적 출고 수량")
    current_qty: int = Field(default=0, description="현재고 (= 기초 + 입고 - 출고)")


class StockRecord(StockRecordBase, table=True):
    __tablename__ = "stocks"
    __table_args__ = (
        CheckConstraint("current_qty >= 0", name="ck_stocks_current_qty_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


# =============================================================================
# 3. stock_histories 테이블 모델
# =============================================================================
class HistoryEntryBase(SQLModel):
    item_id: int = Field(foreign_key="items.id", index=True)
    transaction_kind: str = Field(max_length=10, description="입출고 구분 ('in' / 'out')")
    quantity: int = Field(description="변동 수량 (항상 양수)")
    qty_before: int = Field(description="변동 전 현재고")
    qty_after: int = Field(description="변동 후 현재고")
    note: Optional[str] = Field(default=None, max_length=255)
    reference_id: Optional[int] = Field(default=None, description="거래 헤더 ID")
    reference_kind: Optional[str] = Field(default=None, max_length=20, description="거래 종류 ('purchase' / 'sale')")


class HistoryEntry(HistoryEntryBase, table=True):
    __tablename__ = "stock_histories"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
