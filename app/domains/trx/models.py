# app/domains/trx/models.py

"""
'trx' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

거래 헤더와 라인은 생성 후 수정/삭제 경로가 없습니다.
헤더의 total 은 라인 subtotal 의 합계이며, subtotal = quantity × unit_price 입니다.
"""

from typing import Optional
from datetime import datetime, date, UTC
from decimal import Decimal

from sqlmodel import Field, SQLModel, Column
from sqlalchemy import CheckConstraint, Numeric
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP, DATE


# =============================================================================
# 1. purchases 테이블 모델 (입고 헤더)
# =============================================================================
class PurchaseBase(SQLModel):
    document_number: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="문서번호 (예: BL/20250101/001)")
    document_date: date = Field(sa_column=Column(DATE, nullable=False), description="거래일")
    supplier: str = Field(max_length=200, description="공급처")
    total: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(18, 2), nullable=False))
    note: Optional[str] = Field(default=None)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id", description="등록 사용자 ID")


class Purchase(PurchaseBase, table=True):
    __tablename__ = "purchases"

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
# 2. purchase_lines 테이블 모델 (입고 라인)
# =============================================================================
class PurchaseLineBase(SQLModel):
    purchase_id: int = Field(foreign_key="purchases.id", index=True)
    item_id: int = Field(foreign_key="items.id", index=True)
    quantity: int = Field(description="수량 (양수)")
    unit_price: Decimal = Field(sa_column=Column(Numeric(18, 2), nullable=False))
    subtotal: Decimal = Field(sa_column=Column(Numeric(18, 2), nullable=False))


class PurchaseLine(PurchaseLineBase, table=True):
    __tablename__ = "purchase_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_lines_quantity_positive"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


# =============================================================================
# 3. sales 테이블 모델 (출고 헤더)
# =============================================================================
class SaleBase(SQLModel):
    document_number: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="문서번호 (예: JL/20250101/001)")
    document_date: date = Field(sa_column=Column(DATE, nullable=False), description="거래일")
    customer: str = Field(max_length=200, description="고객")
    total: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(18, 2), nullable=False))
    note: Optional[str] = Field(default=None)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id", description="등록 사용자 ID")


class Sale(SaleBase, table=True):
    __tablename__ = "sales"

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
# 4. sale_lines 테이블 모델 (출고 라인)
# =============================================================================
class SaleLineBase(SQLModel):
    sale_id: int = Field(foreign_key="sales.id", index=True)
    item_id: int = Field(foreign_key="items.id", index=True)
    quantity: int = Field(description="수량 (양수)")
    unit_price: Decimal = Field(sa_column=Column(Numeric(18, 2), nullable=False))
    subtotal: Decimal = Field(sa_column=Column(Numeric(18, 2), nullable=False))


class SaleLine(SaleLineBase, table=True):
    __tablename__ = "sale_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_positive"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
