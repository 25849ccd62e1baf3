# app/domains/trx/schemas.py

"""
'trx' 도메인 (입고/출고 거래)의 Pydantic 스키마를 정의하는 모듈입니다.

필수 필드 존재 여부와 타입은 여기서 검사하고, 빈 라인 목록이나
공백뿐인 거래처명은 crud 계층에서 ValidationError 로 거부합니다.
"""

from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from pydantic import BaseModel, Field
from sqlmodel import SQLModel

# 재고/라인 수량 컬럼(INTEGER)의 상한
MAX_LINE_QUANTITY = 2_147_483_647


# =============================================================================
# 1. 거래 라인 스키마 (입고/출고 공통)
# =============================================================================
class TransactionLineCreate(SQLModel):
    item_id: int = Field(..., description="품목 ID")
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY, description="수량 (양수, int4 범위)")
    unit_price: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2, description="단가")


class TransactionLineResponse(SQLModel):
    id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    item_code: str = Field(..., description="품목 코드 (조회 시점의 값)")
    item_name: str = Field(..., description="품목명 (조회 시점의 값)")
    item_unit: str = Field(..., description="단위 (조회 시점의 값)")
    created_at: datetime


# =============================================================================
# 2. 입고 (Purchase) 스키마
# =============================================================================
class PurchaseCreate(SQLModel):
    document_number: Optional[str] = Field(None, max_length=50, description="문서번호 (생략 시 BL/YYYYMMDD/NNN 자동 채번)")
    document_date: date = Field(..., description="거래일")
    supplier: str = Field(..., max_length=200, description="공급처")
    note: Optional[str] = Field(None, description="비고")
    lines: List[TransactionLineCreate] = Field(default_factory=list, description="입고 라인")


class PurchaseSummary(SQLModel):
    id: int
    document_number: str
    document_date: date
    supplier: str
    counterparty: str
    total: Decimal
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class PurchaseResponse(PurchaseSummary):
    lines: List[TransactionLineResponse] = []


class PurchasePage(BaseModel):
    items: List[PurchaseSummary]
    total: int
    page: int
    limit: int


# =============================================================================
# 3. 출고 (Sale) 스키마
# =============================================================================
class SaleCreate(SQLModel):
    document_number: Optional[str] = Field(None, max_length=50, description="문서번호 (생략 시 JL/YYYYMMDD/NNN 자동 채번)")
    document_date: date = Field(..., description="거래일")
    customer: str = Field(..., max_length=200, description="고객")
    note: Optional[str] = Field(None, description="비고")
    lines: List[TransactionLineCreate] = Field(default_factory=list, description="출고 라인")


class SaleSummary(SQLModel):
    id: int
    document_number: str
    document_date: date
    customer: str
    counterparty: str
    total: Decimal
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class SaleResponse(SaleSummary):
    lines: List[TransactionLineResponse] = []


class SalePage(BaseModel):
    items: List[SaleSummary]
    total: int
    page: int
    limit: int
