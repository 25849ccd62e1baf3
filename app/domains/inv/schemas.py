# app/domains/inv/schemas.py

"""
'inv' 도메인 (품목 및 재고)의 Pydantic 스키마를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from sqlmodel import SQLModel


# =============================================================================
# 1. items 스키마
# =============================================================================
class ItemBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=200, description="품목명")
    category: Optional[str] = Field(None, max_length=100, description="품목 분류")
    unit: str = Field(..., min_length=1, max_length=20, description="단위")
    buy_price: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=2, description="매입 단가")
    sell_price: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=2, description="판매 단가")


class ItemCreate(ItemBase):
    code: Optional[str] = Field(None, min_length=1, max_length=50, description="품목 코드 (생략 시 자동 채번)")


class ItemUpdate(SQLModel):
    """품목 수정 스키마. 코드는 변경할 수 없습니다."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    buy_price: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    sell_price: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)

    @field_validator("name", "unit", "buy_price", "sell_price")
    @classmethod
    def not_null(cls, value):
        # 필드를 생략하는 것은 허용하지만 null 로 지우는 것은 허용하지 않음
        if value is None:
            raise ValueError("field may be omitted but not set to null")
        return value


class ItemResponse(ItemBase):
    id: int = Field(..., description="품목 고유 ID")
    code: str = Field(..., description="품목 코드")
    created_at: datetime = Field(..., description="레코드 생성 일시")
    updated_at: datetime = Field(..., description="레코드 마지막 업데이트 일시")

    class Config:
        from_attributes = True


class ItemWithStockResponse(ItemResponse):
    qty_in: int = Field(0, description="이력 기준 누적 입고 수량")
    qty_out: int = Field(0, description="이력 기준 누적 출고 수량")
    current_qty: int = Field(0, description="현재고 (재고 행이 없으면 0)")


class ItemPage(BaseModel):
    items: List[ItemResponse]
    total: int
    page: int
    limit: int


class ItemWithStockPage(BaseModel):
    items: List[ItemWithStockResponse]
    total: int
    page: int
    limit: int


# =============================================================================
# 2. stocks 스키마
# =============================================================================
class StockResponse(SQLModel):
    id: int
    item_id: int
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    item_unit: Optional[str] = None
    opening_qty: int
    qty_in: int
    qty_out: int
    current_qty: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StockPage(BaseModel):
    items: List[StockResponse]
    total: int
    page: int
    limit: int


class StockDiscrepancy(BaseModel):
    """재고 집계와 이력이 맞지 않는 품목"""
    item_id: int
    current_qty: int
    expected_from_totals: int = Field(..., description="opening_qty + qty_in - qty_out")
    expected_from_history: int = Field(..., description="opening_qty + 이력 부호 합계")


# =============================================================================
# 3. stock_histories 스키마
# =============================================================================
class HistoryEntryResponse(SQLModel):
    id: int
    item_id: int
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    transaction_kind: str
    quantity: int
    qty_before: int
    qty_after: int
    note: Optional[str] = None
    reference_id: Optional[int] = None
    reference_kind: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class HistoryPage(BaseModel):
    items: List[HistoryEntryResponse]
    total: int
    page: int
    limit: int
