# app/domains/inv/ledger.py

"""
재고 원장(Stock Ledger) 모듈입니다.

모든 함수는 호출자가 넘긴 세션(db) 안에서만 동작하며, 스스로 커밋하거나
롤백하지 않습니다. 입고/출고 헤더 및 라인 저장과 같은 트랜잭션으로 묶여야 하기 때문입니다.

재고 수량 변경의 유일한 경로는 apply_delta 의 가드된 UPDATE 입니다.
    UPDATE stocks
       SET qty_in = qty_in + :in, qty_out = qty_out + :out,
           current_qty = current_qty + :in - :out
     WHERE item_id = :item_id AND current_qty + :in - :out >= 0
판매 전 사전 점검(pre-check)은 빠른 실패용일 뿐이며,
동시 출고로 인한 음수 재고는 이 WHERE 조건이 막습니다.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import exceptions as exc
from . import models as inv_models

logger = logging.getLogger(__name__)

StockRecord = inv_models.StockRecord
HistoryEntry = inv_models.HistoryEntry


# =============================================================================
# 1. 현재고 조회 / 생성
# =============================================================================
async def get_current_stock(
    db: AsyncSession, item_id: int, *, for_update: bool = False
) -> Optional[StockRecord]:
    """
    품목의 재고 행을 조회합니다. 없으면 None.
    for_update=True 이면 행 잠금(SELECT ... FOR UPDATE)을 겁니다.
    항상 DB 값으로 덮어써서(populate_existing) 세션에 남은 이전 값을 쓰지 않습니다.
    """
    statement = (
        select(StockRecord)
        .where(StockRecord.item_id == item_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        statement = statement.with_for_update()
    result = await db.execute(statement)
    return result.scalar_one_or_none()


async def ensure_stock_record(db: AsyncSession, item_id: int) -> StockRecord:
    """
    재고 행이 없으면 0으로 초기화된 행을 만들고, 잠근 상태의 재고 행을 반환합니다.
    입고 경로에서만 사용합니다. (출고 대상에 재고 행이 없으면 재고 부족입니다)
    """
    record = await get_current_stock(db, item_id, for_update=True)
    if record is not None:
        return record

    try:
        async with db.begin_nested():
            db.add(StockRecord(item_id=item_id, opening_qty=0, qty_in=0, qty_out=0, current_qty=0))
        logger.debug("Created empty stock record for item %s", item_id)
    except IntegrityError:
        # 동시 입고가 같은 품목의 재고 행을 먼저 만든 경우
        logger.debug("Stock record for item %s created concurrently", item_id)

    record = await get_current_stock(db, item_id, for_update=True)
    if record is None:
        raise exc.NotFoundError("StockRecord", item_id)
    return record


# =============================================================================
# 2. 재고 증감 / 이력 기록
# =============================================================================
async def apply_delta(db: AsyncSession, item_id: int, qty_in: int, qty_out: int) -> StockRecord:
    """
    누적 입고/출고를 늘리고 현재고를 current + qty_in - qty_out 으로 갱신합니다.

    - 재고 행이 없으면 NotFoundError
    - 갱신 결과가 음수가 되면 InsufficientStockError (행은 변경되지 않음)
    """
    if qty_in < 0 or qty_out < 0:
        raise exc.ValidationError("Stock deltas must be non-negative")

    statement = (
        update(StockRecord)
        .where(StockRecord.item_id == item_id)
        .where(StockRecord.current_qty + qty_in - qty_out >= 0)
        .values(
            qty_in=StockRecord.qty_in + qty_in,
            qty_out=StockRecord.qty_out + qty_out,
            current_qty=StockRecord.current_qty + qty_in - qty_out,
        )
        .execution_options(synchronize_session=False)
    )
    updated = (await db.execute(statement)).rowcount

    record = await get_current_stock(db, item_id)
    if updated == 0:
        if record is None:
            raise exc.NotFoundError("StockRecord", item_id)
        raise exc.InsufficientStockError(item_id=item_id, requested=qty_out, available=record.current_qty)
    return record


async def append_history(
    db: AsyncSession,
    *,
    item_id: int,
    transaction_kind: inv_models.StockMovementKind,
    quantity: int,
    qty_before: int,
    qty_after: int,
    note: Optional[str] = None,
    reference_id: Optional[int] = None,
    reference_kind: Optional[inv_models.ReferenceKind] = None,
) -> HistoryEntry:
    """재고 이력 1건을 추가합니다. 저장 실패는 호출자의 트랜잭션 전체를 롤백시킵니다."""
    entry = HistoryEntry(
        item_id=item_id,
        transaction_kind=inv_models.StockMovementKind(transaction_kind).value,
        quantity=quantity,
        qty_before=qty_before,
        qty_after=qty_after,
        note=note,
        reference_id=reference_id,
        reference_kind=inv_models.ReferenceKind(reference_kind).value if reference_kind else None,
    )
    db.add(entry)
    await db.flush()
    return entry


# =============================================================================
# 3. 조회 (재고 목록, 이력 목록)
# =============================================================================
async def get_stock_page(
    db: AsyncSession, *, limit: int = 10, offset: int = 0
) -> Tuple[List[Dict[str, Any]], int]:
    """재고 행 목록을 품목 정보와 함께 item_id 순으로 조회합니다."""
    Item = inv_models.Item
    total = (await db.execute(select(func.count()).select_from(StockRecord))).scalar_one()

    statement = (
        select(StockRecord, Item.code, Item.name, Item.unit)
        .join(Item, Item.id == StockRecord.item_id)
        .order_by(StockRecord.item_id)
        .offset(offset)
        .limit(limit)
    )
    rows = (await db.execute(statement)).all()
    items = [
        {**record.model_dump(), "item_code": code, "item_name": name, "item_unit": unit}
        for record, code, name, unit in rows
    ]
    return items, total


async def get_stock_detail(db: AsyncSession, item_id: int) -> Dict[str, Any]:
    """품목 한 건의 재고 행을 조회합니다. 재고 행이 없으면 NotFoundError."""
    Item = inv_models.Item
    statement = (
        select(StockRecord, Item.code, Item.name, Item.unit)
        .join(Item, Item.id == StockRecord.item_id)
        .where(StockRecord.item_id == item_id)
    )
    row = (await db.execute(statement)).first()
    if row is None:
        raise exc.NotFoundError("StockRecord", item_id, detail=f"Stock for item {item_id} not found")
    record, code, name, unit = row
    return {**record.model_dump(), "item_code": code, "item_name": name, "item_unit": unit}


async def get_history_page(
    db: AsyncSession, *, item_id: Optional[int] = None, limit: int = 10, offset: int = 0
) -> Tuple[List[Dict[str, Any]], int]:
    """재고 이력을 최신순으로 조회합니다. item_id 를 주면 해당 품목만 조회합니다."""
    Item = inv_models.Item
    count_statement = select(func.count()).select_from(HistoryEntry)
    statement = select(HistoryEntry, Item.code, Item.name).join(Item, Item.id == HistoryEntry.item_id)
    if item_id is not None:
        count_statement = count_statement.where(HistoryEntry.item_id == item_id)
        statement = statement.where(HistoryEntry.item_id == item_id)

    total = (await db.execute(count_statement)).scalar_one()
    statement = (
        statement.order_by(HistoryEntry.created_at.desc(), HistoryEntry.id.desc())
        .offset(offset)
        .limit(limit)
    )
    rows = (await db.execute(statement)).all()
    items = [
        {**entry.model_dump(), "item_code": code, "item_name": name}
        for entry, code, name in rows
    ]
    return items, total


# =============================================================================
# 4. 정합성 검증
# =============================================================================
def signed_quantity():
    """입고는 +, 출고는 - 로 부호를 붙인 이력 수량 식"""
    return case(
        (HistoryEntry.transaction_kind == inv_models.StockMovementKind.IN.value, HistoryEntry.quantity),
        else_=-HistoryEntry.quantity,
    )


async def verify_stock_consistency(
    db: AsyncSession, *, item_id: Optional[int] = None
) -> List[Dict[str, int]]:
    """
    재고 행마다 두 가지 불변식을 검사하고, 어긋난 품목 목록을 반환합니다.
    - current_qty == opening_qty + qty_in - qty_out
    - current_qty == opening_qty + (이력의 부호 있는 수량 합계)
    """
    history_net = (
        select(HistoryEntry.item_id, func.sum(signed_quantity()).label("net"))
        .group_by(HistoryEntry.item_id)
        .subquery()
    )
    statement = (
        select(StockRecord, history_net.c.net)
        .outerjoin(history_net, history_net.c.item_id == StockRecord.item_id)
        .order_by(StockRecord.item_id)
    )
    if item_id is not None:
        statement = statement.where(StockRecord.item_id == item_id)

    discrepancies = []
    for record, net in (await db.execute(statement)).all():
        expected_from_totals = record.opening_qty + record.qty_in - record.qty_out
        expected_from_history = record.opening_qty + int(net or 0)
        if record.current_qty != expected_from_totals or record.current_qty != expected_from_history:
            discrepancies.append({
                "item_id": record.item_id,
                "current_qty": record.current_qty,
                "expected_from_totals": expected_from_totals,
                "expected_from_history": expected_from_history,
            })
    if discrepancies:
        logger.warning("Stock ledger discrepancies found for %d item(s)", len(discrepancies))
    return discrepancies
