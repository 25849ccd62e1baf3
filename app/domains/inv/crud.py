# app/domains/inv/crud.py

"""
'inv' 도메인의 품목(Item) CRUD 로직을 담당하는 모듈입니다.
재고 수량 변경은 이 모듈이 아니라 ledger.py 에서만 이루어집니다.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import exceptions as exc
from app.core.config import settings
from app.core.crud_base import CRUDBase, commit_or_raise
from app.domains.shared import crud as shared_crud
from app.domains.trx import models as trx_models
from . import models as inv_models
from . import schemas as inv_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. items 테이블 CRUD
# =============================================================================
class CRUDItem(CRUDBase[inv_models.Item, inv_schemas.ItemCreate, inv_schemas.ItemUpdate]):
    def __init__(self):
        super().__init__(model=inv_models.Item)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[inv_models.Item]:
        return await self.get_by_attribute(db, attribute="code", value=code)

    async def generate_code(self, db: AsyncSession) -> str:
        """
        다음 품목 코드를 발급합니다. (예: BRG001, BRG002, ...)
        접두사별 카운터 행을 잠근 뒤, 기존 코드의 최대 번호와 카운터 중 큰 값 + 1 을 사용합니다.
        """
        prefix = settings.ITEM_CODE_PREFIX

        async def scan() -> int:
            result = await db.execute(select(self.model.code).where(self.model.code.like(f"{prefix}%")))
            return shared_crud.max_numeric_suffix(result.scalars().all(), prefix=prefix)

        value = await shared_crud.sequence.next_value(db, name=f"item_code:{prefix}", scan=scan)
        return f"{prefix}{value:03d}"

    async def create(self, db: AsyncSession, *, obj_in: inv_schemas.ItemCreate) -> inv_models.Item:
        """품목을 생성합니다. 코드가 없으면 자동 채번합니다."""
        item_data = obj_in.model_dump(exclude={"code"})
        try:
            if obj_in.code:
                if await self.get_by_code(db, code=obj_in.code):
                    raise exc.ConflictError(f"Item code {obj_in.code} already exists")
                code = obj_in.code
            else:
                code = await self.generate_code(db)

            db_item = self.model(**item_data, code=code)
            db.add(db_item)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Failed to prepare item %s", obj_in.name)
            raise exc.PersistenceError() from e

        await commit_or_raise(db, conflict_detail=f"Item code {code} already exists")
        await db.refresh(db_item)
        logger.info("Item %s created (id=%s)", db_item.code, db_item.id)
        return db_item

    async def update(
        self, db: AsyncSession, *, db_obj: inv_models.Item, obj_in: inv_schemas.ItemUpdate
    ) -> inv_models.Item:
        """이름/분류/단위/단가만 변경합니다. 코드는 생성 후 변경되지 않습니다."""
        return await super().update(db, db_obj=db_obj, obj_in=obj_in)

    async def remove(self, db: AsyncSession, *, id: int) -> inv_models.Item:
        """
        품목을 삭제합니다.
        재고 행, 재고 이력, 입고/출고 라인이 참조하는 품목은 삭제를 거부합니다.
        """
        db_item = await self.get_or_404(db, id)

        references = (
            (inv_models.StockRecord, inv_models.StockRecord.item_id),
            (inv_models.HistoryEntry, inv_models.HistoryEntry.item_id),
            (trx_models.PurchaseLine, trx_models.PurchaseLine.item_id),
            (trx_models.SaleLine, trx_models.SaleLine.item_id),
        )
        for model, column in references:
            count = (await db.execute(select(func.count()).select_from(model).where(column == id))).scalar_one()
            if count:
                raise exc.ConflictError(
                    f"Cannot delete item {db_item.code}: referenced by {model.__tablename__}"
                )

        await super().delete(db, id=id)
        return db_item

    @staticmethod
    def search_conditions(search: Optional[str]) -> List[Any]:
        if not search:
            return []
        pattern = f"%{search.strip()}%"
        return [or_(inv_models.Item.name.ilike(pattern), inv_models.Item.code.ilike(pattern))]

    async def get_page_by_search(
        self, db: AsyncSession, *, search: Optional[str] = None, limit: int = 10, offset: int = 0
    ) -> Tuple[List[inv_models.Item], int]:
        """이름 또는 코드에 검색어가 포함된(대소문자 무시) 품목을 id 순으로 조회합니다."""
        return await self.get_page(db, conditions=self.search_conditions(search), limit=limit, offset=offset)

    async def get_page_with_stock(
        self, db: AsyncSession, *, search: Optional[str] = None, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        품목 목록에 재고 정보를 붙여 조회합니다.
        qty_in/qty_out 은 재고 이력의 합계, current_qty 는 재고 행의 값(없으면 0)입니다.
        """
        Item = inv_models.Item
        History = inv_models.HistoryEntry
        conditions = self.search_conditions(search)

        movement = (
            select(
                History.item_id,
                func.sum(case((History.transaction_kind == inv_models.StockMovementKind.IN.value, History.quantity), else_=0)).label("qty_in"),
                func.sum(case((History.transaction_kind == inv_models.StockMovementKind.OUT.value, History.quantity), else_=0)).label("qty_out"),
            )
            .group_by(History.item_id)
            .subquery()
        )

        count_statement = select(func.count()).select_from(Item)
        statement = (
            select(
                Item,
                func.coalesce(movement.c.qty_in, 0),
                func.coalesce(movement.c.qty_out, 0),
                func.coalesce(inv_models.StockRecord.current_qty, 0),
            )
            .outerjoin(movement, movement.c.item_id == Item.id)
            .outerjoin(inv_models.StockRecord, inv_models.StockRecord.item_id == Item.id)
        )
        if conditions:
            count_statement = count_statement.where(*conditions)
            statement = statement.where(*conditions)

        total = (await db.execute(count_statement)).scalar_one()
        rows = (await db.execute(statement.order_by(Item.id).offset(offset).limit(limit))).all()
        items = [
            {**item.model_dump(), "qty_in": int(qty_in), "qty_out": int(qty_out), "current_qty": int(current_qty)}
            for item, qty_in, qty_out, current_qty in rows
        ]
        return items, total


item = CRUDItem()
