# app/domains/trx/crud.py

"""
'trx' 도메인의 거래 생성 오케스트레이션과 조회 로직을 담당하는 모듈입니다.

거래 생성 순서 (입고/출고 공통):
1. 요청 검증: 빈 라인 목록, 공백 거래처명 -> ValidationError (저장소 접근 전)
2. 모든 라인의 품목 존재 확인 -> NotFoundError
3. (출고만) 모든 라인의 재고 사전 점검 -> InsufficientStockError
4. 하나의 트랜잭션 안에서: 문서번호 채번, 헤더 저장, 라인마다 라인 저장 + 재고 증감 + 이력 기록
5. 커밋. 4단계 중 어떤 실패든 전체 롤백 후 예외를 그대로(또는 PersistenceError 로) 전달

사전 점검은 빠른 실패용이며, 재고가 음수가 되지 않는다는 보장은
ledger.apply_delta 의 가드된 UPDATE 가 합니다.
"""

import logging
from decimal import Decimal
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import exceptions as exc
from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.domains.inv import crud as inv_crud
from app.domains.inv import ledger
from app.domains.inv import models as inv_models
from app.domains.shared import crud as shared_crud
from . import models as trx_models
from . import schemas as trx_schemas

logger = logging.getLogger(__name__)

HeaderType = TypeVar("HeaderType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)

CENT = Decimal("0.01")


# =============================================================================
# 0. 입고/출고 공통 오케스트레이터
# =============================================================================
class CRUDTransactionBase(CRUDBase[HeaderType, CreateSchemaType, CreateSchemaType]):
    """
    거래 헤더 + 라인을 재고 원장과 함께 원자적으로 생성하는 공통 로직입니다.
    하위 클래스는 라인 모델, 거래처 필드명, 재고 이동 방향을 정의합니다.
    """
    line_model: Any = None
    header_fk: str = ""
    counterparty_field: str = ""
    reference_kind: inv_models.ReferenceKind
    movement_kind: inv_models.StockMovementKind
    note_label: str = ""

    @property
    def number_prefix(self) -> str:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # 문서번호 채번
    # -------------------------------------------------------------------------
    async def generate_document_number(self, db: AsyncSession, document_date: date) -> str:
        """
        `{prefix}/{YYYYMMDD}/{NNN}` 형식의 문서번호를 발급합니다.
        번호는 거래 종류 및 거래일별로 1부터 다시 시작합니다.
        """
        scope = f"{self.number_prefix}/{document_date:%Y%m%d}/"

        async def scan() -> int:
            result = await db.execute(
                select(self.model.document_number).where(self.model.document_number.like(f"{scope}%"))
            )
            return shared_crud.max_numeric_suffix(result.scalars().all(), prefix=scope)

        value = await shared_crud.sequence.next_value(
            db, name=f"{self.reference_kind.value}:{scope.rstrip('/')}", scan=scan
        )
        return f"{scope}{value:03d}"

    # -------------------------------------------------------------------------
    # 트랜잭션 전 단계 (검증, 품목 확인, 사전 점검)
    # -------------------------------------------------------------------------
    def validate_request(self, obj_in: CreateSchemaType) -> None:
        if not obj_in.lines:
            raise exc.ValidationError("At least one line item is required")
        counterparty = getattr(obj_in, self.counterparty_field)
        if counterparty is None or not counterparty.strip():
            raise exc.ValidationError(f"{self.counterparty_field} is required")
        if obj_in.document_number is not None and not obj_in.document_number.strip():
            raise exc.ValidationError("document_number must not be blank")

    async def resolve_items(
        self, db: AsyncSession, lines: Sequence[trx_schemas.TransactionLineCreate]
    ) -> Dict[int, inv_models.Item]:
        items: Dict[int, inv_models.Item] = {}
        for line in lines:
            if line.item_id in items:
                continue
            db_item = await inv_crud.item.get(db, line.item_id)
            if db_item is None:
                raise exc.NotFoundError("Item", line.item_id)
            items[line.item_id] = db_item
        return items

    async def pre_check(self, db: AsyncSession, lines: Sequence[trx_schemas.TransactionLineCreate]) -> None:
        """트랜잭션을 열기 전의 추가 점검. (기본: 없음)"""

    async def move_stock(self, db: AsyncSession, item_id: int, quantity: int) -> Tuple[int, int]:
        """라인 1건의 재고를 증감하고 (변경 전 수량, 변경 후 수량)을 반환합니다."""
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # 거래 생성
    # -------------------------------------------------------------------------
    async def create(
        self, db: AsyncSession, *, obj_in: CreateSchemaType, created_by: Optional[int] = None
    ) -> Dict[str, Any]:
        self.validate_request(obj_in)
        await self.resolve_items(db, obj_in.lines)
        await self.pre_check(db, obj_in.lines)

        document_number = obj_in.document_number.strip() if obj_in.document_number else None
        if document_number and await self.get_by_attribute(db, attribute="document_number", value=document_number):
            raise exc.ConflictError(f"Document number {document_number} already exists")

        subtotals = [(Decimal(line.quantity) * line.unit_price).quantize(CENT) for line in obj_in.lines]
        total = sum(subtotals, Decimal("0"))

        try:
            if document_number is None:
                document_number = await self.generate_document_number(db, obj_in.document_date)

            header = self.model(
                document_number=document_number,
                document_date=obj_in.document_date,
                total=total,
                note=obj_in.note,
                created_by=created_by,
                **{self.counterparty_field: getattr(obj_in, self.counterparty_field).strip()},
            )
            db.add(header)
            await db.flush()
            header_id = header.id

            history_note = f"{self.note_label} - {document_number}"
            for line, subtotal in zip(obj_in.lines, subtotals):
                db.add(self.line_model(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=subtotal,
                    **{self.header_fk: header_id},
                ))
                await db.flush()

                qty_before, qty_after = await self.move_stock(db, line.item_id, line.quantity)
                await ledger.append_history(
                    db,
                    item_id=line.item_id,
                    transaction_kind=self.movement_kind,
                    quantity=line.quantity,
                    qty_before=qty_before,
                    qty_after=qty_after,
                    note=history_note,
                    reference_id=header_id,
                    reference_kind=self.reference_kind,
                )

            await db.commit()
        except exc.WarehouseError as e:
            await db.rollback()
            logger.warning("%s %s rolled back: %s", self.note_label, document_number, e.detail)
            raise
        except IntegrityError as e:
            await db.rollback()
            logger.warning("%s %s rolled back on integrity error: %s", self.note_label, document_number, e.orig)
            raise exc.ConflictError("Transaction conflicts with existing data, please retry") from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("%s %s rolled back on storage error", self.note_label, document_number)
            raise exc.PersistenceError() from e

        logger.info(
            "%s %s committed: %d line(s), total %s", self.note_label, document_number, len(subtotals), total
        )
        return await self.get_detail(db, id=header_id)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------
    def summarize(self, header: HeaderType) -> Dict[str, Any]:
        data = header.model_dump()
        data["counterparty"] = data[self.counterparty_field]
        return data

    async def get_detail(self, db: AsyncSession, *, id: int) -> Dict[str, Any]:
        """헤더와 라인(품목 코드/이름/단위 포함)을 함께 조회합니다."""
        statement = select(self.model).where(self.model.id == id).execution_options(populate_existing=True)
        header = (await db.execute(statement)).scalar_one_or_none()
        if header is None:
            raise exc.NotFoundError(self.model.__name__, id)

        Item = inv_models.Item
        line_statement = (
            select(self.line_model, Item.code, Item.name, Item.unit)
            .join(Item, Item.id == self.line_model.item_id)
            .where(getattr(self.line_model, self.header_fk) == id)
            .order_by(self.line_model.id)
        )
        rows = (await db.execute(line_statement)).all()

        data = self.summarize(header)
        data["lines"] = [
            {**line.model_dump(), "item_code": code, "item_name": name, "item_unit": unit}
            for line, code, name, unit in rows
        ]
        return data

    async def get_summary_page(
        self, db: AsyncSession, *, limit: int = 10, offset: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        """헤더 목록을 거래일, id 역순으로 조회합니다. (라인 제외)"""
        headers, total = await self.get_page(
            db,
            order_by=(self.model.document_date.desc(), self.model.id.desc()),
            limit=limit,
            offset=offset,
        )
        return [self.summarize(header) for header in headers], total


# =============================================================================
# 1. 입고 (Purchase)
# =============================================================================
class CRUDPurchase(CRUDTransactionBase[trx_models.Purchase, trx_schemas.PurchaseCreate]):
    line_model = trx_models.PurchaseLine
    header_fk = "purchase_id"
    counterparty_field = "supplier"
    reference_kind = inv_models.ReferenceKind.PURCHASE
    movement_kind = inv_models.StockMovementKind.IN
    note_label = "Purchase"

    def __init__(self):
        super().__init__(model=trx_models.Purchase)

    @property
    def number_prefix(self) -> str:
        return settings.PURCHASE_NUMBER_PREFIX

    async def move_stock(self, db: AsyncSession, item_id: int, quantity: int) -> Tuple[int, int]:
        # 처음 입고되는 품목이면 0 재고 행을 먼저 만듭니다.
        record = await ledger.ensure_stock_record(db, item_id)
        qty_before = record.current_qty
        record = await ledger.apply_delta(db, item_id, quantity, 0)
        return qty_before, record.current_qty


# =============================================================================
# 2. 출고 (Sale)
# =============================================================================
class CRUDSale(CRUDTransactionBase[trx_models.Sale, trx_schemas.SaleCreate]):
    line_model = trx_models.SaleLine
    header_fk = "sale_id"
    counterparty_field = "customer"
    reference_kind = inv_models.ReferenceKind.SALE
    movement_kind = inv_models.StockMovementKind.OUT
    note_label = "Sale"

    def __init__(self):
        super().__init__(model=trx_models.Sale)

    @property
    def number_prefix(self) -> str:
        return settings.SALE_NUMBER_PREFIX

    async def pre_check(self, db: AsyncSession, lines: Sequence[trx_schemas.TransactionLineCreate]) -> None:
        """
        모든 라인의 재고를 잠금 없이 확인합니다. 재고 행이 없으면 가용 재고는 0 입니다.
        하나라도 부족하면 어떤 쓰기도 하기 전에 InsufficientStockError 로 실패합니다.
        """
        for line in lines:
            record = await ledger.get_current_stock(db, line.item_id)
            available = record.current_qty if record is not None else 0
            if available < line.quantity:
                raise exc.InsufficientStockError(
                    item_id=line.item_id, requested=line.quantity, available=available
                )

    async def move_stock(self, db: AsyncSession, item_id: int, quantity: int) -> Tuple[int, int]:
        record = await ledger.get_current_stock(db, item_id, for_update=True)
        if record is None:
            raise exc.InsufficientStockError(item_id=item_id, requested=quantity, available=0)
        qty_before = record.current_qty
        record = await ledger.apply_delta(db, item_id, 0, quantity)
        return qty_before, record.current_qty


purchase = CRUDPurchase()
sale = CRUDSale()
