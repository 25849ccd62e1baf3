# tests/domains/test_trx_n.py

"""
'trx' 도메인 (입고/출고 거래) 관련 통합 테스트 모듈입니다.

- 거래 생성 시 헤더, 라인, 재고, 재고 이력이 하나의 트랜잭션으로 반영되는지
- 어느 단계에서 실패하든 아무것도 저장되지 않는지
- 일자별 문서번호 채번
- HTTP 오류 응답 코드
"""

from datetime import date
from decimal import Decimal
from typing import List, Tuple

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import exceptions as exc
from app.domains.inv import crud as inv_crud
from app.domains.inv import ledger
from app.domains.inv import models as inv_models
from app.domains.inv import schemas as inv_schemas
from app.domains.trx import crud as trx_crud
from app.domains.trx import models as trx_models
from app.domains.trx import schemas as trx_schemas

DOC_DATE = date(2025, 1, 1)


def purchase_in(lines: List[Tuple[int, int, str]], **kwargs) -> trx_schemas.PurchaseCreate:
    return trx_schemas.PurchaseCreate(
        document_date=kwargs.pop("document_date", DOC_DATE),
        supplier=kwargs.pop("supplier", "PT Sumber Makmur"),
        lines=[
            trx_schemas.TransactionLineCreate(item_id=item_id, quantity=quantity, unit_price=Decimal(price))
            for item_id, quantity, price in lines
        ],
        **kwargs,
    )


def sale_in(lines: List[Tuple[int, int, str]], **kwargs) -> trx_schemas.SaleCreate:
    return trx_schemas.SaleCreate(
        document_date=kwargs.pop("document_date", DOC_DATE),
        customer=kwargs.pop("customer", "CV Maju Jaya"),
        lines=[
            trx_schemas.TransactionLineCreate(item_id=item_id, quantity=quantity, unit_price=Decimal(price))
            for item_id, quantity, price in lines
        ],
        **kwargs,
    )


async def count_rows(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def current_qty(db: AsyncSession, item_id: int) -> int:
    record = await ledger.get_current_stock(db, item_id)
    return record.current_qty if record is not None else None


async def history_for(db: AsyncSession, item_id: int) -> List[inv_models.HistoryEntry]:
    result = await db.execute(
        select(inv_models.HistoryEntry)
        .where(inv_models.HistoryEntry.item_id == item_id)
        .order_by(inv_models.HistoryEntry.id)
    )
    return list(result.scalars().all())


async def assert_no_sale_persisted(db: AsyncSession) -> None:
    assert await count_rows(db, trx_models.Sale) == 0
    assert await count_rows(db, trx_models.SaleLine) == 0
    assert await count_rows(db, inv_models.HistoryEntry) == 0


# =================================================================================
# 1. 입고 (Purchase)
# =================================================================================
@pytest.mark.asyncio
async def test_purchase_creates_stock_for_fresh_item(db_session: AsyncSession, fresh_item: inv_models.Item):
    """(성공) 재고 행이 없는 품목에 5개, 3개를 입고하면 재고 8, 합계 800"""
    item_id = fresh_item.id
    result = await trx_crud.purchase.create(db_session, obj_in=purchase_in([(item_id, 5, "100"), (item_id, 3, "100")]))

    assert result["document_number"] == "BL/20250101/001"
    assert result["total"] == Decimal("800")
    assert [line["subtotal"] for line in result["lines"]] == [Decimal("500"), Decimal("300")]
    assert await current_qty(db_session, item_id) == 8

    entries = await history_for(db_session, item_id)
    assert [(e.transaction_kind, e.quantity, e.qty_before, e.qty_after) for e in entries] == [
        ("in", 5, 0, 5),
        ("in", 3, 5, 8),
    ]
    assert all(e.reference_id == result["id"] and e.reference_kind == "purchase" for e in entries)
    assert entries[0].note == "Purchase - BL/20250101/001"


@pytest.mark.asyncio
async def test_purchase_adds_to_existing_stock(db_session: AsyncSession, test_item: inv_models.Item):
    item_id = test_item.id
    await trx_crud.purchase.create(db_session, obj_in=purchase_in([(item_id, 4, "12.50")]))

    record = await ledger.get_current_stock(db_session, item_id)
    assert (record.opening_qty, record.qty_in, record.qty_out, record.current_qty) == (10, 4, 0, 14)


@pytest.mark.asyncio
async def test_purchase_records_creator(db_session: AsyncSession, test_user, fresh_item: inv_models.Item):
    user_id, item_id = test_user.id, fresh_item.id
    result = await trx_crud.purchase.create(db_session, obj_in=purchase_in([(item_id, 1, "1")]), created_by=user_id)
    assert result["created_by"] == user_id


@pytest.mark.asyncio
async def test_purchase_unknown_item(db_session: AsyncSession, fresh_item: inv_models.Item):
    """(실패) 라인 중 하나라도 없는 품목이면 NotFoundError, 아무것도 저장되지 않음"""
    item_id = fresh_item.id
    with pytest.raises(exc.NotFoundError) as excinfo:
        await trx_crud.purchase.create(db_session, obj_in=purchase_in([(item_id, 1, "10"), (9999, 1, "10")]))
    assert excinfo.value.entity_id == 9999

    assert await count_rows(db_session, trx_models.Purchase) == 0
    assert await count_rows(db_session, trx_models.PurchaseLine) == 0
    assert await current_qty(db_session, item_id) is None


@pytest.mark.asyncio
async def test_purchase_requires_lines(db_session: AsyncSession):
    with pytest.raises(exc.ValidationError):
        await trx_crud.purchase.create(db_session, obj_in=purchase_in([]))
    assert await count_rows(db_session, trx_models.Purchase) == 0


@pytest.mark.asyncio
async def test_purchase_requires_supplier(db_session: AsyncSession, fresh_item: inv_models.Item):
    with pytest.raises(exc.ValidationError):
        await trx_crud.purchase.create(db_session, obj_in=purchase_in([(fresh_item.id, 1, "1")], supplier="   "))


# =================================================================================
# 2. 출고 (Sale)
# =================================================================================
@pytest.mark.asyncio
async def test_sale_exceeding_stock_is_rejected(db_session: AsyncSession, test_item: inv_models.Item):
    """(실패) 재고 10 에서 15 출고: InsufficientStockError(available=10), 재고 유지"""
    item_id = test_item.id
    with pytest.raises(exc.InsufficientStockError) as excinfo:
        await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 15, "150")]))
    assert (excinfo.value.item_id, excinfo.value.requested, excinfo.value.available) == (item_id, 15, 10)

    assert await current_qty(db_session, item_id) == 10
    await assert_no_sale_persisted(db_session)


@pytest.mark.asyncio
async def test_sale_of_entire_stock(db_session: AsyncSession, test_item: inv_models.Item):
    """(성공) 재고 10 에서 10 출고: 재고 0, 이력 10 -> 0"""
    item_id = test_item.id
    result = await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 10, "150")]))

    assert result["document_number"] == "JL/20250101/001"
    assert result["customer"] == result["counterparty"] == "CV Maju Jaya"
    assert result["total"] == Decimal("1500")
    assert await current_qty(db_session, item_id) == 0

    (entry,) = await history_for(db_session, item_id)
    assert (entry.transaction_kind, entry.quantity, entry.qty_before, entry.qty_after) == ("out", 10, 10, 0)
    assert (entry.reference_id, entry.reference_kind) == (result["id"], "sale")
    assert entry.note == "Sale - JL/20250101/001"


@pytest.mark.asyncio
async def test_sale_without_stock_record(db_session: AsyncSession, fresh_item: inv_models.Item):
    """(실패) 한 번도 입고되지 않은 품목은 가용 재고 0 으로 취급"""
    item_id = fresh_item.id
    with pytest.raises(exc.InsufficientStockError) as excinfo:
        await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 1, "10")]))
    assert excinfo.value.available == 0
    await assert_no_sale_persisted(db_session)


@pytest.mark.asyncio
async def test_multi_line_sale_precheck_failure_is_atomic(db_session: AsyncSession, item_factory):
    """(실패) 두 번째 라인이 재고 부족이면 첫 번째 라인도 반영되지 않음"""
    first = await item_factory("ITM-X", "Grease 1kg", opening_qty=10)
    second = await item_factory("ITM-Y", "Chain 40", opening_qty=2)
    first_id, second_id = first.id, second.id

    with pytest.raises(exc.InsufficientStockError) as excinfo:
        await trx_crud.sale.create(db_session, obj_in=sale_in([(first_id, 5, "10"), (second_id, 3, "10")]))
    assert excinfo.value.item_id == second_id

    assert await current_qty(db_session, first_id) == 10
    assert await current_qty(db_session, second_id) == 2
    await assert_no_sale_persisted(db_session)


@pytest.mark.asyncio
async def test_same_item_lines_rolled_back_by_ledger_guard(db_session: AsyncSession, test_item: inv_models.Item):
    """
    (실패) 같은 품목 라인 6개 + 6개: 라인별 사전 점검은 통과하지만
    두 번째 재고 차감이 가드에 걸려 첫 라인까지 전체 롤백
    """
    item_id = test_item.id
    with pytest.raises(exc.InsufficientStockError) as excinfo:
        await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 6, "10"), (item_id, 6, "10")]))
    assert excinfo.value.available == 4

    assert await current_qty(db_session, item_id) == 10
    await assert_no_sale_persisted(db_session)

    # 롤백된 거래는 문서번호를 소비하지 않습니다.
    result = await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 6, "10")]))
    assert result["document_number"] == "JL/20250101/001"
    assert await current_qty(db_session, item_id) == 4


@pytest.mark.asyncio
async def test_storage_failure_mid_transaction_rolls_back_everything(
    db_session: AsyncSession, monkeypatch, test_item: inv_models.Item, fresh_item: inv_models.Item
):
    """(실패) 두 번째 라인의 이력 저장이 DB 오류로 실패하면 PersistenceError, 헤더/라인/재고/이력 모두 원복"""
    stocked_id, fresh_id = test_item.id, fresh_item.id
    original_append_history = ledger.append_history
    calls = []

    async def failing_append_history(db, **kwargs):
        calls.append(kwargs["item_id"])
        if len(calls) == 2:
            raise OperationalError("INSERT INTO stock_histories", {}, Exception("disk I/O error"))
        return await original_append_history(db, **kwargs)

    monkeypatch.setattr(ledger, "append_history", failing_append_history)

    with pytest.raises(exc.PersistenceError) as excinfo:
        await trx_crud.purchase.create(db_session, obj_in=purchase_in([(stocked_id, 2, "10"), (fresh_id, 3, "10")]))
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert calls == [stocked_id, fresh_id]

    assert await count_rows(db_session, trx_models.Purchase) == 0
    assert await count_rows(db_session, trx_models.PurchaseLine) == 0
    assert await count_rows(db_session, inv_models.HistoryEntry) == 0
    assert await current_qty(db_session, stocked_id) == 10
    assert await current_qty(db_session, fresh_id) is None

    monkeypatch.setattr(ledger, "append_history", original_append_history)
    result = await trx_crud.purchase.create(db_session, obj_in=purchase_in([(stocked_id, 2, "10")]))
    assert result["document_number"] == "BL/20250101/001"
    assert await current_qty(db_session, stocked_id) == 12


@pytest.mark.asyncio
async def test_sale_requires_lines_and_customer(db_session: AsyncSession, test_item: inv_models.Item):
    item_id = test_item.id
    with pytest.raises(exc.ValidationError):
        await trx_crud.sale.create(db_session, obj_in=sale_in([]))
    with pytest.raises(exc.ValidationError):
        await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 1, "1")], customer=""))
    await assert_no_sale_persisted(db_session)


@pytest.mark.asyncio
async def test_sale_unknown_item(db_session: AsyncSession):
    with pytest.raises(exc.NotFoundError):
        await trx_crud.sale.create(db_session, obj_in=sale_in([(4242, 1, "1")]))
    await assert_no_sale_persisted(db_session)


# =================================================================================
# 3. 문서번호 / 조회
# =================================================================================
@pytest.mark.asyncio
async def test_document_numbers_restart_per_day_and_type(db_session: AsyncSession, test_item: inv_models.Item):
    item_id = test_item.id
    numbers = []
    for document_date in (DOC_DATE, DOC_DATE, date(2025, 1, 2)):
        result = await trx_crud.purchase.create(
            db_session, obj_in=purchase_in([(item_id, 1, "1")], document_date=document_date)
        )
        numbers.append(result["document_number"])
    sale = await trx_crud.sale.create(db_session, obj_in=sale_in([(item_id, 1, "1")]))

    assert numbers == ["BL/20250101/001", "BL/20250101/002", "BL/20250102/001"]
    assert sale["document_number"] == "JL/20250101/001"


@pytest.mark.asyncio
async def test_explicit_document_number(db_session: AsyncSession, test_item: inv_models.Item):
    """(실패) 직접 지정한 문서번호가 중복되면 ConflictError, 재고는 한 번만 반영"""
    item_id = test_item.id
    result = await trx_crud.purchase.create(
        db_session, obj_in=purchase_in([(item_id, 2, "1")], document_number="PO-2025-0001")
    )
    assert result["document_number"] == "PO-2025-0001"

    with pytest.raises(exc.ConflictError):
        await trx_crud.purchase.create(
            db_session, obj_in=purchase_in([(item_id, 2, "1")], document_number="PO-2025-0001")
        )
    assert await current_qty(db_session, item_id) == 12
    assert await count_rows(db_session, trx_models.Purchase) == 1


@pytest.mark.asyncio
async def test_get_detail_round_trip(db_session: AsyncSession, test_item: inv_models.Item, fresh_item: inv_models.Item):
    stocked_id, fresh_id = test_item.id, fresh_item.id
    created = await trx_crud.purchase.create(
        db_session, obj_in=purchase_in([(stocked_id, 2, "10.25"), (fresh_id, 1, "99.99")], note="first delivery")
    )

    detail = await trx_crud.purchase.get_detail(db_session, id=created["id"])
    assert detail["note"] == "first delivery"
    assert detail["total"] == Decimal("120.49")
    assert [(line["item_code"], line["item_name"], line["item_unit"]) for line in detail["lines"]] == [
        ("ITM-A", "Ball Bearing 6204", "pcs"),
        ("ITM-B", "Oil Seal 35x52", "pcs"),
    ]

    # 라인의 품목 정보는 저장 시점이 아니라 조회 시점의 품목 값을 따릅니다.
    db_item = await inv_crud.item.get_or_404(db_session, stocked_id)
    await inv_crud.item.update(
        db_session, db_obj=db_item, obj_in=inv_schemas.ItemUpdate(name="Ball Bearing 6204-ZZ", unit="box")
    )

    detail = await trx_crud.purchase.get_detail(db_session, id=created["id"])
    assert [(line["item_code"], line["item_name"], line["item_unit"]) for line in detail["lines"]] == [
        ("ITM-A", "Ball Bearing 6204-ZZ", "box"),
        ("ITM-B", "Oil Seal 35x52", "pcs"),
    ]
    assert [(line["quantity"], line["subtotal"]) for line in detail["lines"]] == [
        (2, Decimal("20.50")),
        (1, Decimal("99.99")),
    ]

    with pytest.raises(exc.NotFoundError):
        await trx_crud.purchase.get_detail(db_session, id=9999)


@pytest.mark.asyncio
async def test_summary_page_order(db_session: AsyncSession, test_item: inv_models.Item):
    item_id = test_item.id
    for document_date in (date(2025, 1, 3), date(2025, 1, 1), date(2025, 1, 2)):
        await trx_crud.purchase.create(db_session, obj_in=purchase_in([(item_id, 1, "1")], document_date=document_date))

    summaries, total = await trx_crud.purchase.get_summary_page(db_session, limit=2, offset=0)
    assert total == 3
    assert [s["document_date"] for s in summaries] == [date(2025, 1, 3), date(2025, 1, 2)]
    assert "lines" not in summaries[0]


# =================================================================================
# 4. HTTP 엔드포인트
# =================================================================================
@pytest.mark.asyncio
async def test_create_purchase_api(authorized_client: AsyncClient, fresh_item: inv_models.Item):
    item_id = fresh_item.id
    payload = {
        "document_date": "2025-01-01",
        "supplier": "PT Sumber Makmur",
        "lines": [
            {"item_id": item_id, "quantity": 5, "unit_price": "100"},
            {"item_id": item_id, "quantity": 3, "unit_price": "100"},
        ],
    }
    response = await authorized_client.post("/api/v1/trx/purchases", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["document_number"] == "BL/20250101/001"
    assert Decimal(body["total"]) == Decimal("800")
    assert body["created_by"] is not None
    assert len(body["lines"]) == 2

    response = await authorized_client.get(f"/api/v1/trx/purchases/{body['id']}")
    assert response.status_code == 200
    assert response.json()["lines"][0]["item_code"] == "ITM-B"

    response = await authorized_client.get(f"/api/v1/inv/stocks/{item_id}")
    assert response.json()["current_qty"] == 8


@pytest.mark.asyncio
async def test_create_sale_api_insufficient_stock(authorized_client: AsyncClient, test_item: inv_models.Item):
    item_id = test_item.id
    payload = {
        "document_date": "2025-01-01",
        "customer": "CV Maju Jaya",
        "lines": [{"item_id": item_id, "quantity": 15, "unit_price": "150"}],
    }
    response = await authorized_client.post("/api/v1/trx/sales", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert (body["item_id"], body["requested"], body["available"]) == (item_id, 15, 10)

    response = await authorized_client.get("/api/v1/trx/sales")
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_create_sale_api_success(authorized_client: AsyncClient, test_item: inv_models.Item):
    item_id = test_item.id
    payload = {
        "document_date": "2025-01-01",
        "customer": "CV Maju Jaya",
        "lines": [{"item_id": item_id, "quantity": 10, "unit_price": "150"}],
    }
    response = await authorized_client.post("/api/v1/trx/sales", json=payload)
    assert response.status_code == 201
    sale_id = response.json()["id"]

    response = await authorized_client.get("/api/v1/trx/sales")
    page = response.json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == sale_id
    assert page["items"][0]["counterparty"] == "CV Maju Jaya"


@pytest.mark.asyncio
async def test_create_transaction_api_validation_errors(
    authorized_client: AsyncClient, db_session: AsyncSession, test_item: inv_models.Item
):
    item_id = test_item.id
    # 빈 라인 목록: 도메인 검증 (VALIDATION_ERROR)
    response = await authorized_client.post(
        "/api/v1/trx/sales", json={"document_date": "2025-01-01", "customer": "X", "lines": []}
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

    # 수량 0, 필수 필드 누락: 요청 스키마 검증
    response = await authorized_client.post(
        "/api/v1/trx/purchases",
        json={"document_date": "2025-01-01", "supplier": "X", "lines": [{"item_id": item_id, "quantity": 0, "unit_price": "1"}]},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

    response = await authorized_client.post("/api/v1/trx/purchases", json={"supplier": "X", "lines": []})
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert isinstance(body["detail"], str)
    assert any(error["loc"][-1] == "document_date" for error in body["errors"])

    # int4 컬럼 범위를 넘는 수량은 저장 단계(500)가 아니라 요청 검증(422)에서 거부
    response = await authorized_client.post(
        "/api/v1/trx/purchases",
        json={"document_date": "2025-01-01", "supplier": "X", "lines": [{"item_id": item_id, "quantity": 2**31, "unit_price": "1"}]},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert await count_rows(db_session, trx_models.Purchase) == 0


@pytest.mark.asyncio
async def test_transaction_api_not_found(authorized_client: AsyncClient):
    response = await authorized_client.post(
        "/api/v1/trx/purchases",
        json={"document_date": "2025-01-01", "supplier": "X", "lines": [{"item_id": 777, "quantity": 1, "unit_price": "1"}]},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"

    response = await authorized_client.get("/api/v1/trx/sales/777")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_transaction_api_requires_login(client: AsyncClient):
    response = await client.post("/api/v1/trx/purchases", json={"document_date": "2025-01-01", "supplier": "X", "lines": []})
    assert response.status_code == 401
