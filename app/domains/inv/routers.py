# app/domains/inv/routers.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.inv import crud as inv_crud, ledger, schemas as inv_schemas
from app.domains.usr.models import User as UsrUser

# 모든 조회는 로그인한 활성 사용자만 가능합니다. (변경 작업은 라우트별로 관리자 권한 추가 확인)
router = APIRouter(
    tags=["Inventory Management (품목/재고 관리)"],
    dependencies=[Depends(deps.get_current_active_user)],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. items 엔드포인트
# =============================================================================
@router.post(
    "/items",
    response_model=inv_schemas.ItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_item(
    item_create: inv_schemas.ItemCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_admin_user),
):
    """새로운 품목을 생성합니다. 코드를 생략하면 자동 채번합니다.  관리자 권한이 필요합니다."""
    return await inv_crud.item.create(db, obj_in=item_create)


@router.get("/items", response_model=inv_schemas.ItemPage)
async def read_items(
    search: Optional[str] = Query(None, description="품목명/코드 검색어"),
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    """품목 목록을 조회합니다."""
    items, total = await inv_crud.item.get_page_by_search(db, search=search, limit=page.limit, offset=page.offset)
    return {"items": items, "total": total, "page": page.page, "limit": page.limit}


@router.get("/items/with_stock", response_model=inv_schemas.ItemWithStockPage)
async def read_items_with_stock(
    search: Optional[str] = Query(None, description="품목명/코드 검색어"),
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    """품목 목록을 누적 입고/출고 수량 및 현재고와 함께 조회합니다."""
    items, total = await inv_crud.item.get_page_with_stock(db, search=search, limit=page.limit, offset=page.offset)
    return {"items": items, "total": total, "page": page.page, "limit": page.limit}


@router.get("/items/{item_id}", response_model=inv_schemas.ItemResponse)
async def read_item(item_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    return await inv_crud.item.get_or_404(db, item_id)


@router.put("/items/{item_id}", response_model=inv_schemas.ItemResponse)
async def update_item(
    item_id: int,
    item_update: inv_schemas.ItemUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_admin_user),
):
    """품목명/분류/단위/단가를 수정합니다.  관리자 권한이 필요합니다."""
    db_item = await inv_crud.item.get_or_404(db, item_id)
    return await inv_crud.item.update(db, db_obj=db_item, obj_in=item_update)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_admin_user),
):
    """재고/거래 이력이 없는 품목을 삭제합니다.  관리자 권한이 필요합니다."""
    await inv_crud.item.remove(db, id=item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# 2. stocks 엔드포인트
# =============================================================================
@router.get("/stocks", response_model=inv_schemas.StockPage)
async def read_stocks(
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    stocks, total = await ledger.get_stock_page(db, limit=page.limit, offset=page.offset)
    return {"items": stocks, "total": total, "page": page.page, "limit": page.limit}


@router.get("/stocks/audit", response_model=List[inv_schemas.StockDiscrepancy])
async def audit_stocks(
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_admin_user),
):
    """재고 집계와 재고 이력이 어긋난 품목을 반환합니다. (정상이면 빈 목록)"""
    return await ledger.verify_stock_consistency(db)


@router.get("/stocks/{item_id}", response_model=inv_schemas.StockResponse)
async def read_stock(item_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """품목의 현재고를 조회합니다. 입고된 적이 없는 품목은 404 입니다."""
    return await ledger.get_stock_detail(db, item_id)


# =============================================================================
# 3. stock_history 엔드포인트
# =============================================================================
@router.get("/stock_history", response_model=inv_schemas.HistoryPage)
async def read_stock_history(
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    entries, total = await ledger.get_history_page(db, limit=page.limit, offset=page.offset)
    return {"items": entries, "total": total, "page": page.page, "limit": page.limit}


@router.get("/stock_history/{item_id}", response_model=inv_schemas.HistoryPage)
async def read_item_stock_history(
    item_id: int,
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
):
    entries, total = await ledger.get_history_page(db, item_id=item_id, limit=page.limit, offset=page.offset)
    return {"items": entries, "total": total, "page": page.page, "limit": page.limit}
