# app/domains/trx/routers.py

"""
'trx' 도메인 (입고/출고 거래)의 API 엔드포인트를 정의하는 모듈입니다.
도메인 예외(ValidationError, NotFoundError, InsufficientStockError 등)는
main.py 의 예외 핸들러가 HTTP 응답으로 변환합니다.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.domains.trx import crud as trx_crud, schemas as trx_schemas
from app.domains.usr.models import User as UsrUser

router = APIRouter(
    tags=["Purchases & Sales (입고/출고)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 입고 (purchases) 엔드포인트
# =============================================================================
@router.post(
    "/purchases",
    response_model=trx_schemas.PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase(
    purchase_in: trx_schemas.PurchaseCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    """입고를 등록하고 라인별 재고를 증가시킵니다."""
    return await trx_crud.purchase.create(db, obj_in=purchase_in, created_by=current_user.id)


@router.get("/purchases", response_model=trx_schemas.PurchasePage)
async def read_purchases(
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    """입고 목록을 최신 거래일 순으로 조회합니다."""
    purchases, total = await trx_crud.purchase.get_summary_page(db, limit=page.limit, offset=page.offset)
    return {"items": purchases, "total": total, "page": page.page, "limit": page.limit}


@router.get("/purchases/{purchase_id}", response_model=trx_schemas.PurchaseResponse)
async def read_purchase(
    purchase_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    return await trx_crud.purchase.get_detail(db, id=purchase_id)


# =============================================================================
# 2. 출고 (sales) 엔드포인트
# =============================================================================
@router.post(
    "/sales",
    response_model=trx_schemas.SaleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_sale(
    sale_in: trx_schemas.SaleCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    """출고를 등록합니다. 재고가 부족한 라인이 하나라도 있으면 전체가 거부됩니다."""
    return await trx_crud.sale.create(db, obj_in=sale_in, created_by=current_user.id)


@router.get("/sales", response_model=trx_schemas.SalePage)
async def read_sales(
    page: deps.PageParams = Depends(),
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    sales, total = await trx_crud.sale.get_summary_page(db, limit=page.limit, offset=page.offset)
    return {"items": sales, "total": total, "page": page.page, "limit": page.limit}


@router.get("/sales/{sale_id}", response_model=trx_schemas.SaleResponse)
async def read_sale(
    sale_id: int,
    db: AsyncSession = Depends(deps.get_db_session),
    current_user: UsrUser = Depends(deps.get_current_active_user),
):
    return await trx_crud.sale.get_detail(db, id=sale_id)
