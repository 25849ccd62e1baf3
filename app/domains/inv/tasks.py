# app/domains/inv/tasks.py

import logging
from typing import Any, Dict

from app.core.database import get_async_session_context
from app.domains.inv import ledger

logger = logging.getLogger(__name__)


async def reconcile_stock_ledger_task(ctx, item_id: int = None) -> Dict[str, Any]:
    """
    ARQ 작업: 재고 집계(stocks)와 재고 이력(stock_histories)의 정합성을 점검합니다.
    불일치는 수정하지 않고 경고 로그와 결과로만 보고합니다.
    """
    async with get_async_session_context() as db:
        discrepancies = await ledger.verify_stock_consistency(db, item_id=item_id)

    for row in discrepancies:
        logger.warning(
            "Stock mismatch for item %s: current=%s totals=%s history=%s",
            row["item_id"], row["current_qty"], row["expected_from_totals"], row["expected_from_history"],
        )
    return {"status": "ok" if not discrepancies else "mismatch", "discrepancies": discrepancies}
