# app/domains/shared/crud.py

"""
'shared' 도메인의 채번 로직을 담당하는 모듈입니다.

번호 발급은 다음 순서로 하나의 트랜잭션 안에서 이루어집니다.
1. 카운터 행을 잠급니다. (없으면 savepoint 안에서 생성, 동시 생성 충돌 시 재조회)
2. 호출자가 넘긴 scan 함수로 기존 데이터의 최대 번호를 읽습니다. (카운터 도입 이전 데이터 보정)
3. max(카운터, 최대 번호) + 1 을 카운터에 기록하고 반환합니다.

동일 카운터에 대한 발급은 행 잠금으로 직렬화되며, 최종 유일성은 대상 컬럼의
unique 제약이 보장합니다. 커밋 전에 롤백되면 발급한 번호도 함께 취소됩니다.
"""

import logging
import re
from typing import Awaitable, Callable, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from . import models as shared_models

logger = logging.getLogger(__name__)


def max_numeric_suffix(values: Iterable[str], *, prefix: str) -> int:
    """
    `{prefix}{숫자}` 형태의 값 중 가장 큰 숫자를 반환합니다. (없으면 0)
    예: max_numeric_suffix(["BRG001", "BRG012", "BRGX"], prefix="BRG") == 12
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    numbers = [int(m.group(1)) for m in map(pattern.match, values) if m]
    return max(numbers, default=0)


# =============================================================================
# 1. 채번 카운터 (DocumentSequence)
# =============================================================================
class CRUDDocumentSequence:
    def __init__(self):
        self.model = shared_models.DocumentSequence

    async def _lock(self, db: AsyncSession, name: str) -> Optional[shared_models.DocumentSequence]:
        statement = (
            select(self.model)
            .where(self.model.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def current_value(self, db: AsyncSession, *, name: str) -> int:
        """잠금 없이 카운터의 현재 값을 읽습니다. (없으면 0)"""
        result = await db.execute(select(self.model.current_value).where(self.model.name == name))
        return result.scalar_one_or_none() or 0

    async def next_value(
        self,
        db: AsyncSession,
        *,
        name: str,
        scan: Optional[Callable[[], Awaitable[int]]] = None,
    ) -> int:
        """
        이름이 `name` 인 카운터에서 다음 번호를 발급합니다. 커밋은 호출자가 합니다.
        `scan` 은 카운터 잠금 이후 호출되며, 이미 사용 중인 최대 번호를 반환해야 합니다.
        """
        counter = await self._lock(db, name)
        if counter is None:
            try:
                async with db.begin_nested():
                    counter = self.model(name=name, current_value=0)
                    db.add(counter)
            except IntegrityError:
                # 다른 트랜잭션이 같은 카운터를 먼저 만든 경우
                logger.debug("Sequence counter %s created concurrently, re-locking", name)
                counter = None
            counter = await self._lock(db, name)
            if counter is None:
                raise RuntimeError(f"Sequence counter {name!r} vanished after creation")

        floor = await scan() if scan is not None else 0
        counter.current_value = max(counter.current_value, floor) + 1
        db.add(counter)
        await db.flush()
        logger.debug("Sequence %s allocated %d", name, counter.current_value)
        return counter.current_value


sequence = CRUDDocumentSequence()
