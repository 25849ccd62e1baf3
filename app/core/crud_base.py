# app/core/crud_base.py

"""
공통 CRUD(Create, Read, Update, Delete) 작업을 위한 기본 클래스 모듈입니다.
목록 조회는 (항목 목록, 전체 건수) 튜플을 반환하는 페이지 단위 조회를 기본으로 합니다.
"""

import logging
from typing import Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

from app.core import exceptions as exc

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


async def commit_or_raise(db: AsyncSession, *, conflict_detail: str = "Duplicate record") -> None:
    """
    세션을 커밋합니다. 실패하면 롤백한 뒤 도메인 예외로 변환합니다.
    - 무결성(unique 등) 위반: ConflictError
    - 그 외 저장소 오류: PersistenceError
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise exc.ConflictError(conflict_detail) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Commit failed")
        raise exc.PersistenceError() from e


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    모든 CRUD 작업에 대한 기본 클래스를 정의합니다.
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """ID를 기준으로 단일 레코드를 조회합니다."""
        return await db.get(self.model, id)

    async def get_or_404(self, db: AsyncSession, id: Any) -> ModelType:
        db_obj = await self.get(db, id)
        if db_obj is None:
            raise exc.NotFoundError(self.model.__name__, id)
        return db_obj

    async def get_by_attribute(
        self, db: AsyncSession, *, attribute: str, value: Any
    ) -> Optional[ModelType]:
        statement = select(self.model).where(getattr(self.model, attribute) == value)
        response = await db.execute(statement)
        return response.scalar_one_or_none()

    async def get_page(
        self,
        db: AsyncSession,
        *,
        conditions: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[ModelType], int]:
        """
        조건(where 절 목록)을 만족하는 레코드를 한 페이지 조회하고, 전체 건수와 함께 반환합니다.
        정렬 기준이 없으면 id 오름차순입니다.
        """
        count_query = select(func.count()).select_from(self.model)
        query = select(self.model)
        if conditions:
            count_query = count_query.where(*conditions)
            query = query.where(*conditions)

        total = (await db.execute(count_query)).scalar_one()

        query = query.order_by(*(order_by or (self.model.id,))).offset(offset).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType) -> ModelType:
        """
        새로운 레코드를 생성합니다.
        """
        db_obj = self.model.model_validate(obj_in)
        db.add(db_obj)
        await commit_or_raise(db, conflict_detail=f"{self.model.__name__} already exists")
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self, db: AsyncSession, *, db_obj: ModelType, obj_in: UpdateSchemaType
    ) -> ModelType:
        """
        기존 레코드를 업데이트합니다. (요청에 포함된 필드만 반영)
        """
        update_data = obj_in.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_obj, key, value)

        db.add(db_obj)
        await commit_or_raise(db, conflict_detail=f"{self.model.__name__} already exists")
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: Any) -> Optional[ModelType]:
        """
        ID를 기준으로 레코드를 삭제합니다.
        """
        db_obj = await db.get(self.model, id)
        if db_obj:
            await db.delete(db_obj)
            await commit_or_raise(db, conflict_detail=f"{self.model.__name__} is still referenced")
        return db_obj
