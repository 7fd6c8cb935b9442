"""
Base repository with generic CRUD operations.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional, List, Any
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete, func

from projecthub.core.pagination import create_paginated_response

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.

    Methods taking commit=False only flush, so a service can group several
    writes into one unit of work and commit (or roll back) once.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _apply_filters(self, query, filters: Optional[dict]):
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)
        return query

    async def create(self, obj_in: dict, commit: bool = True) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        return await self.save(db_obj, commit=commit)

    async def save(self, db_obj: ModelType, commit: bool = True) -> ModelType:
        """Persist a new or mutated record."""
        if hasattr(db_obj, 'updated_at'):
            db_obj.updated_at = datetime.utcnow()

        self.session.add(db_obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_obj)
        else:
            await self.session.flush()
        return db_obj

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a record by a specific field."""
        query = select(self.model).where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        return result.first()

    async def find_one(self, **filters) -> Optional[ModelType]:
        """Get the first record matching all filters."""
        query = select(self.model)
        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)
        result = await self.session.exec(query)
        return result.first()

    async def get_many(self, ids: List[uuid.UUID]) -> List[ModelType]:
        """Get all records whose id is in ids."""
        if not ids:
            return []
        query = select(self.model).where(self.model.id.in_(ids))
        result = await self.session.exec(query)
        return list(result.all())

    async def list(
        self,
        filters: Optional[dict] = None,
        order_by: str = "created_at",
        order_desc: bool = True,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """List all records with optional filters."""
        query = self._apply_filters(select(self.model), filters)

        # Apply ordering
        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.exec(query)
        return list(result.all())

    async def list_paginated(
        self,
        query=None,
        filters: Optional[dict] = None,
        page: int = 1,
        limit: int = 20,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> dict:
        """List records with pagination."""
        if query is None:
            query = select(self.model)
        query = self._apply_filters(query, filters)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        # Apply ordering
        if hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            query = query.order_by(order_column.desc() if order_desc else order_column)

        # Apply pagination
        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.session.exec(query)
        items = list(result.all())

        return create_paginated_response(items, total, page, limit)

    async def update(self, id: uuid.UUID, obj_in: dict) -> Optional[ModelType]:
        """
        Partial update: every key present in obj_in is written, including
        explicit None. Absent keys are left untouched.
        """
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        return await self.save(db_obj)

    async def delete(self, id: uuid.UUID) -> bool:
        """Delete a record."""
        db_obj = await self.get(id)
        if not db_obj:
            return False

        await self.delete_obj(db_obj)
        return True

    async def delete_obj(self, db_obj: ModelType, commit: bool = True) -> None:
        await self.session.delete(db_obj)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()

    async def delete_many(self, commit: bool = False, **filters) -> int:
        """Delete every record matching all filters; returns the row count."""
        statement = delete(self.model)
        for field, value in filters.items():
            column = getattr(self.model, field)
            if isinstance(value, (list, tuple, set)):
                statement = statement.where(column.in_(list(value)))
            else:
                statement = statement.where(column == value)

        result = await self.session.exec(statement)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()
        return result.rowcount

    async def count(self, filters: Optional[dict] = None) -> int:
        """Count records."""
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)
        result = await self.session.exec(query)
        return result.one()

    async def exists(self, id: uuid.UUID) -> bool:
        """Check if a record exists."""
        obj = await self.get(id)
        return obj is not None
