"""
Repository -- per-entity persistence interface.

Responsibility:
    ``get`` / ``require`` / ``save`` / ``list_by_status`` over one ORM model,
    backed by the caller's transactional session.  Status changes do NOT go
    through ``save``; they go through StatusTransitioner so that the
    precondition is checked atomically with the write.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_kernel.exceptions import EntityNotFoundError
from hris_kernel.services.base import BaseService, ModelType


def entity_name(model_cls: type) -> str:
    """Audit/log name for an ORM class: ``BenefitRequestModel`` -> ``BenefitRequest``."""
    return getattr(model_cls, "__entity_name__", model_cls.__name__.removesuffix("Model"))


class Repository(BaseService[ModelType]):
    """Generic repository for one ORM model."""

    def __init__(self, session: Session, model_cls: type[ModelType]):
        super().__init__(session)
        self.model_cls = model_cls
        self.entity_type = entity_name(model_cls)

    def get(self, entity_id: UUID) -> ModelType | None:
        return self.session.get(self.model_cls, entity_id)

    def require(self, entity_id: UUID) -> ModelType:
        """
        Load by id, refreshing any copy already in the identity map.

        Raises:
            EntityNotFoundError: If no row has this id.
        """
        model = self.session.get(self.model_cls, entity_id, populate_existing=True)
        if model is None:
            raise EntityNotFoundError(self.entity_type, str(entity_id))
        return model

    def save(self, model: ModelType) -> ModelType:
        """Add (or re-add) and flush."""
        self.session.add(model)
        self.session.flush()
        return model

    def list_by_status(self, *statuses: Any, order_by: Any = None) -> list[ModelType]:
        """Rows whose ``status`` is any of ``statuses`` (all rows when none given)."""
        stmt = select(self.model_cls)
        if statuses:
            values = [getattr(s, "value", s) for s in statuses]
            stmt = stmt.where(self.model_cls.status.in_(values))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars().all())

    def list_where(self, *criteria: Any, order_by: Any = None) -> list[ModelType]:
        stmt = select(self.model_cls).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        return list(self.session.execute(stmt).scalars().all())

    def first_where(self, *criteria: Any) -> ModelType | None:
        return self.session.execute(
            select(self.model_cls).where(*criteria).limit(1)
        ).scalar_one_or_none()
