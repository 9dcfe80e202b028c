"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor and session-handling contract for kernel services.
    Kernel services persist with ``session.flush()``; the module service
    that called them owns commit and rollback, so a status change, its
    notifications and its audit entry land in one transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from hris_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
