"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor for services that write inside a caller-owned
    transaction.  Kernel services use ``session.flush()``, never
    ``session.commit()``; the purchasing module services above them own
    commit and rollback.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from pos_kernel.db.base import Base

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
