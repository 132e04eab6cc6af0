"""
Module: usage_kernel.selectors.base
Responsibility: Shared plumbing for read-only selectors over the usage
    tables.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  Nothing above the kernel.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Rows are converted to frozen domain objects before they leave a
      selector; callers never hold ORM instances.
"""

from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from usage_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only query helper bound to the caller's session."""

    def __init__(self, session: Session):
        self.session = session

    def _rows(self, stmt: Select[Any]) -> list[Any]:
        """Execute ``stmt`` and return the ORM rows as a list."""
        return list(self.session.scalars(stmt))
