"""
BaseService -- common shape of the services that write usage data.

A writing service holds the caller's session, a clock and a selector for
loading domain objects.  It writes through ORM rows and calls ``flush()``
so that later reads in the same transaction see the change; it never
commits or rolls back.  ``session_scope()`` (or the caller's own
transaction) owns the commit, and concurrent writers are settled by the
database as last-write-wins.
"""

from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from usage_kernel.db.base import Base
from usage_kernel.domain.clock import Clock, SystemClock
from usage_kernel.logging_config import get_logger
from usage_kernel.selectors.usage_selector import UsageSelector

ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("services.base")


class BaseService(ABC, Generic[ModelType]):
    """Session + clock + selector, with a logged flush."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
        self.selector = UsageSelector(session)

    def _flush(self, event: str, **fields: Any) -> None:
        self.session.flush()
        logger.debug(event, extra=fields)
