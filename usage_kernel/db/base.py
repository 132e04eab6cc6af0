"""
Module: usage_kernel.db.base
Responsibility: Declarative base shared by the usage tables (assets, usage
    logs, projects, category rates).
Architecture position: Kernel > DB.  Imported by every model; imports
    nothing else from the kernel.

Invariants enforced:
    - Every table has a text ``id`` primary key.  Asset and log ids are
      supplied by callers; rows created without one get a uuid4 string.
    - Money and hours are integers (cents, whole hours) mapped to BigInteger.
    - Datetime columns are timezone-aware.
"""

from datetime import datetime
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base for usage_kernel.models."""

    type_annotation_map: ClassVar[dict] = {
        int: BigInteger,
        datetime: DateTime(timezone=True),
    }

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
