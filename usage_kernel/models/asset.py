"""
Module: usage_kernel.models.asset
Responsibility: ORM persistence for billable assets and the sparse
    category-rate override table.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - hourly_rate_cents is an integer; negative values are clamped by the
      rate engine, not rejected here.
    - category is nullable; "" and NULL both map to the uncategorized
      category-rate key.
    - asset_category_rates.category is unique; "" is a valid row.
"""

from sqlalchemy import BigInteger, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from usage_kernel.db.base import Base


class AssetModel(Base):
    """A piece of equipment that can be occupied and billed by the hour."""

    __tablename__ = "assets"

    __table_args__ = (
        Index("idx_asset_category", "category"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    hourly_rate_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # available | in-use | maintenance
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="available",
    )


class AssetCategoryRateModel(Base):
    """Category-level hourly rate that overrides the asset default."""

    __tablename__ = "asset_category_rates"

    __table_args__ = (
        UniqueConstraint("category", name="uq_asset_category_rate"),
    )

    category: Mapped[str] = mapped_column(String(100), nullable=False)

    hourly_rate_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
