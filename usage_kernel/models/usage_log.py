"""
Module: usage_kernel.models.usage_log
Responsibility: ORM persistence for occupancy records (usage logs) and the
    cost snapshot cached on each record.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - start_time / end_time / snapshot_at are stored as ISO-8601 text as
      received.  Parsing happens in the domain layer, where unparsable
      values are treated as absent.
    - The five snapshot columns are the only persisted derivative of a
      record.  They are written by SnapshotService and nowhere else.

Failure modes:
    - IntegrityError if asset_id is NULL.
"""

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from usage_kernel.db.base import Base


class UsageLogModel(Base):
    """A timed record that an asset was in use."""

    __tablename__ = "usage_logs"

    __table_args__ = (
        Index("idx_usage_log_asset", "asset_id"),
        Index("idx_usage_log_project", "project_id"),
        Index("idx_usage_log_status", "status"),
    )

    asset_id: Mapped[str] = mapped_column(String(64), nullable=False)

    project_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    test_project_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    start_time: Mapped[str] = mapped_column(String(40), nullable=False)

    end_time: Mapped[str | None] = mapped_column(String(40), nullable=True)

    user: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # not-started | in-progress | completed | overdue
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Cost snapshot
    hourly_rate_cents_snapshot: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    billable_hours_snapshot: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    cost_cents_snapshot: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    snapshot_at: Mapped[str | None] = mapped_column(String(40), nullable=True)
    snapshot_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
