"""MetricsSnapshot and MetricsRun models."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import db, generate_id

if TYPE_CHECKING:
    from .one_on_one import OneOnOne


class MetricsSnapshot(db.Model):
    """
    Denormalised rating summary for one completed session.

    Exactly one row per session; recalculation overwrites it in place.
    ``metric_data`` holds the per-type averages, alignment and counts.
    """

    __tablename__ = "metrics_snapshots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    one_on_one_id: Mapped[str] = mapped_column(
        ForeignKey("one_on_ones.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    developer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    team_id: Mapped[str | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    month_year: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    average_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    metric_data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    one_on_one: Mapped["OneOnOne"] = relationship("OneOnOne", back_populates="metrics_snapshot")

    def __repr__(self) -> str:
        return (
            f"<MetricsSnapshot session={self.one_on_one_id} "
            f"month={self.month_year} average={self.average_score}>"
        )


class MetricsRunStatus(enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class MetricsRun(db.Model):
    """
    Tracks one metrics follow-up for a completed session.

    A run is enqueued in the same transaction that completes the session and
    executed after commit. Failed runs keep their error and are retried by
    ``flask metrics process`` until ``metrics.max_attempts`` is reached.
    """

    __tablename__ = "metrics_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    one_on_one_id: Mapped[str] = mapped_column(
        ForeignKey("one_on_ones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[MetricsRunStatus] = mapped_column(
        Enum(MetricsRunStatus, name="metricsrunstatus", create_constraint=True),
        nullable=False,
        default=MetricsRunStatus.PENDING,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    one_on_one: Mapped["OneOnOne"] = relationship("OneOnOne", back_populates="metrics_runs")

    def __repr__(self) -> str:
        return (
            f"<MetricsRun id={self.id} session={self.one_on_one_id} "
            f"status={self.status.value} attempts={self.attempts}>"
        )
