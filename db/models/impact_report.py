"""
db/models/impact_report.py

Monthly impact metrics reported by one organization.
One row per (entity_id, period).
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

IMPACT_REPORT_UPSERT_CONSTRAINT = "uq_impact_reports_entity_period"


class ImpactReport(Base, TimestampMixin):
    """
    The unique constraint on ``(entity_id, period)`` drives upsert semantics:
    a second submission for the same organization and month replaces the
    stored values instead of inserting a duplicate.
    """

    __tablename__ = "impact_reports"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    entity_id: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Reporting organization identifier (ngo_id on the wire)",
    )
    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Reporting month, YYYY-MM",
    )
    people_helped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    events_conducted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    funds_utilized: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        default=Decimal("0"),
    )

    __table_args__ = (
        UniqueConstraint("entity_id", "period", name=IMPACT_REPORT_UPSERT_CONSTRAINT),
        Index("ix_impact_reports_period", "period"),
        Index("ix_impact_reports_entity_period", "entity_id", "period"),
    )
