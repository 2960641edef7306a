"""ORM Models for the CPQ pricing backend — SQLAlchemy 2.0"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from cpq.db import Base

# entity_id used by summary log rows that describe many entities at once
BULK_ENTITY_ID = "00000000-0000-0000-0000-000000000000"


def gen_uuid():
    return str(uuid.uuid4())


# ── BULK OPERATION MARKERS ────────────────────────────────────────────────────
class BulkOperation(Base):
    """
    One row per in-flight bulk mutation. While an unexpired row exists for a
    team, the row-level audit triggers skip per-row activity logs for it.
    """
    __tablename__ = "bulk_operations"
    operation_id: Mapped[str] = mapped_column(Text, primary_key=True)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False)
    operation_type: Mapped[str] = mapped_column(String(20), nullable=False)  # import | delete | update
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_bulk_operations_team_id", "team_id"),
        Index("idx_bulk_operations_expires_at", "expires_at"),
    )


# ── PRICING SETTINGS ──────────────────────────────────────────────────────────
class PricingSettings(Base):
    __tablename__ = "pricing_settings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    usd_to_ils_rate: Mapped[float] = mapped_column(Numeric(12, 4), default=3.7)
    eur_to_ils_rate: Mapped[float] = mapped_column(Numeric(12, 4), default=4.0)
    default_markup: Mapped[float] = mapped_column(Numeric(8, 4), default=0.75)
    default_risk: Mapped[float] = mapped_column(Numeric(8, 2), default=10.0)
    day_work_cost: Mapped[float] = mapped_column(Numeric(12, 2), default=1200.0)
    vat_rate: Mapped[float] = mapped_column(Numeric(8, 2), default=17.0)
    delivery_time: Mapped[Optional[str]] = mapped_column(String(100), default="4-6 weeks")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def as_pricing_dict(self) -> Dict[str, Any]:
        return {
            "usd_to_ils_rate": float(self.usd_to_ils_rate),
            "eur_to_ils_rate": float(self.eur_to_ils_rate),
            "default_markup": float(self.default_markup),
            "default_risk": float(self.default_risk),
            "day_work_cost": float(self.day_work_cost),
            "vat_rate": float(self.vat_rate),
            "delivery_time": self.delivery_time,
        }


# ── ACTIVITY LOG ──────────────────────────────────────────────────────────────
class ActivityLog(Base):
    __tablename__ = "activity_logs"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    team_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # component | assembly | quotation
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_name: Mapped[Optional[str]] = mapped_column(Text)
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    change_summary: Mapped[Optional[str]] = mapped_column(Text)
    change_details: Mapped[Optional[dict]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
