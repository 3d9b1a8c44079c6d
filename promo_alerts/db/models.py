from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from promo_alerts.db.base import Base


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JsonType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DiscountType(str):
    FLAT = "flat"
    PERCENTAGE = "percentage"


class AlertType(str):
    REDEMPTION_CAP = "redemption_cap"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    ROI_TARGET = "roi_target"


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    discount_type: Mapped[str] = mapped_column(
        Enum(DiscountType.FLAT, DiscountType.PERCENTAGE, name="discount_type"),
        default=DiscountType.PERCENTAGE,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, default=0)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    min_order_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    alert_logs: Mapped[list["PromoAlertLog"]] = relationship(
        back_populates="promo"
    )


class PromoAlertThresholds(Base):
    __tablename__ = "promo_alert_thresholds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    redemption_cap_pct: Mapped[int] = mapped_column(Integer, default=80)
    expiry_days_before: Mapped[int] = mapped_column(Integer, default=3)
    roi_target_pct: Mapped[int] = mapped_column(Integer, default=200)
    alert_emails: Mapped[list[str]] = mapped_column(JsonType, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class PromoAlertLog(Base):
    __tablename__ = "promo_alert_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    promo_code_id: Mapped[int] = mapped_column(ForeignKey("promo_codes.id"))
    promo_code: Mapped[str] = mapped_column(String(64))
    alert_type: Mapped[str] = mapped_column(
        Enum(
            AlertType.REDEMPTION_CAP,
            AlertType.EXPIRED,
            AlertType.EXPIRING_SOON,
            AlertType.ROI_TARGET,
            name="promo_alert_type",
        )
    )
    details: Mapped[dict] = mapped_column(JsonType, default=dict)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    promo: Mapped["PromoCode"] = relationship(back_populates="alert_logs")

    __table_args__ = (
        Index(
            "ix_promo_alert_logs_lookup", "promo_code_id", "alert_type", "sent_at"
        ),
    )
