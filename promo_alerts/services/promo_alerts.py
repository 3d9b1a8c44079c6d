"""Promo code alert evaluation.

Each run loads the global thresholds row and every promo code, checks three
independent metrics per code (redemption cap, expiry, ROI) and dispatches an
email for every crossing that was not already alerted for the same
(code, alert type) within the trailing 24 hours.

The dedup check and the log write are not transactional: two overlapping
runs may both dispatch the same alert.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from promo_alerts.db.models import AlertType, PromoAlertThresholds, PromoCode
from promo_alerts.notifications.dispatcher import AlertDispatcher
from promo_alerts.repositories.alert_logs import add_alert_log, has_recent_alert
from promo_alerts.repositories.alert_thresholds import get_thresholds
from promo_alerts.repositories.promo_codes import list_promo_codes
from promo_alerts.services.metrics import (
    as_utc,
    compute_roi,
    days_until,
    redemption_pct,
    round_half_up,
)


logger = logging.getLogger(__name__)

DEDUP_WINDOW = timedelta(hours=24)
NO_RECIPIENTS_MESSAGE = "No admin emails configured"


class ThresholdsNotConfigured(Exception):
    def __init__(self) -> None:
        super().__init__("No alert thresholds configured")


@dataclass
class AlertCheckResult:
    triggered: list[str] = field(default_factory=list)
    skipped_reason: str | None = None

    @property
    def count(self) -> int:
        return len(self.triggered)


def collect_alerts(
    promo: PromoCode, thresholds: PromoAlertThresholds, now: datetime
) -> list[tuple[str, dict]]:
    """Metric crossings for one code, in redemption cap, expiry, ROI order."""
    alerts: list[tuple[str, dict]] = []

    pct = redemption_pct(promo)
    if pct is not None and pct >= thresholds.redemption_cap_pct:
        alerts.append(
            (
                AlertType.REDEMPTION_CAP,
                {
                    "currentPct": round_half_up(pct),
                    "usedCount": promo.used_count,
                    "usageLimit": promo.usage_limit,
                    "threshold": thresholds.redemption_cap_pct,
                },
            )
        )

    if promo.expires_at is not None:
        expires_at = as_utc(promo.expires_at)
        days_left = days_until(expires_at, now)
        if expires_at <= now:
            alerts.append(
                (AlertType.EXPIRED, {"expiredAt": expires_at.date().isoformat()})
            )
        elif 0 < days_left <= thresholds.expiry_days_before:
            alerts.append(
                (
                    AlertType.EXPIRING_SOON,
                    {
                        "daysLeft": days_left,
                        "expiresAt": expires_at.date().isoformat(),
                    },
                )
            )

    roi = compute_roi(promo)
    if promo.used_count > 0 and roi.roi_pct >= thresholds.roi_target_pct:
        alerts.append(
            (
                AlertType.ROI_TARGET,
                {
                    "currentRoi": roi.roi_pct,
                    "roiTarget": thresholds.roi_target_pct,
                    "redemptions": promo.used_count,
                },
            )
        )

    return alerts


async def evaluate_promo_alerts(
    session: AsyncSession,
    promos: list[PromoCode],
    thresholds: PromoAlertThresholds,
    dispatcher: AlertDispatcher,
    now: datetime | None = None,
    log_failed_dispatches: bool | None = None,
) -> AlertCheckResult:
    now = as_utc(now or datetime.now(timezone.utc))
    if log_failed_dispatches is None:
        log_failed_dispatches = settings.alert_log_failed_dispatches
    since = now - DEDUP_WINDOW
    recipients = list(thresholds.alert_emails or [])
    result = AlertCheckResult()

    for promo in promos:
        for alert_type, details in collect_alerts(promo, thresholds, now):
            if await has_recent_alert(session, promo.id, alert_type, since):
                logger.debug(
                    "Promo alert already sent in window",
                    extra={"promo_code": promo.code, "alert_type": alert_type},
                )
                continue

            delivered = await dispatcher.dispatch(
                alert_type, promo.code, details, recipients
            )
            if not delivered:
                logger.warning(
                    "Promo alert not delivered",
                    extra={"promo_code": promo.code, "alert_type": alert_type},
                )
                if not log_failed_dispatches:
                    continue

            await add_alert_log(session, promo, alert_type, details)
            # Persist each log as soon as its email is sent.
            await session.commit()
            result.triggered.append(f"{promo.code}:{alert_type}")
            logger.info(
                "Promo alert triggered",
                extra={"promo_code": promo.code, "alert_type": alert_type},
            )

    return result


async def run_promo_alert_check(
    session: AsyncSession,
    dispatcher: AlertDispatcher,
    now: datetime | None = None,
) -> AlertCheckResult:
    thresholds = await get_thresholds(session)
    if thresholds is None:
        raise ThresholdsNotConfigured()

    if not thresholds.alert_emails:
        return AlertCheckResult(skipped_reason=NO_RECIPIENTS_MESSAGE)

    promos = await list_promo_codes(session)
    result = await evaluate_promo_alerts(session, promos, thresholds, dispatcher, now)

    logger.info(
        "Promo alert check finished",
        extra={"checked": len(promos), "triggered": result.count},
    )
    return result
