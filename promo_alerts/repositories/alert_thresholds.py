from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promo_alerts.db.models import PromoAlertThresholds


async def get_thresholds(session: AsyncSession) -> PromoAlertThresholds | None:
    result = await session.execute(
        select(PromoAlertThresholds).order_by(PromoAlertThresholds.id).limit(1)
    )
    return result.scalar_one_or_none()


async def upsert_thresholds(
    session: AsyncSession,
    redemption_cap_pct: int,
    expiry_days_before: int,
    roi_target_pct: int,
) -> PromoAlertThresholds:
    thresholds = await get_thresholds(session)
    if thresholds is None:
        thresholds = PromoAlertThresholds(alert_emails=[])
        session.add(thresholds)
    thresholds.redemption_cap_pct = redemption_cap_pct
    thresholds.expiry_days_before = expiry_days_before
    thresholds.roi_target_pct = roi_target_pct
    return thresholds


async def add_alert_email(session: AsyncSession, email: str) -> bool:
    """Returns False when the address is already a recipient."""
    thresholds = await get_thresholds(session)
    if thresholds is None:
        thresholds = PromoAlertThresholds(alert_emails=[])
        session.add(thresholds)
    emails = list(thresholds.alert_emails or [])
    if email in emails:
        return False
    # Reassign so the JSON column is flagged dirty.
    thresholds.alert_emails = [*emails, email]
    return True


async def remove_alert_email(session: AsyncSession, email: str) -> bool:
    thresholds = await get_thresholds(session)
    if thresholds is None or email not in (thresholds.alert_emails or []):
        return False
    thresholds.alert_emails = [e for e in thresholds.alert_emails if e != email]
    return True
