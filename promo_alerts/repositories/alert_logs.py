from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promo_alerts.db.models import PromoAlertLog, PromoCode


async def has_recent_alert(
    session: AsyncSession, promo_code_id: int, alert_type: str, since: datetime
) -> bool:
    result = await session.execute(
        select(PromoAlertLog.id)
        .where(PromoAlertLog.promo_code_id == promo_code_id)
        .where(PromoAlertLog.alert_type == alert_type)
        .where(PromoAlertLog.sent_at >= since)
        .limit(1)
    )
    return result.first() is not None


async def add_alert_log(
    session: AsyncSession, promo: PromoCode, alert_type: str, details: dict
) -> PromoAlertLog:
    entry = PromoAlertLog(
        promo_code_id=promo.id,
        promo_code=promo.code,
        alert_type=alert_type,
        details=details,
    )
    session.add(entry)
    return entry


async def list_alert_logs(
    session: AsyncSession, limit: int = 50
) -> list[PromoAlertLog]:
    result = await session.execute(
        select(PromoAlertLog)
        .order_by(PromoAlertLog.sent_at.desc(), PromoAlertLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
