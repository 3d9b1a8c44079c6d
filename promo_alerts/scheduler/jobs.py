import logging

from sqlalchemy.ext.asyncio import AsyncSession

from promo_alerts.notifications.dispatcher import AlertDispatcher
from promo_alerts.services.promo_alerts import (
    AlertCheckResult,
    ThresholdsNotConfigured,
    run_promo_alert_check,
)


logger = logging.getLogger(__name__)


async def check_promo_alerts(
    session: AsyncSession, dispatcher: AlertDispatcher
) -> AlertCheckResult | None:
    try:
        result = await run_promo_alert_check(session, dispatcher)
    except ThresholdsNotConfigured:
        logger.warning("Promo alert check skipped: no thresholds configured")
        return None

    if result.skipped_reason:
        logger.info(
            "Promo alert check skipped", extra={"reason": result.skipped_reason}
        )
    return result
