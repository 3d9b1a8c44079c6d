import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import settings
from promo_alerts.db.session import AsyncSessionLocal
from promo_alerts.notifications.dispatcher import AlertDispatcher
from promo_alerts.scheduler import jobs


logger = logging.getLogger(__name__)


def setup_scheduler(
    dispatcher: AlertDispatcher, session_factory=AsyncSessionLocal
) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)

    async def _with_session(coro):
        async with session_factory() as session:
            try:
                await coro(session)
            except Exception as exc:
                logger.exception("Scheduled job failed", exc_info=exc)

    async def _check_promo_alerts() -> None:
        await _with_session(lambda s: jobs.check_promo_alerts(s, dispatcher))

    scheduler.add_job(
        _check_promo_alerts,
        "interval",
        minutes=settings.alert_check_interval_minutes,
        id="check_promo_alerts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    return scheduler
