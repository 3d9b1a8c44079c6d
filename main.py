import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from config import settings
from promo_alerts.notifications.dispatcher import AlertDispatcher
from promo_alerts.notifications.resend_adapter import ResendAdapter
from promo_alerts.scheduler.setup import setup_scheduler
from promo_alerts.web.app import create_app


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    dispatcher = AlertDispatcher(ResendAdapter())

    if settings.alert_scheduler_enabled:
        scheduler = setup_scheduler(dispatcher)
        scheduler.start()

    app = create_app(dispatcher=dispatcher)
    server_config = uvicorn.Config(
        app, host=settings.http_host, port=settings.http_port, log_level="info"
    )
    server = uvicorn.Server(server_config)

    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
