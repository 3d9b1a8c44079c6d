import logging

import httpx

from promo_alerts.notifications.adapter import EmailAdapter, EmailDeliveryError
from promo_alerts.notifications.templates import render_alert_email


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("alertType", "promoCode", "adminEmails")


def validate_alert_payload(payload: dict) -> bool:
    if not isinstance(payload, dict):
        return False
    if any(not payload.get(field) for field in REQUIRED_FIELDS):
        return False
    if not isinstance(payload["alertType"], str):
        return False
    if not isinstance(payload["promoCode"], str):
        return False
    emails = payload["adminEmails"]
    if not isinstance(emails, list) or not all(isinstance(e, str) for e in emails):
        return False
    details = payload.get("details")
    return details is None or isinstance(details, dict)


class AlertDispatcher:
    def __init__(self, adapter: EmailAdapter) -> None:
        self._adapter = adapter

    async def send(
        self,
        alert_type: str,
        promo_code: str,
        details: dict,
        admin_emails: list[str],
    ) -> str:
        """Render and submit one alert; transport errors propagate."""
        email = render_alert_email(alert_type, promo_code, details)
        return await self._adapter.send_email(admin_emails, email.subject, email.html)

    async def dispatch(
        self,
        alert_type: str,
        promo_code: str,
        details: dict,
        admin_emails: list[str],
    ) -> bool:
        try:
            email_id = await self.send(alert_type, promo_code, details, admin_emails)
        except (EmailDeliveryError, httpx.HTTPError) as exc:
            logger.exception(
                "Promo alert dispatch failed",
                exc_info=exc,
                extra={"promo_code": promo_code, "alert_type": alert_type},
            )
            return False
        logger.info(
            "Promo alert dispatched",
            extra={
                "promo_code": promo_code,
                "alert_type": alert_type,
                "email_id": email_id,
            },
        )
        return True
