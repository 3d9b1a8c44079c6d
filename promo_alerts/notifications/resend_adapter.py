import logging

import httpx

from config import settings
from promo_alerts.notifications.adapter import EmailAdapter, EmailDeliveryError


logger = logging.getLogger(__name__)


class ResendAdapter(EmailAdapter):
    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = "https://api.resend.com"
        self._api_key = settings.resend_api_key if api_key is None else api_key
        self._from_email = from_email or settings.alert_from_email
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def send_email(
        self, recipients: list[str], subject: str, html: str
    ) -> str:
        if not self._api_key:
            raise EmailDeliveryError("RESEND_API_KEY not configured")

        payload = {
            "from": self._from_email,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        try:
            async with httpx.AsyncClient(
                timeout=30, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._base_url}/emails", headers=self._headers(), json=payload
                )
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Resend request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning(
                "Resend rejected email",
                extra={"status_code": response.status_code, "body": response.text},
            )
            raise EmailDeliveryError(message or "Resend API error")

        return data.get("id", "")
