import logging
import re
from datetime import datetime

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from promo_alerts.db.models import PromoAlertLog, PromoAlertThresholds
from promo_alerts.db.session import AsyncSessionLocal
from promo_alerts.notifications.adapter import EmailDeliveryError
from promo_alerts.notifications.dispatcher import (
    AlertDispatcher,
    validate_alert_payload,
)
from promo_alerts.notifications.resend_adapter import ResendAdapter
from promo_alerts.repositories.alert_logs import list_alert_logs
from promo_alerts.repositories.alert_thresholds import (
    add_alert_email,
    get_thresholds,
    remove_alert_email,
    upsert_thresholds,
)
from promo_alerts.services.promo_alerts import (
    ThresholdsNotConfigured,
    run_promo_alert_check,
)


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ThresholdsUpdate(BaseModel):
    redemption_cap_pct: int = Field(ge=0)
    expiry_days_before: int = Field(ge=0)
    roi_target_pct: int = Field(ge=0)


class AlertEmailCreate(BaseModel):
    email: str


def _serialize_thresholds(thresholds: PromoAlertThresholds) -> dict:
    return {
        "redemption_cap_pct": thresholds.redemption_cap_pct,
        "expiry_days_before": thresholds.expiry_days_before,
        "roi_target_pct": thresholds.roi_target_pct,
        "alert_emails": list(thresholds.alert_emails or []),
        "updated_at": _iso(thresholds.updated_at),
    }


def _serialize_log(entry: PromoAlertLog) -> dict:
    return {
        "id": entry.id,
        "promo_code_id": entry.promo_code_id,
        "promo_code": entry.promo_code,
        "alert_type": entry.alert_type,
        "details": entry.details or {},
        "sent_at": _iso(entry.sent_at),
    }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def create_app(
    session_factory=AsyncSessionLocal, dispatcher: AlertDispatcher | None = None
) -> FastAPI:
    app = FastAPI(title="Promo Alerts")
    dispatcher = dispatcher or AlertDispatcher(ResendAdapter())

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/promo-alerts/check")
    async def check_promo_alerts() -> JSONResponse:
        try:
            async with session_factory() as session:
                result = await run_promo_alert_check(session, dispatcher)
        except ThresholdsNotConfigured as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        except Exception as exc:
            logger.exception("Promo alert check failed", exc_info=exc)
            return JSONResponse({"error": str(exc)}, status_code=500)

        if result.skipped_reason:
            return JSONResponse({"message": result.skipped_reason, "triggered": []})
        return JSONResponse(
            {"success": True, "triggered": result.triggered, "count": result.count}
        )

    @app.post("/api/promo-alerts/send")
    async def send_promo_alert(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if not validate_alert_payload(payload):
            return JSONResponse({"error": "Missing required fields"}, status_code=400)

        try:
            email_id = await dispatcher.send(
                payload["alertType"],
                payload["promoCode"],
                payload.get("details") or {},
                payload["adminEmails"],
            )
        except EmailDeliveryError as exc:
            logger.warning(
                "Promo alert email failed",
                extra={"promo_code": payload["promoCode"], "error": str(exc)},
            )
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse({"success": True, "emailId": email_id})

    @app.get("/api/promo-alerts/thresholds")
    async def read_thresholds() -> JSONResponse:
        async with session_factory() as session:
            thresholds = await get_thresholds(session)
            if thresholds is None:
                return JSONResponse(
                    {"error": "No alert thresholds configured"}, status_code=404
                )
            return JSONResponse(_serialize_thresholds(thresholds))

    @app.put("/api/promo-alerts/thresholds")
    async def save_thresholds(body: ThresholdsUpdate) -> JSONResponse:
        async with session_factory() as session:
            thresholds = await upsert_thresholds(
                session,
                redemption_cap_pct=body.redemption_cap_pct,
                expiry_days_before=body.expiry_days_before,
                roi_target_pct=body.roi_target_pct,
            )
            await session.commit()
            return JSONResponse(_serialize_thresholds(thresholds))

    @app.post("/api/promo-alerts/thresholds/emails")
    async def create_alert_email(body: AlertEmailCreate) -> JSONResponse:
        email = body.email.strip().lower()
        if not EMAIL_RE.match(email):
            return JSONResponse({"error": "Invalid email address"}, status_code=422)
        async with session_factory() as session:
            added = await add_alert_email(session, email)
            if not added:
                return JSONResponse(
                    {"error": "Email already in alert list"}, status_code=409
                )
            await session.commit()
            thresholds = await get_thresholds(session)
            return JSONResponse(_serialize_thresholds(thresholds), status_code=201)

    @app.delete("/api/promo-alerts/thresholds/emails/{email}")
    async def delete_alert_email(email: str) -> JSONResponse:
        async with session_factory() as session:
            removed = await remove_alert_email(session, email.strip().lower())
            if not removed:
                return JSONResponse({"error": "Email not found"}, status_code=404)
            await session.commit()
            thresholds = await get_thresholds(session)
            return JSONResponse(_serialize_thresholds(thresholds))

    @app.get("/api/promo-alerts/logs")
    async def read_alert_logs(limit: int = Query(50, ge=1, le=200)) -> JSONResponse:
        async with session_factory() as session:
            logs = await list_alert_logs(session, limit=limit)
            return JSONResponse({"logs": [_serialize_log(entry) for entry in logs]})

    return app
