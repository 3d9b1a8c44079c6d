from datetime import timedelta

import httpx
import pytest
from sqlalchemy import func, select

from promo_alerts.db.models import PromoAlertLog
from promo_alerts.notifications.dispatcher import AlertDispatcher
from promo_alerts.web import app as web_app
from promo_alerts.web.app import create_app
from tests.conftest import RecordingEmailAdapter


@pytest.fixture
async def client(session_factory, dispatcher):
    app = create_app(session_factory=session_factory, dispatcher=dispatcher)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_check_without_thresholds_is_config_error(client, session):
    response = await client.post("/api/promo-alerts/check")

    assert response.status_code == 400
    assert response.json() == {"error": "No alert thresholds configured"}
    count = await session.execute(select(func.count(PromoAlertLog.id)))
    assert count.scalar_one() == 0


async def test_check_without_recipients(client, make_thresholds, email_adapter):
    await make_thresholds(alert_emails=[])

    response = await client.post("/api/promo-alerts/check")

    assert response.status_code == 200
    assert response.json() == {"message": "No admin emails configured", "triggered": []}
    assert email_adapter.sent == []


async def test_check_returns_triggered_summary(
    client, make_promo, make_thresholds, now
):
    await make_thresholds()
    await make_promo("CAMPUS81", usage_limit=100, used_count=81)
    await make_promo("GONE", expires_at=now - timedelta(days=1))

    response = await client.post("/api/promo-alerts/check")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "triggered": ["CAMPUS81:redemption_cap", "GONE:expired"],
        "count": 2,
    }

    again = await client.post("/api/promo-alerts/check")
    assert again.json() == {"success": True, "triggered": [], "count": 0}


async def test_check_reports_unexpected_failure(client, monkeypatch):
    async def broken(session, dispatcher, now=None):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(web_app, "run_promo_alert_check", broken)

    response = await client.post("/api/promo-alerts/check")

    assert response.status_code == 500
    assert response.json() == {"error": "database unreachable"}


async def test_send_rejects_incomplete_payload(client):
    response = await client.post(
        "/api/promo-alerts/send",
        json={"alertType": "expired", "promoCode": "DEAL", "adminEmails": []},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


@pytest.mark.parametrize(
    "payload",
    [
        {"alertType": 5, "promoCode": "DEAL", "adminEmails": ["ops@campus.test"]},
        {"alertType": "expired", "promoCode": 7, "adminEmails": ["ops@campus.test"]},
        {"alertType": "expired", "promoCode": "DEAL", "adminEmails": [None, 3]},
        {
            "alertType": "expired",
            "promoCode": "DEAL",
            "details": "soon",
            "adminEmails": ["ops@campus.test"],
        },
    ],
)
async def test_send_rejects_mistyped_payload(client, email_adapter, payload):
    response = await client.post("/api/promo-alerts/send", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}
    assert email_adapter.sent == []


async def test_send_delivers_email(client, email_adapter):
    response = await client.post(
        "/api/promo-alerts/send",
        json={
            "alertType": "expiring_soon",
            "promoCode": "DEAL",
            "details": {"daysLeft": 2, "expiresAt": "2026-10-18"},
            "adminEmails": ["ops@campus.test"],
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "emailId": "email-1"}
    assert "will expire in 2 day(s) on 2026-10-18" in email_adapter.sent[0]["html"]


async def test_send_reports_transport_failure(session_factory):
    app = create_app(
        session_factory=session_factory,
        dispatcher=AlertDispatcher(RecordingEmailAdapter(fail=True)),
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/promo-alerts/send",
            json={
                "alertType": "expired",
                "promoCode": "DEAL",
                "adminEmails": ["ops@campus.test"],
            },
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Resend API error"}


async def test_thresholds_crud(client):
    missing = await client.get("/api/promo-alerts/thresholds")
    assert missing.status_code == 404

    saved = await client.put(
        "/api/promo-alerts/thresholds",
        json={"redemption_cap_pct": 90, "expiry_days_before": 5, "roi_target_pct": 150},
    )
    assert saved.status_code == 200
    assert saved.json()["redemption_cap_pct"] == 90
    assert saved.json()["alert_emails"] == []

    current = await client.get("/api/promo-alerts/thresholds")
    body = current.json()
    assert body["expiry_days_before"] == 5
    assert body["roi_target_pct"] == 150


async def test_thresholds_reject_negative_values(client):
    response = await client.put(
        "/api/promo-alerts/thresholds",
        json={"redemption_cap_pct": -1, "expiry_days_before": 3, "roi_target_pct": 200},
    )
    assert response.status_code == 422


async def test_alert_email_management(client):
    added = await client.post(
        "/api/promo-alerts/thresholds/emails", json={"email": "Ops@Campus.test"}
    )
    assert added.status_code == 201
    assert added.json()["alert_emails"] == ["ops@campus.test"]

    duplicate = await client.post(
        "/api/promo-alerts/thresholds/emails", json={"email": "ops@campus.test"}
    )
    assert duplicate.status_code == 409

    invalid = await client.post(
        "/api/promo-alerts/thresholds/emails", json={"email": "not-an-email"}
    )
    assert invalid.status_code == 422

    await client.post(
        "/api/promo-alerts/thresholds/emails", json={"email": "dean@campus.test"}
    )
    removed = await client.delete("/api/promo-alerts/thresholds/emails/ops@campus.test")
    assert removed.status_code == 200
    assert removed.json()["alert_emails"] == ["dean@campus.test"]

    gone = await client.delete("/api/promo-alerts/thresholds/emails/ops@campus.test")
    assert gone.status_code == 404


async def test_alert_logs_newest_first(client, make_promo, make_thresholds, now):
    await make_thresholds(roi_target_pct=100)
    await make_promo("MULTI", usage_limit=10, used_count=10, expires_at=now - timedelta(hours=1))
    await client.post("/api/promo-alerts/check")

    response = await client.get("/api/promo-alerts/logs", params={"limit": 2})

    assert response.status_code == 200
    logs = response.json()["logs"]
    assert [entry["alert_type"] for entry in logs] == ["roi_target", "expired"]
    assert logs[0]["promo_code"] == "MULTI"
    assert logs[0]["details"]["redemptions"] == 10

    too_many = await client.get("/api/promo-alerts/logs", params={"limit": 500})
    assert too_many.status_code == 422
