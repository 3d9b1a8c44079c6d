import os

# Settings are read at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RESEND_API_KEY", "test-key")
os.environ.setdefault("ALERT_SCHEDULER_ENABLED", "false")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from promo_alerts.db.base import Base
from promo_alerts.db.models import PromoAlertThresholds, PromoCode
from promo_alerts.notifications.adapter import EmailAdapter, EmailDeliveryError
from promo_alerts.notifications.dispatcher import AlertDispatcher


class RecordingEmailAdapter(EmailAdapter):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict] = []

    async def send_email(self, recipients, subject, html) -> str:
        if self.fail:
            raise EmailDeliveryError("Resend API error")
        self.sent.append({"to": recipients, "subject": subject, "html": html})
        return f"email-{len(self.sent)}"


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def email_adapter():
    return RecordingEmailAdapter()


@pytest.fixture
def dispatcher(email_adapter):
    return AlertDispatcher(email_adapter)


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def make_promo(session):
    async def _make(code: str = "WELCOME10", **overrides) -> PromoCode:
        fields = {
            "discount_type": "percentage",
            "discount_value": Decimal("10"),
            "usage_limit": None,
            "used_count": 0,
            "expires_at": None,
            "min_order_amount": Decimal("100"),
        }
        fields.update(overrides)
        promo = PromoCode(code=code, **fields)
        session.add(promo)
        await session.commit()
        return promo

    return _make


@pytest.fixture
def make_thresholds(session):
    async def _make(**overrides) -> PromoAlertThresholds:
        fields = {
            "redemption_cap_pct": 80,
            "expiry_days_before": 3,
            # High enough that ROI only fires in tests that lower it.
            "roi_target_pct": 100_000,
            "alert_emails": ["ops@campus.test"],
        }
        fields.update(overrides)
        thresholds = PromoAlertThresholds(**fields)
        session.add(thresholds)
        await session.commit()
        return thresholds

    return _make
