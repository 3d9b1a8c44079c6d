from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promo_alerts.db.models import PromoCode


async def list_promo_codes(session: AsyncSession) -> list[PromoCode]:
    result = await session.execute(select(PromoCode))
    return list(result.scalars().all())
