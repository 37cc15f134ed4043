# modules/finalization/repository.py
"""
Accès DB pour le verrou hebdomadaire (finalized_weeks).
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import FinalizedWeek


class WeekRepository:

    async def get(self, db: AsyncSession, week_key: str) -> Optional[FinalizedWeek]:
        r = await db.execute(select(FinalizedWeek).where(FinalizedWeek.week_key == week_key))
        return r.scalar_one_or_none()

    async def get_or_create(
        self, db: AsyncSession, week_key: str, start_date: date, end_date: date
    ) -> FinalizedWeek:
        """Ligne ajoutée à la session si absente, sans commit."""
        week = await self.get(db, week_key)
        if week is None:
            week = FinalizedWeek(
                week_key=week_key, start_date=start_date, end_date=end_date, status="open"
            )
            db.add(week)
        return week

    async def list_recent(self, db: AsyncSession, limit: int = 10) -> List[FinalizedWeek]:
        r = await db.execute(
            select(FinalizedWeek).order_by(FinalizedWeek.start_date.desc()).limit(limit)
        )
        return r.scalars().all()

    async def finalized_keys(self, db: AsyncSession, week_keys: List[str]) -> List[str]:
        if not week_keys:
            return []
        r = await db.execute(
            select(FinalizedWeek.week_key).where(
                FinalizedWeek.week_key.in_(week_keys),
                FinalizedWeek.status == "finalized",
            )
        )
        return list(r.scalars().all())
