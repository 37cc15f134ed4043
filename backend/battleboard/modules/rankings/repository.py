# modules/rankings/repository.py
"""
Lecture des enregistrements non annulés d'une source sur une plage de dates.
Un seul snapshot par requête : aucun cache, aucun état partagé.
"""
from datetime import date
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import DailyRecord


class RankingRepository:

    async def active_records(
        self, db: AsyncSession, date_from: date, date_to: date, source: str
    ) -> List[DailyRecord]:
        r = await db.execute(
            select(DailyRecord)
            .where(
                DailyRecord.source == source,
                DailyRecord.voided == False,
                DailyRecord.date >= date_from,
                DailyRecord.date <= date_to,
            )
            .order_by(DailyRecord.date, DailyRecord.id)
        )
        return r.scalars().all()
