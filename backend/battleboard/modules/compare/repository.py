# modules/compare/repository.py
"""
Lecture des enregistrements non annulés des deux sources pour le rapprochement.
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import DailyRecord


class CompareRepository:

    async def active_records(
        self,
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        participant_id: Optional[str] = None,
    ) -> List[DailyRecord]:
        q = select(DailyRecord).where(
            DailyRecord.voided == False,
            DailyRecord.source.in_(("company", "depot")),
        )
        if date_from:
            q = q.where(DailyRecord.date >= date_from)
        if date_to:
            q = q.where(DailyRecord.date <= date_to)
        if participant_id:
            q = q.where(DailyRecord.participant_id == participant_id)
        r = await db.execute(q.order_by(DailyRecord.date.desc(), DailyRecord.id))
        return r.scalars().all()
