# modules/records/repository.py
"""
Accès DB pour les enregistrements journaliers (daily_records).

Invariant porté par l'index unique partiel : un seul enregistrement
non annulé par (date, participant_id, source).
"""
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import DailyRecord


def record_key(day: date, participant_id: str) -> str:
    return f"{day.isoformat()}_{participant_id}"


class RecordRepository:

    async def get(self, db: AsyncSession, record_id: int) -> Optional[DailyRecord]:
        r = await db.execute(select(DailyRecord).where(DailyRecord.id == record_id))
        return r.scalar_one_or_none()

    async def get_active(
        self, db: AsyncSession, day: date, participant_id: str, source: str
    ) -> Optional[DailyRecord]:
        """L'unique enregistrement non annulé du triplet, s'il existe."""
        r = await db.execute(
            select(DailyRecord).where(
                DailyRecord.date == day,
                DailyRecord.participant_id == participant_id,
                DailyRecord.source == source,
                DailyRecord.voided == False,
            )
        )
        return r.scalar_one_or_none()

    async def list(
        self,
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        participant_id: Optional[str] = None,
        source: Optional[str] = None,
        include_voided: bool = False,
        limit: int = 200,
        offset: int = 0,
    ) -> List[DailyRecord]:
        q = select(DailyRecord)
        if date_from:
            q = q.where(DailyRecord.date >= date_from)
        if date_to:
            q = q.where(DailyRecord.date <= date_to)
        if participant_id:
            q = q.where(DailyRecord.participant_id == participant_id)
        if source:
            q = q.where(DailyRecord.source == source)
        if not include_voided:
            q = q.where(DailyRecord.voided == False)
        r = await db.execute(
            q.order_by(DailyRecord.date.desc(), DailyRecord.id.desc()).limit(limit).offset(offset)
        )
        return r.scalars().all()

    async def update_versioned(
        self, db: AsyncSession, record_id: int, expected_version: int, values: Dict[str, Any]
    ) -> bool:
        """
        UPDATE conditionnel sur la version : False si un autre écrivain est passé avant.
        Pas de commit ici.
        """
        result = await db.execute(
            update(DailyRecord)
            .where(DailyRecord.id == record_id, DailyRecord.version == expected_version)
            .values(**values, version=expected_version + 1)
        )
        return result.rowcount == 1

    async def add(self, db: AsyncSession, record: DailyRecord) -> DailyRecord:
        """Ajout + flush pour obtenir l'id, sans commit."""
        db.add(record)
        await db.flush()
        return record
