# modules/directory/repository.py
"""
Lecture des entités de référence (dépôts, companies, platoons, participants).
Utilisé par directory, compare, rankings et l'import d'enregistrements.
"""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import Depot, Company, Platoon, Participant


class DirectoryRepository:

    async def list_depots(self, db: AsyncSession) -> List[Depot]:
        r = await db.execute(select(Depot).order_by(Depot.name))
        return r.scalars().all()

    async def list_companies(self, db: AsyncSession) -> List[Company]:
        r = await db.execute(select(Company).order_by(Company.name))
        return r.scalars().all()

    async def list_platoons(self, db: AsyncSession) -> List[Platoon]:
        r = await db.execute(select(Platoon).order_by(Platoon.name))
        return r.scalars().all()

    async def list_participants(self, db: AsyncSession) -> List[Participant]:
        r = await db.execute(select(Participant).order_by(Participant.name))
        return r.scalars().all()
