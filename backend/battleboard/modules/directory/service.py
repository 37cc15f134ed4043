# modules/directory/service.py
"""
Référentiel en lecture seule. La maintenance (CRUD) appartient au collaborateur externe.
"""
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.modules.directory.repository import DirectoryRepository

repo = DirectoryRepository()


class DirectoryService:

    async def depots(self, db: AsyncSession) -> List:
        return await repo.list_depots(db)

    async def companies(self, db: AsyncSession) -> List:
        return await repo.list_companies(db)

    async def platoons(self, db: AsyncSession) -> List:
        return await repo.list_platoons(db)

    async def participants(self, db: AsyncSession) -> List:
        return await repo.list_participants(db)

    async def lookups(self, db: AsyncSession) -> Dict[str, List]:
        """
        Les quatre référentiels d'un coup, lus séquentiellement :
        une AsyncSession n'accepte pas de requêtes concurrentes.
        """
        return {
            "participants": await repo.list_participants(db),
            "depots":       await repo.list_depots(db),
            "companies":    await repo.list_companies(db),
            "platoons":     await repo.list_platoons(db),
        }
