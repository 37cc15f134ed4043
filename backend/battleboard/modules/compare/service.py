# modules/compare/service.py
"""
Vue Compare / Publishing : rapprochement company ↔ dépôt par (date, participant).
Le calcul est entièrement délégué à engine/compare/reconciler.py.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.engine.compare.reconciler import CompareRow, compare_rows
from battleboard.modules.compare.repository import CompareRepository
from battleboard.modules.directory.repository import DirectoryRepository
from battleboard.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

repo = CompareRepository()
directory_repo = DirectoryRepository()


class CompareService:

    async def list_rows(
        self,
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        participant_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[CompareRow]:
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from doit précéder date_to.")

        records = await repo.active_records(db, date_from, date_to, participant_id)
        participants = await directory_repo.list_participants(db)
        depots = await directory_repo.list_depots(db)

        rows = compare_rows(
            records,
            {p.id: p for p in participants},
            {d.id: d.name for d in depots},
        )
        restricted = sum(1 for r in rows if r.restricted)
        if restricted:
            logger.warning("compare: %d row(s) with unresolved participant", restricted)
        if status:
            rows = [r for r in rows if r.status == status]
        return rows
