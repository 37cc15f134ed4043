# modules/rankings/service.py
"""
Classements : tableau de bord admin et leaderboard public.

Flux par requête :
  1. enregistrements company non annulés sur la plage
     (leaderboard : uniquement ceux dont la paire est publishable)
  2. référentiels (participants, dépôts, companies, platoons)
  3. formule active résolue UNE fois pour battle_type_for(mode, rôle) et la semaine
  4. engine/ranking/aggregator.py

Formule absente : points à 0 et formula.missing = True, jamais une erreur.
Toute erreur de lecture du store remonte telle quelle.
"""
import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.engine.compare.reconciler import is_publishable, pair_key
from battleboard.engine.ranking.aggregator import aggregate_rankings
from battleboard.engine.scoring.evaluator import battle_type_for
from battleboard.engine.scoring.weeks import iso_week_key
from battleboard.modules.directory.service import DirectoryService
from battleboard.modules.formulas.service import FormulaService
from battleboard.modules.rankings.repository import RankingRepository
from battleboard.shared.enums import RecordSource
from battleboard.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

repo = RankingRepository()
directory = DirectoryService()
formulas = FormulaService()


class RankingService:

    async def dashboard(
        self,
        db: AsyncSession,
        mode: str,
        date_from: date,
        date_to: date,
        role_filter: Optional[str] = None,
        week_key: Optional[str] = None,
    ) -> Dict:
        """Classement admin : tous les enregistrements company non annulés."""
        self._check_range(date_from, date_to)
        records = await repo.active_records(db, date_from, date_to, RecordSource.COMPANY.value)
        return await self._rank(db, records, mode, date_from, date_to, role_filter, week_key)

    async def leaderboard(
        self,
        db: AsyncSession,
        mode: str,
        date_from: date,
        date_to: date,
        role_filter: Optional[str] = None,
        week_key: Optional[str] = None,
    ) -> Dict:
        """Classement public : seules les lignes company publishable (matched ou approuvées)."""
        self._check_range(date_from, date_to)
        company_rows = await repo.active_records(db, date_from, date_to, RecordSource.COMPANY.value)
        depot_rows = await repo.active_records(db, date_from, date_to, RecordSource.DEPOT.value)

        depot_pairs = {pair_key(r.date, r.participant_id): r for r in depot_rows if r.participant_id}
        publishable = [
            r for r in company_rows
            if is_publishable(r, depot_pairs.get(pair_key(r.date, r.participant_id)))
        ]
        return await self._rank(db, publishable, mode, date_from, date_to, role_filter, week_key)

    # ── Interne ───────────────────────────────────────────────

    def _check_range(self, date_from: date, date_to: date) -> None:
        if date_from > date_to:
            raise ValidationError("date_from doit précéder date_to.")

    async def _rank(self, db, records, mode, date_from, date_to, role_filter, week_key) -> Dict:
        lookups = await directory.lookups(db)

        battle_type = battle_type_for(mode, role_filter)
        week_key = week_key or iso_week_key(date_to)
        formula = await formulas.get_active(db, battle_type, week_key)

        result = aggregate_rankings(
            records, mode, role_filter, formula, lookups,
            date_from=date_from, date_to=date_to,
        )
        return {
            "mode": mode,
            "role_filter": role_filter,
            "date_from": date_from,
            "date_to": date_to,
            "kpis": result.kpis,
            "rows": result.rows,
            "formula": {
                "data": formula,
                "battle_type": battle_type,
                "week_key": week_key,
                "missing": formula is None,
            },
        }
