# modules/formulas/repository.py
"""
Accès DB pour les formules de scoring versionnées.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import ScoringFormula


class FormulaRepository:

    async def get(self, db: AsyncSession, formula_id: int) -> Optional[ScoringFormula]:
        r = await db.execute(select(ScoringFormula).where(ScoringFormula.id == formula_id))
        return r.scalar_one_or_none()

    async def list(
        self,
        db: AsyncSession,
        battle_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[ScoringFormula]:
        q = select(ScoringFormula)
        if battle_type:
            q = q.where(ScoringFormula.battle_type == battle_type)
        if status:
            q = q.where(ScoringFormula.status == status)
        r = await db.execute(
            q.order_by(
                ScoringFormula.battle_type,
                ScoringFormula.effective_start_week_key.desc(),
                ScoringFormula.version.desc(),
            )
        )
        return r.scalars().all()

    async def published_for(self, db: AsyncSession, battle_type: str) -> List[ScoringFormula]:
        """Candidates à la sélection de la formule active (le choix se fait dans l'engine)."""
        r = await db.execute(
            select(ScoringFormula).where(
                ScoringFormula.battle_type == battle_type,
                ScoringFormula.status == "published",
            )
        )
        return r.scalars().all()

    async def add(self, db: AsyncSession, formula: ScoringFormula) -> ScoringFormula:
        """Ajout + flush pour obtenir l'id (l'entrée d'audit en a besoin), sans commit."""
        db.add(formula)
        await db.flush()
        return formula
