# modules/formulas/service.py
"""
Formules de scoring : brouillons audités, publication irréversible,
résolution de la formule active pour (type de bataille, semaine).

Toute écriture exige super_admin + raison ≥ 5 caractères et produit
exactement une entrée d'audit, commitée avec la mutation.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.engine.scoring.formula import (
    normalized_metrics,
    select_active_formula,
    validate_formula,
)
from battleboard.engine.scoring.weeks import iso_week_key, is_valid_week_key
from battleboard.modules.audit.repository import AuditRepository
from battleboard.modules.audit.service import require_reason, snapshot
from battleboard.modules.formulas.repository import FormulaRepository
from battleboard.shared.enums import AuditAction, AuditEntityType, FormulaStatus, UserRole
from battleboard.shared.exceptions import ConflictError, NotFoundError, ValidationError
from battleboard.shared.models import ScoringFormula

logger = logging.getLogger(__name__)

repo = FormulaRepository()
audit_repo = AuditRepository()


def _require_super_admin(actor) -> None:
    if actor.role != UserRole.SUPER_ADMIN.value:
        raise PermissionError("Seul un super administrateur peut modifier les formules.")


def _check(battle_type: str, metrics, start_key, end_key) -> None:
    errors = validate_formula(battle_type, metrics, start_key, end_key)
    if errors:
        raise ValidationError(" ".join(errors))


class FormulaService:

    # ── Lecture ───────────────────────────────────────────────

    async def list_formulas(
        self, db: AsyncSession, battle_type: Optional[str] = None, status: Optional[str] = None
    ) -> List:
        return await repo.list(db, battle_type=battle_type, status=status)

    async def get_active(
        self, db: AsyncSession, battle_type: str, week_key: Optional[str] = None
    ) -> Optional[ScoringFormula]:
        """
        Formule active ou None (aucune formule configurée : état normal).
        Appelé une seule fois par requête de classement.
        """
        week_key = week_key or iso_week_key(date.today())
        if not is_valid_week_key(week_key):
            raise ValidationError(f"Clé de semaine invalide : {week_key}")
        candidates = await repo.published_for(db, battle_type)
        formula = select_active_formula(candidates, battle_type, week_key)
        if formula is None:
            logger.warning("no active formula for battle_type=%s week=%s", battle_type, week_key)
        return formula

    # ── Brouillons ────────────────────────────────────────────

    async def create_draft(self, db: AsyncSession, payload, actor) -> ScoringFormula:
        reason = require_reason(payload.reason)
        _require_super_admin(actor)

        battle_type = payload.battle_type.value
        metrics = [m.model_dump() for m in payload.metrics]
        _check(battle_type, metrics, payload.effective_start_week_key, payload.effective_end_week_key)

        formula = ScoringFormula(
            name=payload.name,
            battle_type=battle_type,
            status=FormulaStatus.DRAFT.value,
            effective_start_week_key=payload.effective_start_week_key,
            effective_end_week_key=payload.effective_end_week_key,
            config={"metrics": normalized_metrics(metrics)},
            version=1,
            created_by=actor.user_id,
        )
        await repo.add(db, formula)
        audit_repo.add(
            db,
            entity_type=AuditEntityType.SCORING_FORMULA.value,
            entity_id=formula.id,
            action=AuditAction.CREATE.value,
            reason=reason,
            actor_id=actor.user_id,
            before=None,
            after=snapshot(formula),
        )
        await db.commit()
        await db.refresh(formula)
        logger.info("scoring_formula %s created (%s) by %s", formula.id, battle_type, actor.user_id)
        return formula

    async def update_draft(self, db: AsyncSession, formula_id: int, payload, actor) -> ScoringFormula:
        reason = require_reason(payload.reason)
        _require_super_admin(actor)

        formula = await self._get_draft(db, formula_id, payload.expected_version)
        before = snapshot(formula)

        changes = payload.model_dump(exclude_unset=True, exclude={"reason", "expected_version", "metrics"})
        battle_type = changes.get("battle_type", formula.battle_type)
        battle_type = getattr(battle_type, "value", battle_type)
        start_key = changes.get("effective_start_week_key", formula.effective_start_week_key)
        end_key = changes.get("effective_end_week_key", formula.effective_end_week_key)
        metrics = (
            [m.model_dump() for m in payload.metrics]
            if payload.metrics is not None
            else (formula.config or {}).get("metrics", [])
        )
        _check(battle_type, metrics, start_key, end_key)

        if "name" in changes:
            formula.name = changes["name"]
        formula.battle_type = battle_type
        formula.effective_start_week_key = start_key
        formula.effective_end_week_key = end_key
        formula.config = {"metrics": normalized_metrics(metrics)}
        formula.version = (formula.version or 1) + 1

        audit_repo.add(
            db,
            entity_type=AuditEntityType.SCORING_FORMULA.value,
            entity_id=formula.id,
            action=AuditAction.UPDATE.value,
            reason=reason,
            actor_id=actor.user_id,
            before=before,
            after=snapshot(formula),
        )
        await db.commit()
        await db.refresh(formula)
        logger.info("scoring_formula %s updated to v%s by %s", formula.id, formula.version, actor.user_id)
        return formula

    # ── Publication (irréversible) ────────────────────────────

    async def publish(self, db: AsyncSession, formula_id: int, payload, actor) -> ScoringFormula:
        reason = require_reason(payload.reason)
        _require_super_admin(actor)

        formula = await self._get_draft(db, formula_id, payload.expected_version)
        _check(
            formula.battle_type,
            (formula.config or {}).get("metrics", []),
            formula.effective_start_week_key,
            formula.effective_end_week_key,
        )

        before = snapshot(formula)
        formula.status = FormulaStatus.PUBLISHED.value
        formula.published_at = datetime.now(timezone.utc)
        formula.published_by = actor.user_id

        audit_repo.add(
            db,
            entity_type=AuditEntityType.SCORING_FORMULA.value,
            entity_id=formula.id,
            action=AuditAction.PUBLISH.value,
            reason=reason,
            actor_id=actor.user_id,
            before=before,
            after=snapshot(formula),
        )
        await db.commit()
        await db.refresh(formula)
        logger.info("scoring_formula %s published by %s", formula.id, actor.user_id)
        return formula

    async def _get_draft(
        self, db: AsyncSession, formula_id: int, expected_version: Optional[int]
    ) -> ScoringFormula:
        formula = await repo.get(db, formula_id)
        if formula is None:
            raise NotFoundError(f"Formule {formula_id} introuvable.")
        if formula.status == FormulaStatus.PUBLISHED.value:
            raise ConflictError(f"La formule {formula_id} est publiée et ne peut plus être modifiée.")
        if expected_version is not None and formula.version != expected_version:
            raise ConflictError(
                f"La formule {formula_id} a été modifiée entre-temps "
                f"(version {formula.version}, attendue {expected_version})."
            )
        return formula
