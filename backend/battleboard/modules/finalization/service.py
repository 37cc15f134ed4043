# modules/finalization/service.py
"""
Finalisation hebdomadaire : état par date, semaines récentes, finalize / reopen.

Une semaine sans ligne est ouverte. Finaliser efface les métadonnées de
réouverture ; rouvrir conserve l'historique de finalisation.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.engine.scoring.weeks import iso_week_key, week_range
from battleboard.modules.audit.repository import AuditRepository
from battleboard.modules.audit.service import require_reason, snapshot
from battleboard.modules.finalization.repository import WeekRepository
from battleboard.shared.enums import AuditAction, AuditEntityType, UserRole, WeekStatus
from battleboard.shared.exceptions import ConflictError

logger = logging.getLogger(__name__)

repo = WeekRepository()
audit_repo = AuditRepository()


def _require_super_admin(actor) -> None:
    if actor.role != UserRole.SUPER_ADMIN.value:
        raise PermissionError("Seul un super administrateur peut finaliser ou rouvrir une semaine.")


class FinalizationService:

    # ── Lecture ───────────────────────────────────────────────

    async def get_status(self, db: AsyncSession, day: Optional[date] = None):
        day = day or date.today()
        week_key = iso_week_key(day)
        week = await repo.get(db, week_key)
        if week is not None:
            return week
        start, end = week_range(day)
        return {
            "week_key": week_key,
            "start_date": start,
            "end_date": end,
            "status": WeekStatus.OPEN.value,
        }

    async def list_recent(self, db: AsyncSession, limit: int = 10) -> List:
        return await repo.list_recent(db, limit=limit)

    # ── Mutations (super_admin) ───────────────────────────────

    async def finalize(self, db: AsyncSession, day: date, reason: str, actor):
        reason = require_reason(reason)
        _require_super_admin(actor)

        start, end = week_range(day)
        week = await repo.get_or_create(db, iso_week_key(day), start, end)
        if week.status == WeekStatus.FINALIZED.value:
            raise ConflictError(f"La semaine {week.week_key} est déjà finalisée.")

        before = snapshot(week)
        week.status = WeekStatus.FINALIZED.value
        week.finalized_at = datetime.now(timezone.utc)
        week.finalized_by = actor.user_id
        week.finalize_reason = reason
        week.reopened_at = None
        week.reopened_by = None
        week.reopen_reason = None

        audit_repo.add(
            db,
            entity_type=AuditEntityType.WEEK.value,
            entity_id=week.week_key,
            action=AuditAction.FINALIZE.value,
            reason=reason,
            actor_id=actor.user_id,
            before=before,
            after=snapshot(week),
        )
        await db.commit()
        await db.refresh(week)
        logger.info("week %s finalized by %s", week.week_key, actor.user_id)
        return week

    async def reopen(self, db: AsyncSession, day: date, reason: str, actor):
        reason = require_reason(reason)
        _require_super_admin(actor)

        week = await repo.get(db, iso_week_key(day))
        if week is None or week.status != WeekStatus.FINALIZED.value:
            raise ConflictError(f"La semaine {iso_week_key(day)} n'est pas finalisée.")

        before = snapshot(week)
        week.status = WeekStatus.OPEN.value
        week.reopened_at = datetime.now(timezone.utc)
        week.reopened_by = actor.user_id
        week.reopen_reason = reason

        audit_repo.add(
            db,
            entity_type=AuditEntityType.WEEK.value,
            entity_id=week.week_key,
            action=AuditAction.REOPEN.value,
            reason=reason,
            actor_id=actor.user_id,
            before=before,
            after=snapshot(week),
        )
        await db.commit()
        await db.refresh(week)
        logger.info("week %s reopened by %s", week.week_key, actor.user_id)
        return week
