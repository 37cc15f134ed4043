# modules/records/service.py
"""
Orchestration des enregistrements journaliers.

Mutations (admin / super_admin) :
  - import     : pré-validation engine → upsert sur (date, participant, source)
  - edit       : métriques / dépôts, UPDATE conditionnel sur la version
  - void/unvoid: soft delete réversible
  - approve    : super_admin, ligne company d'une paire (date, participant)

Chaque mutation : raison vérifiée AVANT toute écriture, semaine ouverte,
une entrée d'audit par enregistrement modifié, un seul commit.
"""
import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.core.config import settings
from battleboard.engine.records.normalize import flag_conflicts, merge_rows, validate_rows
from battleboard.engine.scoring.evaluator import to_number
from battleboard.engine.scoring.weeks import iso_week_key
from battleboard.modules.audit.repository import AuditRepository
from battleboard.modules.audit.service import require_reason, snapshot
from battleboard.modules.directory.repository import DirectoryRepository
from battleboard.modules.finalization.repository import WeekRepository
from battleboard.modules.records.repository import RecordRepository, record_key
from battleboard.shared.enums import AuditAction, AuditEntityType, RecordSource, UserRole
from battleboard.shared.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    WeekFinalizedError,
)
from battleboard.shared.models import DailyRecord

logger = logging.getLogger(__name__)

repo = RecordRepository()
audit_repo = AuditRepository()
directory_repo = DirectoryRepository()
week_repo = WeekRepository()

EDITABLE_FIELDS = ("leads", "payins", "sales", "leads_depot_id", "sales_depot_id")
METRIC_FIELDS = ("leads", "payins", "sales")


def _require_super_admin(actor) -> None:
    if actor.role != UserRole.SUPER_ADMIN.value:
        raise PermissionError("Seul un super administrateur peut approuver un enregistrement.")


def _same_values(record: DailyRecord, values: Dict) -> bool:
    for name, value in values.items():
        current = getattr(record, name)
        if name in METRIC_FIELDS:
            if to_number(current) != to_number(value):
                return False
        elif current != value:
            return False
    return True


class RecordService:

    # ── Lecture ───────────────────────────────────────────────

    async def list_records(
        self,
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        participant_id: Optional[str] = None,
        source: Optional[str] = None,
        include_voided: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List:
        return await repo.list(
            db,
            date_from=date_from,
            date_to=date_to,
            participant_id=participant_id,
            source=source,
            include_voided=include_voided,
            limit=limit or settings.DEFAULT_LIST_LIMIT,
            offset=offset,
        )

    async def get(self, db: AsyncSession, record_id: int) -> DailyRecord:
        record = await repo.get(db, record_id)
        if record is None:
            raise NotFoundError(f"Enregistrement {record_id} introuvable.")
        return record

    # ── Garde-fous ────────────────────────────────────────────

    async def _ensure_week_open(self, db: AsyncSession, day: date) -> None:
        week_key = iso_week_key(day)
        if await week_repo.finalized_keys(db, [week_key]):
            raise WeekFinalizedError(week_key)

    async def _apply(
        self, db: AsyncSession, record: DailyRecord, expected_version: int,
        values: Dict, action: AuditAction, reason: str, actor,
    ) -> DailyRecord:
        """UPDATE versionné + entrée d'audit + commit unique."""
        before = snapshot(record)
        if not await repo.update_versioned(db, record.id, expected_version, values):
            raise ConflictError(
                f"L'enregistrement {record.id} a été modifié entre-temps "
                f"(version attendue {expected_version}). Rechargez avant de réessayer."
            )
        after = {**before, **snapshot_values(values), "version": expected_version + 1}
        audit_repo.add(
            db,
            entity_type=AuditEntityType.DAILY_RECORD.value,
            entity_id=record.id,
            action=action.value,
            reason=reason,
            actor_id=actor.user_id,
            before=before,
            after=after,
        )
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "Un autre enregistrement actif existe déjà pour cette date, ce participant et cette source."
            )
        await db.refresh(record)
        logger.info("daily_record %s %s by %s", record.id, action.value, actor.user_id)
        return record

    # ── Mutations unitaires ───────────────────────────────────

    async def edit(self, db: AsyncSession, record_id: int, payload, actor) -> DailyRecord:
        reason = require_reason(payload.reason)
        values = payload.model_dump(exclude_unset=True, include=set(EDITABLE_FIELDS))
        if not values:
            raise ValidationError("Aucune modification demandée.")

        record = await self.get(db, record_id)
        if record.voided:
            raise ConflictError("Un enregistrement annulé ne peut pas être modifié. Restaurez-le d'abord.")
        await self._ensure_week_open(db, record.date)
        await self._check_depots(db, values)
        if _same_values(record, values):
            raise ValidationError("Les valeurs fournies sont identiques aux valeurs actuelles.")

        return await self._apply(db, record, payload.expected_version, values, AuditAction.EDIT, reason, actor)

    async def void(self, db: AsyncSession, record_id: int, payload, actor) -> DailyRecord:
        reason = require_reason(payload.reason)
        record = await self.get(db, record_id)
        if record.voided:
            raise ConflictError(f"L'enregistrement {record_id} est déjà annulé.")
        await self._ensure_week_open(db, record.date)

        values = {
            "voided": True,
            "void_reason": reason,
            "voided_at": datetime.now(timezone.utc),
            "voided_by": actor.user_id,
        }
        return await self._apply(db, record, payload.expected_version, values, AuditAction.VOID, reason, actor)

    async def unvoid(self, db: AsyncSession, record_id: int, payload, actor) -> DailyRecord:
        reason = require_reason(payload.reason)
        record = await self.get(db, record_id)
        if not record.voided:
            raise ConflictError(f"L'enregistrement {record_id} n'est pas annulé.")
        await self._ensure_week_open(db, record.date)

        if await repo.get_active(db, record.date, record.participant_id, record.source):
            raise ConflictError(
                "Impossible de restaurer : un enregistrement actif existe déjà "
                "pour cette date, ce participant et cette source."
            )
        values = {"voided": False, "void_reason": None, "voided_at": None, "voided_by": None}
        return await self._apply(db, record, payload.expected_version, values, AuditAction.UNVOID, reason, actor)

    async def set_approval(self, db: AsyncSession, payload, approved: bool, actor) -> DailyRecord:
        """
        Approuve / désapprouve la ligne company d'une paire.
        Le Reconciler recalcule publishable au prochain passage.
        """
        reason = require_reason(payload.reason)
        _require_super_admin(actor)

        record = await repo.get_active(db, payload.date, payload.participant_id, RecordSource.COMPANY.value)
        if record is None:
            raise NotFoundError(
                f"Aucun enregistrement company actif pour {payload.participant_id} le {payload.date}."
            )
        if bool(record.approved) == approved:
            state = "déjà approuvé" if approved else "n'est pas approuvé"
            raise ConflictError(f"L'enregistrement {record.id} {state}.")
        await self._ensure_week_open(db, record.date)

        values = {
            "approved": approved,
            "approved_at": datetime.now(timezone.utc) if approved else None,
            "approved_by": actor.user_id if approved else None,
        }
        expected = payload.expected_version if payload.expected_version is not None else record.version
        action = AuditAction.APPROVE if approved else AuditAction.UNAPPROVE
        return await self._apply(db, record, expected, values, action, reason, actor)

    async def _check_depots(self, db: AsyncSession, values: Dict) -> None:
        wanted = {values.get(k) for k in ("leads_depot_id", "sales_depot_id") if k in values}
        wanted.discard(None)
        if not wanted:
            return
        known = {d.id for d in await directory_repo.list_depots(db)}
        unknown = sorted(wanted - known)
        if unknown:
            raise ValidationError(f"Dépôt(s) inconnu(s) : {', '.join(unknown)}")

    # ── Import ────────────────────────────────────────────────

    async def import_rows(self, db: AsyncSession, payload, actor) -> Dict:
        reason = require_reason(payload.reason)

        participants = await directory_repo.list_participants(db)
        depots = await directory_repo.list_depots(db)
        companies = await directory_repo.list_companies(db)
        platoons = await directory_repo.list_platoons(db)

        default_source = getattr(payload.default_source, "value", payload.default_source)
        rows = validate_rows(
            [r.model_dump() for r in payload.rows],
            participants, depots, companies, platoons,
            default_source=default_source,
        )
        rows = flag_conflicts(merge_rows(rows))

        candidate_weeks = sorted({iso_week_key(r.date) for r in rows if r.valid})
        finalized = set(await week_repo.finalized_keys(db, candidate_weeks))
        for row in rows:
            if row.valid and iso_week_key(row.date) in finalized:
                row.errors.append(f"Semaine {iso_week_key(row.date)} finalisée")

        inserted = updated = unchanged = 0
        for row in rows:
            if not row.valid:
                continue
            values = {
                "leads": row.leads,
                "payins": row.payins,
                "sales": row.sales,
                "leads_depot_id": row.leads_depot_id,
                "sales_depot_id": row.sales_depot_id,
            }
            existing = await repo.get_active(db, row.date, row.participant_id, row.source)
            if existing is not None:
                if _same_values(existing, values):
                    unchanged += 1
                    continue
                before = snapshot(existing)
                for name, value in values.items():
                    setattr(existing, name, value)
                existing.version = (existing.version or 1) + 1
                target, updated = existing, updated + 1
            else:
                before = None
                target = await repo.add(db, DailyRecord(
                    record_key=record_key(row.date, row.participant_id),
                    participant_id=row.participant_id,
                    date=row.date,
                    source=row.source,
                    voided=False,
                    approved=False,
                    version=1,
                    **values,
                ))
                inserted += 1

            audit_repo.add(
                db,
                entity_type=AuditEntityType.DAILY_RECORD.value,
                entity_id=target.id,
                action=AuditAction.IMPORT.value,
                reason=reason,
                actor_id=actor.user_id,
                before=before,
                after=snapshot(target),
            )

        if inserted or updated:
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise ConflictError("Import concurrent détecté : réessayez l'import.")

        errors = [
            {
                "row_number": r.row_number,
                "leader_name": r.leader_name,
                "errors": r.errors,
                "suggestions": r.suggestions,
            }
            for r in rows if not r.valid
        ]
        if errors:
            logger.warning("import by %s: %d row(s) rejected", actor.user_id, len(errors))
        logger.info(
            "import by %s: inserted=%d updated=%d unchanged=%d",
            actor.user_id, inserted, updated, unchanged,
        )
        return {
            "inserted": inserted,
            "updated": updated,
            "unchanged": unchanged,
            "merged": sum(1 for r in rows if r.merge_count > 1),
            "errors": errors,
        }


def snapshot_values(values: Dict) -> Dict:
    """Valeurs d'un UPDATE rendues sérialisables pour l'audit."""
    return {
        k: v.isoformat() if isinstance(v, (datetime, date)) else v
        for k, v in values.items()
    }
