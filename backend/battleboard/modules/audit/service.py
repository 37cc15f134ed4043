# modules/audit/service.py
"""
Journal d'audit : consultation + helpers partagés par les services mutateurs.

require_reason() est appelé AVANT toute tentative de mutation :
pas de raison valide → aucune écriture.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.core.config import settings
from battleboard.modules.audit.repository import AuditRepository
from battleboard.shared.exceptions import ValidationError

repo = AuditRepository()


def require_reason(reason: Optional[str]) -> str:
    cleaned = (reason or "").strip()
    if len(cleaned) < settings.MIN_REASON_LENGTH:
        raise ValidationError(
            f"Une raison d'au moins {settings.MIN_REASON_LENGTH} caractères est requise."
        )
    return cleaned


def _json_safe(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(obj: Any) -> Optional[Dict[str, Any]]:
    """
    État sérialisable d'une ligne ORM (colonnes uniquement) pour before/after.
    Les attributs expirés (valeurs serveur pas encore relues) sont omis.
    """
    if obj is None:
        return None
    table = getattr(obj, "__table__", None)
    if table is not None:
        unloaded = inspect(obj).unloaded
        return {
            c.key: _json_safe(getattr(obj, c.key, None))
            for c in table.columns
            if c.key not in unloaded
        }
    return {k: _json_safe(v) for k, v in vars(obj).items() if not k.startswith("_")}


class AuditService:

    async def list_entries(
        self,
        db: AsyncSession,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        actor_id: Optional[str] = None,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Dict:
        if from_ts and to_ts and from_ts > to_ts:
            raise ValidationError("from_ts doit précéder to_ts.")
        items, total = await repo.list(
            db,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            from_ts=from_ts,
            to_ts=to_ts,
            limit=limit or settings.DEFAULT_LIST_LIMIT,
            offset=offset,
        )
        return {"items": items, "total": total, "limit": limit or settings.DEFAULT_LIST_LIMIT, "offset": offset}
