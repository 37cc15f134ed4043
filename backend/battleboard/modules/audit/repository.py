# modules/audit/repository.py
"""
Accès DB pour le journal d'audit (append-only).

add() n'effectue PAS de commit : l'appelant ajoute la mutation et son
entrée d'audit dans la même session puis commit une seule fois.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.shared.models import AuditEntry


class AuditRepository:

    def add(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        entity_id: Any,
        action: str,
        reason: str,
        actor_id: Optional[str],
        before: Optional[Dict] = None,
        after: Optional[Dict] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            reason=reason,
            actor_id=actor_id,
            before=before,
            after=after,
        )
        db.add(entry)
        return entry

    async def list(
        self,
        db: AsyncSession,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        actor_id: Optional[str] = None,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        limit: int = 200,
        offset: int = 0,
    ) -> Tuple[List[AuditEntry], int]:
        conditions = []
        if entity_type:
            conditions.append(AuditEntry.entity_type == entity_type)
        if entity_id:
            conditions.append(AuditEntry.entity_id == entity_id)
        if action:
            conditions.append(AuditEntry.action == action)
        if actor_id:
            conditions.append(AuditEntry.actor_id == actor_id)
        if from_ts:
            conditions.append(AuditEntry.created_at >= from_ts)
        if to_ts:
            conditions.append(AuditEntry.created_at <= to_ts)

        total = await db.execute(select(func.count(AuditEntry.id)).where(*conditions))
        r = await db.execute(
            select(AuditEntry)
            .where(*conditions)
            .order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return r.scalars().all(), total.scalar_one()
