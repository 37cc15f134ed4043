# modules/audit/router.py
"""
Consultation du journal d'audit (admin).
Le journal n'est jamais écrit depuis ce router : les entrées naissent
dans les services mutateurs (records, formulas, finalization).
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from battleboard.shared.deps import DbDep, AdminDep
from battleboard.shared.enums import AuditEntityType, AuditAction
from battleboard.shared.exceptions import ValidationError
from battleboard.modules.audit.service import AuditService
from battleboard.modules.audit.schemas import AuditPageOut

router = APIRouter(prefix="/audit", tags=["Audit"])
service = AuditService()


@router.get(
    "",
    response_model=AuditPageOut,
    summary="Journal d'audit filtré (plus récent en premier)",
)
async def list_audit_entries(
    db: DbDep,
    admin: AdminDep,
    entity_type: Optional[AuditEntityType] = None,
    entity_id: Optional[str] = None,
    action: Optional[AuditAction] = None,
    actor_id: Optional[str] = None,
    from_ts: Optional[datetime] = None,
    to_ts: Optional[datetime] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    try:
        return await service.list_entries(
            db,
            entity_type=entity_type.value if entity_type else None,
            entity_id=entity_id,
            action=action.value if action else None,
            actor_id=actor_id,
            from_ts=from_ts,
            to_ts=to_ts,
            limit=limit,
            offset=offset,
        )
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))
