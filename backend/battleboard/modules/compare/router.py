# modules/compare/router.py
"""
Rapprochement company ↔ dépôt (admin).
Les approbations se font via /records/approve (super_admin).
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from battleboard.shared.deps import DbDep, AdminDep
from battleboard.shared.enums import CompareStatus
from battleboard.shared.exceptions import ValidationError
from battleboard.modules.compare.service import CompareService
from battleboard.modules.compare.schemas import CompareListOut

router = APIRouter(prefix="/compare", tags=["Compare"])
service = CompareService()


@router.get("", response_model=CompareListOut, summary="Paires company / dépôt classées")
async def list_compare_rows(
    db: DbDep,
    admin: AdminDep,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    participant_id: Optional[str] = None,
    row_status: Optional[CompareStatus] = Query(None, alias="status"),
):
    try:
        rows = await service.list_rows(
            db,
            date_from=date_from,
            date_to=date_to,
            participant_id=participant_id,
            status=row_status.value if row_status else None,
        )
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))
    return {"rows": rows}
