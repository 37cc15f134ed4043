# modules/finalization/router.py
"""
Verrou hebdomadaire : consultation (admin), finalize / reopen (super_admin).

Règle : zéro logique métier ici. Tout passe par FinalizationService.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from battleboard.shared.deps import DbDep, AdminDep, SuperAdminDep
from battleboard.shared.exceptions import ConflictError, ValidationError
from battleboard.modules.finalization.service import FinalizationService
from battleboard.modules.finalization.schemas import WeekActionIn, WeekOut

router = APIRouter(prefix="/weeks", tags=["Finalization"])
service = FinalizationService()


@router.get("/status", response_model=WeekOut, summary="État de la semaine contenant une date")
async def get_week_status(
    db: DbDep,
    admin: AdminDep,
    day: Optional[date] = Query(None, alias="date"),
):
    return await service.get_status(db, day)


@router.get("/recent", response_model=List[WeekOut], summary="Semaines récentes")
async def list_recent_weeks(
    db: DbDep,
    admin: AdminDep,
    limit: int = Query(10, ge=1, le=100),
):
    return await service.list_recent(db, limit=limit)


async def _run(action, db, payload: WeekActionIn, actor):
    try:
        return await action(db, payload.date, payload.reason, actor)
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))
    except PermissionError as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, str(e))
    except ConflictError as e:
        raise HTTPException(status.HTTP_409_CONFLICT, str(e))


@router.post("/finalize", response_model=WeekOut, summary="Finaliser une semaine")
async def finalize_week(payload: WeekActionIn, db: DbDep, actor: SuperAdminDep):
    return await _run(service.finalize, db, payload, actor)


@router.post("/reopen", response_model=WeekOut, summary="Rouvrir une semaine finalisée")
async def reopen_week(payload: WeekActionIn, db: DbDep, actor: SuperAdminDep):
    return await _run(service.reopen, db, payload, actor)
