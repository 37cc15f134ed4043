# modules/formulas/router.py
"""
Formules de scoring.
Lecture : admin (toutes) / public (formule active).
Écriture : super_admin, raison obligatoire, chaque action auditée.

Règle : zéro logique métier ici. Tout passe par FormulaService.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from battleboard.engine.scoring.weeks import iso_week_key
from battleboard.shared.deps import DbDep, AdminDep, SuperAdminDep
from battleboard.shared.enums import BattleType, FormulaStatus
from battleboard.shared.exceptions import ConflictError, NotFoundError, ValidationError
from battleboard.modules.formulas.service import FormulaService
from battleboard.modules.formulas.schemas import (
    ActiveFormulaOut,
    FormulaCreateIn,
    FormulaOut,
    FormulaPublishIn,
    FormulaUpdateIn,
)

router = APIRouter(prefix="/formulas", tags=["Formulas"])
service = FormulaService()


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status.HTTP_409_CONFLICT, str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status.HTTP_403_FORBIDDEN, str(e))
    return HTTPException(status.HTTP_400_BAD_REQUEST, str(e))


# ── Lecture ─────────────────────────────────────────────────

@router.get("", response_model=List[FormulaOut], summary="Toutes les formules")
async def list_formulas(
    db: DbDep,
    admin: AdminDep,
    battle_type: Optional[BattleType] = None,
    formula_status: Optional[FormulaStatus] = Query(None, alias="status"),
):
    return await service.list_formulas(
        db,
        battle_type=battle_type.value if battle_type else None,
        status=formula_status.value if formula_status else None,
    )


@router.get("/active", response_model=ActiveFormulaOut, summary="Formule active (public)")
async def get_active_formula(
    db: DbDep,
    battle_type: BattleType,
    week_key: Optional[str] = None,
):
    week_key = week_key or iso_week_key(date.today())
    try:
        formula = await service.get_active(db, battle_type.value, week_key)
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))
    return {
        "battle_type": battle_type.value,
        "week_key": week_key,
        "missing": formula is None,
        "formula": formula,
    }


# ── Écriture (super_admin) ──────────────────────────────────

@router.post(
    "",
    response_model=FormulaOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un brouillon",
)
async def create_draft(payload: FormulaCreateIn, db: DbDep, actor: SuperAdminDep):
    try:
        return await service.create_draft(db, payload, actor)
    except (ValidationError, PermissionError) as e:
        raise _to_http(e)


@router.patch("/{formula_id}", response_model=FormulaOut, summary="Modifier un brouillon")
async def update_draft(formula_id: int, payload: FormulaUpdateIn, db: DbDep, actor: SuperAdminDep):
    try:
        return await service.update_draft(db, formula_id, payload, actor)
    except (ValidationError, NotFoundError, ConflictError, PermissionError) as e:
        raise _to_http(e)


@router.post("/{formula_id}/publish", response_model=FormulaOut, summary="Publier (irréversible)")
async def publish_formula(formula_id: int, payload: FormulaPublishIn, db: DbDep, actor: SuperAdminDep):
    try:
        return await service.publish(db, formula_id, payload, actor)
    except (ValidationError, NotFoundError, ConflictError, PermissionError) as e:
        raise _to_http(e)
