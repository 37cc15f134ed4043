# modules/records/router.py
"""
Enregistrements journaliers : consultation, import, édition, void / unvoid,
approbation de paire (super_admin).

Règle : zéro logique métier ici. Tout passe par RecordService.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from battleboard.shared.deps import DbDep, AdminDep, SuperAdminDep
from battleboard.shared.enums import RecordSource
from battleboard.shared.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    WeekFinalizedError,
)
from battleboard.modules.records.service import RecordService
from battleboard.modules.records.schemas import (
    DailyRecordOut,
    ImportIn,
    ImportResultOut,
    PairApprovalIn,
    RecordEditIn,
    RecordReasonIn,
)

router = APIRouter(prefix="/records", tags=["Records"])
service = RecordService()

_MUTATION_ERRORS = (ValidationError, NotFoundError, ConflictError, PermissionError)


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, WeekFinalizedError):
        return HTTPException(status.HTTP_423_LOCKED, str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status.HTTP_409_CONFLICT, str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status.HTTP_403_FORBIDDEN, str(e))
    return HTTPException(status.HTTP_400_BAD_REQUEST, str(e))


# ─────────────────────────────────────────────
# LECTURE
# ─────────────────────────────────────────────

@router.get("", response_model=List[DailyRecordOut], summary="Enregistrements filtrés")
async def list_records(
    db: DbDep,
    admin: AdminDep,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    participant_id: Optional[str] = None,
    source: Optional[RecordSource] = None,
    include_voided: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return await service.list_records(
        db,
        date_from=date_from,
        date_to=date_to,
        participant_id=participant_id,
        source=source.value if source else None,
        include_voided=include_voided,
        limit=limit,
        offset=offset,
    )


@router.get("/{record_id}", response_model=DailyRecordOut, summary="Détail d'un enregistrement")
async def get_record(record_id: int, db: DbDep, admin: AdminDep):
    try:
        return await service.get(db, record_id)
    except NotFoundError as e:
        raise _to_http(e)


# ─────────────────────────────────────────────
# IMPORT
# ─────────────────────────────────────────────

@router.post("/import", response_model=ImportResultOut, summary="Importer des lignes pré-parsées")
async def import_records(payload: ImportIn, db: DbDep, actor: AdminDep):
    """
    Pré-validation (résolution des noms, dépôts, doublons) puis upsert
    sur (date, participant, source). Les lignes invalides sont rapportées,
    jamais écrites.
    """
    try:
        return await service.import_rows(db, payload, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)


# ─────────────────────────────────────────────
# APPROBATION DE PAIRE (super_admin)
# ─────────────────────────────────────────────

@router.post("/approve", response_model=DailyRecordOut, summary="Approuver une paire")
async def approve_pair(payload: PairApprovalIn, db: DbDep, actor: SuperAdminDep):
    try:
        return await service.set_approval(db, payload, True, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)


@router.post("/unapprove", response_model=DailyRecordOut, summary="Retirer l'approbation d'une paire")
async def unapprove_pair(payload: PairApprovalIn, db: DbDep, actor: SuperAdminDep):
    try:
        return await service.set_approval(db, payload, False, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)


# ─────────────────────────────────────────────
# MUTATIONS UNITAIRES
# ─────────────────────────────────────────────

@router.patch("/{record_id}", response_model=DailyRecordOut, summary="Modifier métriques / dépôts")
async def edit_record(record_id: int, payload: RecordEditIn, db: DbDep, actor: AdminDep):
    try:
        return await service.edit(db, record_id, payload, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)


@router.post("/{record_id}/void", response_model=DailyRecordOut, summary="Annuler (soft delete)")
async def void_record(record_id: int, payload: RecordReasonIn, db: DbDep, actor: AdminDep):
    try:
        return await service.void(db, record_id, payload, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)


@router.post("/{record_id}/unvoid", response_model=DailyRecordOut, summary="Restaurer un enregistrement annulé")
async def unvoid_record(record_id: int, payload: RecordReasonIn, db: DbDep, actor: AdminDep):
    try:
        return await service.unvoid(db, record_id, payload, actor)
    except _MUTATION_ERRORS as e:
        raise _to_http(e)
