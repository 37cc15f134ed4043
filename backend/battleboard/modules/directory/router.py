# modules/directory/router.py
"""
Référentiels en lecture seule pour la console d'administration.
"""
from typing import List

from fastapi import APIRouter

from battleboard.shared.deps import DbDep, AdminDep
from battleboard.modules.directory.service import DirectoryService
from battleboard.modules.directory.schemas import EntityOut, ParticipantOut

router = APIRouter(prefix="/directory", tags=["Directory"])
service = DirectoryService()


@router.get("/depots", response_model=List[EntityOut], summary="Dépôts")
async def list_depots(db: DbDep, admin: AdminDep):
    return await service.depots(db)


@router.get("/companies", response_model=List[EntityOut], summary="Companies (commanders)")
async def list_companies(db: DbDep, admin: AdminDep):
    return await service.companies(db)


@router.get("/platoons", response_model=List[EntityOut], summary="Platoons (teams)")
async def list_platoons(db: DbDep, admin: AdminDep):
    return await service.platoons(db)


@router.get("/participants", response_model=List[ParticipantOut], summary="Participants (leaders)")
async def list_participants(db: DbDep, admin: AdminDep):
    return await service.participants(db)
