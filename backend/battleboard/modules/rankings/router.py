# modules/rankings/router.py
"""
Classements.
  GET /rankings    — tableau de bord admin (enregistrements company non annulés)
  GET /leaderboard — public, sans authentification (paires publishable uniquement)
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from battleboard.shared.deps import DbDep, AdminDep
from battleboard.shared.enums import ParticipantRole, RankingMode
from battleboard.shared.exceptions import ValidationError
from battleboard.modules.rankings.service import RankingService
from battleboard.modules.rankings.schemas import RankingOut

router = APIRouter(tags=["Rankings"])
service = RankingService()


@router.get("/rankings", response_model=RankingOut, summary="Classement (admin)")
async def get_rankings(
    db: DbDep,
    admin: AdminDep,
    date_from: date,
    date_to: date,
    mode: RankingMode = RankingMode.LEADERS,
    role: Optional[ParticipantRole] = None,
    week_key: Optional[str] = None,
):
    try:
        return await service.dashboard(
            db, mode.value, date_from, date_to,
            role_filter=role.value if role else None,
            week_key=week_key,
        )
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))


@router.get("/leaderboard", response_model=RankingOut, summary="Leaderboard public")
async def get_leaderboard(
    db: DbDep,
    date_from: date,
    date_to: date,
    mode: RankingMode = RankingMode.LEADERS,
    role: Optional[ParticipantRole] = None,
    week_key: Optional[str] = None,
):
    try:
        return await service.leaderboard(
            db, mode.value, date_from, date_to,
            role_filter=role.value if role else None,
            week_key=week_key,
        )
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))
