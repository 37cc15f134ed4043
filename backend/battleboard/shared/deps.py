# battleboard/shared/deps.py
"""
Dépendances FastAPI réutilisables dans tous les routers.
Injectées via Depends() — jamais appelées directement.

L'identité vient du JWT (session store externe), le rôle de la table profiles.
Pas de ligne profile → rôle admin (comportement historique de la console).
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.core.database import get_db
from battleboard.core.security import decode_token
from battleboard.shared.enums import UserRole
from battleboard.shared.models import Profile

bearer = HTTPBearer()

ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value)


async def _get_profile_from_token(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token invalide ou expiré",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    result = await db.execute(select(Profile).where(Profile.user_id == str(user_id)))
    profile = result.scalar_one_or_none()

    if not profile:
        # Objet transitoire, jamais ajouté à la session
        profile = Profile(user_id=str(user_id), email=payload.get("email"), role=UserRole.ADMIN.value)
    return profile


# ── Deps publiques ─────────────────────────────────────────

async def get_current_profile(
    profile: Annotated[Profile, Depends(_get_profile_from_token)],
) -> Profile:
    """Utilisateur authentifié (tout rôle)."""
    return profile


async def get_current_admin(
    profile: Annotated[Profile, Depends(_get_profile_from_token)],
) -> Profile:
    """Exige admin ou super_admin."""
    if profile.role not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Accès administrateur requis")
    return profile


async def get_current_super_admin(
    profile: Annotated[Profile, Depends(_get_profile_from_token)],
) -> Profile:
    """Exige le rôle super_admin."""
    if profile.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(status_code=403, detail="Accès super administrateur requis")
    return profile


# ── Type aliases pour les routers ─────────────────────────
DbDep         = Annotated[AsyncSession, Depends(get_db)]
ProfileDep    = Annotated[Profile, Depends(get_current_profile)]
AdminDep      = Annotated[Profile, Depends(get_current_admin)]
SuperAdminDep = Annotated[Profile, Depends(get_current_super_admin)]
