# battleboard/core/security.py
"""
Vérification des JWT émis par le session store externe.
Aucune émission de token ici : l'authentification n'est pas notre rôle.
"""
from typing import Any, Dict

from jose import jwt

from battleboard.core.config import settings


def decode_token(token: str) -> Dict[str, Any]:
    """Lève jose.JWTError si la signature, l'expiration ou l'audience est invalide."""
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        options=options,
    )
