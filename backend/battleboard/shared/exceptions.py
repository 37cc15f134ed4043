# battleboard/shared/exceptions.py
"""
Taxonomie d'erreurs métier.

Les services lèvent ces exceptions (ou PermissionError pour les rôles),
les routers les traduisent en HTTPException. Les erreurs du record store
(SQLAlchemyError) ne sont jamais enveloppées : elles remontent telles quelles.
"""


class ValidationError(ValueError):
    """Erreur corrigeable par l'appelant (raison trop courte, formule invalide…)."""


class NotFoundError(LookupError):
    """L'entité ciblée par une mutation n'existe pas."""


class ConflictError(Exception):
    """Version obsolète, unicité violée ou transition d'état interdite."""


class WeekFinalizedError(ConflictError):
    """Mutation d'un enregistrement daté dans une semaine finalisée."""

    def __init__(self, week_key: str):
        self.week_key = week_key
        super().__init__(
            f"La semaine {week_key} est finalisée. Rouvrez-la avant toute modification."
        )
