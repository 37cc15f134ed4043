# battleboard/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from battleboard.shared.models import DailyRecord, ScoringFormula, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all).
"""

from battleboard.shared.models.Profile   import Profile
from battleboard.shared.models.Directory import Depot, Company, Platoon, Participant
from battleboard.shared.models.Record    import DailyRecord
from battleboard.shared.models.Formula   import ScoringFormula
from battleboard.shared.models.Audit     import AuditEntry
from battleboard.shared.models.Week      import FinalizedWeek

__all__ = [
    # Identité
    "Profile",
    # Référentiel
    "Depot", "Company", "Platoon", "Participant",
    # Données journalières
    "DailyRecord",
    # Scoring
    "ScoringFormula",
    # Audit + verrou hebdo
    "AuditEntry",
    "FinalizedWeek",
]
