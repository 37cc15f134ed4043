# battleboard/shared/enums.py
"""
Toutes les énumérations du projet.

Source unique de vérité pour les statuts, rôles et types.
Importé par les modèles, schemas, services et engine.
"""

from enum import Enum


class UserRole(str, Enum):
    USER        = "user"
    ADMIN       = "admin"
    SUPER_ADMIN = "super_admin"   # Seul rôle autorisé à approuver / publier / finaliser


class RecordSource(str, Enum):
    COMPANY = "company"
    DEPOT   = "depot"


class ParticipantRole(str, Enum):
    PLATOON = "platoon"
    SQUAD   = "squad"
    TEAM    = "team"


class MetricKey(str, Enum):
    LEADS  = "leads"
    PAYINS = "payins"
    SALES  = "sales"


class BattleType(str, Enum):
    LEADERS    = "leaders"
    PLATOONS   = "platoons"
    SQUADS     = "squads"
    TEAMS      = "teams"
    DEPOTS     = "depots"
    COMMANDERS = "commanders"
    COMPANIES  = "companies"


class RankingMode(str, Enum):
    LEADERS    = "leaders"
    DEPOTS     = "depots"
    COMMANDERS = "commanders"   # regroupement par company_id
    TEAMS      = "teams"        # regroupement par platoon_id
    PLATOON    = "platoon"      # regroupement par upline


class FormulaStatus(str, Enum):
    DRAFT     = "draft"
    PUBLISHED = "published"


class CompareStatus(str, Enum):
    MATCHED         = "matched"
    MISMATCH        = "mismatch"
    MISSING_DEPOT   = "missing_depot"
    MISSING_COMPANY = "missing_company"


class WeekStatus(str, Enum):
    OPEN      = "open"
    FINALIZED = "finalized"


class AuditEntityType(str, Enum):
    DAILY_RECORD    = "daily_record"
    SCORING_FORMULA = "scoring_formula"
    WEEK            = "week"


class AuditAction(str, Enum):
    IMPORT    = "import"
    EDIT      = "edit"
    VOID      = "void"
    UNVOID    = "unvoid"
    APPROVE   = "approve"
    UNAPPROVE = "unapprove"
    CREATE    = "create"      # brouillon de formule
    UPDATE    = "update"      # édition de brouillon
    PUBLISH   = "publish"
    FINALIZE  = "finalize"
    REOPEN    = "reopen"
