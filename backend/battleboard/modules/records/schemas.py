# modules/records/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime

from battleboard.shared.enums import RecordSource


# ── Lecture ────────────────────────────────────────────────

class DailyRecordOut(BaseModel):
    id: int
    record_key: str
    participant_id: Optional[str] = None
    date: date
    source: str
    leads: int
    payins: int
    sales: float
    leads_depot_id: Optional[str] = None
    sales_depot_id: Optional[str] = None
    voided: bool
    void_reason: Optional[str] = None
    voided_at: Optional[datetime] = None
    voided_by: Optional[str] = None
    approved: bool
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ── Mutations unitaires ────────────────────────────────────

class RecordEditIn(BaseModel):
    """Métriques et/ou dépôts. Seuls les champs fournis sont modifiés."""
    leads: Optional[int] = Field(None, ge=0)
    payins: Optional[int] = Field(None, ge=0)
    sales: Optional[float] = Field(None, ge=0)
    leads_depot_id: Optional[str] = None
    sales_depot_id: Optional[str] = None
    expected_version: int = Field(..., description="Version lue par le client (contrôle optimiste)")
    reason: str


class RecordReasonIn(BaseModel):
    reason: str
    expected_version: int


class PairApprovalIn(BaseModel):
    """Cible la ligne company non annulée d'une paire (date, participant)."""
    date: date
    participant_id: str
    reason: str
    expected_version: Optional[int] = None


# ── Import ─────────────────────────────────────────────────

class ImportRowIn(BaseModel):
    """Ligne déjà parsée par le collaborateur tableur."""
    row_number: Optional[int] = None
    date: Optional[str] = None
    participant_id: Optional[str] = None
    leader_name: Optional[str] = None
    source: Optional[RecordSource] = None
    leads: Optional[float] = None
    payins: Optional[float] = None
    sales: Optional[float] = None
    leads_depot_id: Optional[str] = None
    sales_depot_id: Optional[str] = None
    leads_depot: Optional[str] = Field(None, description="Nom du dépôt leads si l'id est absent")
    sales_depot: Optional[str] = Field(None, description="Nom du dépôt ventes si l'id est absent")
    model_config = ConfigDict(use_enum_values=True)


class ImportIn(BaseModel):
    rows: List[ImportRowIn]
    reason: str
    default_source: RecordSource = RecordSource.COMPANY


class ImportRowErrorOut(BaseModel):
    row_number: int
    leader_name: str = ""
    errors: List[str]
    suggestions: List[str] = []


class ImportResultOut(BaseModel):
    inserted: int
    updated: int
    unchanged: int
    merged: int
    errors: List[ImportRowErrorOut]
