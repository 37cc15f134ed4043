# modules/formulas/schemas.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from battleboard.shared.enums import BattleType, MetricKey


# ── Métrique ───────────────────────────────────────────────

class MetricIn(BaseModel):
    """
    Une ligne de pondération. Les contraintes (divisor > 0, Σ maxPoints = 1000...)
    sont vérifiées par l'engine pour renvoyer toutes les erreurs d'un coup.
    """
    key: MetricKey = Field(..., validation_alias=AliasChoices("key", "name", "metric"))
    divisor: float = Field(..., validation_alias=AliasChoices("divisor", "division"))
    maxPoints: float = Field(..., validation_alias=AliasChoices("maxPoints", "max_points", "points"))
    model_config = ConfigDict(use_enum_values=True)


# ── Écritures ──────────────────────────────────────────────

class FormulaCreateIn(BaseModel):
    name: Optional[str] = None
    battle_type: BattleType
    effective_start_week_key: str = Field(..., description="YYYY-Www")
    effective_end_week_key: Optional[str] = Field(None, description="YYYY-Www, null = sans fin")
    metrics: List[MetricIn]
    reason: str


class FormulaUpdateIn(BaseModel):
    name: Optional[str] = None
    battle_type: Optional[BattleType] = None
    effective_start_week_key: Optional[str] = None
    effective_end_week_key: Optional[str] = None
    metrics: Optional[List[MetricIn]] = None
    reason: str
    expected_version: Optional[int] = None


class FormulaPublishIn(BaseModel):
    reason: str
    expected_version: Optional[int] = None


# ── Lectures ───────────────────────────────────────────────

class FormulaOut(BaseModel):
    id: int
    name: Optional[str] = None
    battle_type: str
    status: str
    effective_start_week_key: str
    effective_end_week_key: Optional[str] = None
    config: Dict[str, Any]
    version: int
    created_by: Optional[str] = None
    published_at: Optional[datetime] = None
    published_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ActiveFormulaOut(BaseModel):
    battle_type: str
    week_key: str
    missing: bool
    formula: Optional[FormulaOut] = None
