# modules/rankings/schemas.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date

from battleboard.modules.formulas.schemas import FormulaOut


class RankedGroupOut(BaseModel):
    key: str
    name: str
    photo_url: Optional[str] = None
    leads: float
    payins: float
    sales: float
    points: float
    rank: int
    platoon_name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class RankingKpisOut(BaseModel):
    entities_count: int
    records_count: int
    dropped_records: int
    total_leads: float
    total_payins: float
    total_sales: float
    participants_count: int
    depots_count: int
    companies_count: int
    platoons_count: int


class RankingFormulaOut(BaseModel):
    data: Optional[FormulaOut] = None
    battle_type: str
    week_key: str
    missing: bool


class RankingOut(BaseModel):
    mode: str
    role_filter: Optional[str] = None
    date_from: date
    date_to: date
    kpis: RankingKpisOut
    rows: List[RankedGroupOut]
    formula: RankingFormulaOut
