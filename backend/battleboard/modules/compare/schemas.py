# modules/compare/schemas.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date


class CompareSideOut(BaseModel):
    id: Optional[int] = None
    leads: float
    payins: float
    sales: float
    leads_depot_id: Optional[str] = None
    sales_depot_id: Optional[str] = None
    leads_depot_name: str = ""
    sales_depot_name: str = ""
    approved: bool
    source: str
    voided: bool


class CompareDeltaOut(BaseModel):
    leads_diff: float
    payins_diff: float
    sales_diff: float
    leads_depot_mismatch: bool
    sales_depot_mismatch: bool


class CompareRowOut(BaseModel):
    key: str
    date: date
    participant_id: Optional[str] = None
    leader_name: str
    restricted: bool
    restricted_participant_id: Optional[str] = None
    company: Optional[CompareSideOut] = None
    depot: Optional[CompareSideOut] = None
    status: str
    delta: Optional[CompareDeltaOut] = None
    approved: bool
    publishable: bool
    matched: bool
    model_config = ConfigDict(from_attributes=True)


class CompareListOut(BaseModel):
    rows: List[CompareRowOut]
