# modules/finalization/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime


class WeekActionIn(BaseModel):
    """N'importe quel jour de la semaine visée (lundi → dimanche)."""
    date: date
    reason: str = Field(..., description="Raison obligatoire (≥ 5 caractères)")


class WeekOut(BaseModel):
    week_key: str
    start_date: date
    end_date: date
    status: str
    finalized_at: Optional[datetime] = None
    finalized_by: Optional[str] = None
    finalize_reason: Optional[str] = None
    reopened_at: Optional[datetime] = None
    reopened_by: Optional[str] = None
    reopen_reason: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
