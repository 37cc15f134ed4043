# modules/directory/schemas.py
from pydantic import BaseModel, ConfigDict
from typing import Optional


class EntityOut(BaseModel):
    """Dépôt, company ou platoon."""
    id: str
    name: str
    photo_url: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ParticipantOut(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    company_id: Optional[str] = None
    platoon_id: Optional[str] = None
    upline_agent_id: Optional[str] = None
    role: str
    model_config = ConfigDict(from_attributes=True)
