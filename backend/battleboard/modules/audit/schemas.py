# modules/audit/schemas.py
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import datetime


class AuditEntryOut(BaseModel):
    id: int
    entity_type: str
    entity_id: str
    action: str
    reason: str
    actor_id: Optional[str] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AuditPageOut(BaseModel):
    items: List[AuditEntryOut]
    total: int
    limit: int
    offset: int
