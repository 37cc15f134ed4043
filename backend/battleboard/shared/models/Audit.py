# battleboard/shared/models/Audit.py
"""
Journal d'audit append-only.

Une entrée par mutation (édition, void, approbation, formule, semaine),
écrite dans la même transaction que la mutation elle-même.
Jamais lu par le calcul des classements.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from battleboard.core.database import Base


class AuditEntry(Base):
    __tablename__ = "audit_entries"

    id          = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String, nullable=False, index=True)   # daily_record | scoring_formula | week
    entity_id   = Column(String, nullable=False, index=True)
    action      = Column(String, nullable=False, index=True)
    reason      = Column(String, nullable=False)
    actor_id    = Column(String, nullable=True, index=True)

    before = Column(JSON, nullable=True)
    after  = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<AuditEntry {self.entity_type}:{self.entity_id} {self.action}>"
