# battleboard/shared/models/Formula.py
"""
ScoringFormula — configuration de pondération versionnée et auditée.

config = {"metrics": [{"key": "leads", "divisor": 500, "maxPoints": 400}, ...]}

Cycle de vie : draft (éditable, chaque édition auditée) → published (irréversible).
La formule active pour (battle_type, semaine) est la publiée dont la plage
[effective_start_week_key, effective_end_week_key] contient la semaine.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from battleboard.core.database import Base


class ScoringFormula(Base):
    __tablename__ = "scoring_formulas"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String, nullable=True)
    battle_type = Column(String, nullable=False, index=True)
    status      = Column(String, nullable=False, default="draft", index=True)   # draft | published

    # Clés ISO "YYYY-Www" : ordre lexicographique = ordre chronologique
    effective_start_week_key = Column(String, nullable=False)
    effective_end_week_key   = Column(String, nullable=True)    # None = sans fin

    config  = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=1)

    created_by   = Column(String, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    published_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<ScoringFormula id={self.id} type={self.battle_type} status={self.status} v{self.version}>"
