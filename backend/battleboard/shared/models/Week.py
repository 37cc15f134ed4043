# battleboard/shared/models/Week.py
"""
Verrou hebdomadaire (lundi → dimanche, clé ISO "YYYY-Www").

Une ligne absente = semaine ouverte.
La réouverture conserve l'historique de finalisation.
"""
from sqlalchemy import Column, String, Date, DateTime

from battleboard.core.database import Base


class FinalizedWeek(Base):
    __tablename__ = "finalized_weeks"

    week_key   = Column(String, primary_key=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date   = Column(Date, nullable=False)
    status     = Column(String, nullable=False, default="open")   # open | finalized

    finalized_at    = Column(DateTime(timezone=True), nullable=True)
    finalized_by    = Column(String, nullable=True)
    finalize_reason = Column(String, nullable=True)

    reopened_at   = Column(DateTime(timezone=True), nullable=True)
    reopened_by   = Column(String, nullable=True)
    reopen_reason = Column(String, nullable=True)

    def __repr__(self):
        return f"<FinalizedWeek {self.week_key} status={self.status}>"
