# battleboard/shared/models/Record.py
"""
DailyRecord — une observation journalière d'un participant, pour UNE source.

Invariant : au plus un enregistrement non annulé par
(date, participant_id, source) → index unique partiel `voided = false`.

record_key = "<date>_<participant_id>" : identifiant dérivé, partagé
par la ligne company et la ligne depot d'une même paire (non unique).

version : incrémentée à chaque mutation (édition, void, approbation).
Les éditions passent expected_version → mise à jour conditionnelle.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, Numeric,
    ForeignKey, Index, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from battleboard.core.database import Base


class DailyRecord(Base):
    __tablename__ = "daily_records"

    id             = Column(Integer, primary_key=True, index=True)
    record_key     = Column(String, nullable=False, index=True)
    participant_id = Column(String, ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False, index=True)
    date           = Column(Date, nullable=False, index=True)
    source         = Column(String, nullable=False)   # company | depot

    # ── Métriques ────────────────────────────────────────────
    leads  = Column(Integer, nullable=False, default=0)
    payins = Column(Integer, nullable=False, default=0)
    sales  = Column(Numeric(14, 2), nullable=False, default=0)

    # Deux dépôts assignables indépendamment (canal leads / canal sales)
    leads_depot_id = Column(String, ForeignKey("depots.id", ondelete="SET NULL"), nullable=True)
    sales_depot_id = Column(String, ForeignKey("depots.id", ondelete="SET NULL"), nullable=True)

    # ── Soft delete ──────────────────────────────────────────
    voided      = Column(Boolean, nullable=False, default=False)
    void_reason = Column(String, nullable=True)
    voided_at   = Column(DateTime(timezone=True), nullable=True)
    voided_by   = Column(String, nullable=True)

    # ── Approbation (source company uniquement, super_admin) ─
    approved    = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String, nullable=True)

    version    = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    participant = relationship("Participant")

    __table_args__ = (
        Index(
            "uq_daily_records_active",
            "date", "participant_id", "source",
            unique=True,
            postgresql_where=text("voided = false"),
        ),
    )

    def __repr__(self):
        return f"<DailyRecord id={self.id} key={self.record_key} source={self.source} voided={self.voided}>"
