# battleboard/shared/models/Directory.py
"""
Entités de référence : dépôts, companies (commanders), platoons (teams)
et participants (leaders / agents).

Deux hiérarchies indépendantes :
  - Dépôts : canal / lieu, assigné PAR ENREGISTREMENT (leads et sales séparément)
  - Company → Platoon → Participant (+ chaîne d'upline entre participants)

La maintenance de ces tables appartient au collaborateur CRUD ;
ce service ne fait que les lire.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from battleboard.core.database import Base


class Depot(Base):
    __tablename__ = "depots"

    id        = Column(String, primary_key=True)
    name      = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Depot id={self.id} name={self.name}>"


class Company(Base):
    __tablename__ = "companies"

    id        = Column(String, primary_key=True)
    name      = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Company id={self.id} name={self.name}>"


class Platoon(Base):
    __tablename__ = "platoons"

    id        = Column(String, primary_key=True)
    name      = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Platoon id={self.id} name={self.name}>"


class Participant(Base):
    __tablename__ = "participants"

    id         = Column(String, primary_key=True)
    name       = Column(String, nullable=False, index=True)
    photo_url  = Column(String, nullable=True)

    company_id      = Column(String, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    platoon_id      = Column(String, ForeignKey("platoons.id", ondelete="SET NULL"), nullable=True, index=True)
    upline_agent_id = Column(String, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True, index=True)

    # Dimension de regroupement par défaut : platoon | squad | team
    role = Column(String, nullable=False, default="platoon")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    company = relationship("Company")
    platoon = relationship("Platoon")

    def __repr__(self):
        return f"<Participant id={self.id} name={self.name} role={self.role}>"
