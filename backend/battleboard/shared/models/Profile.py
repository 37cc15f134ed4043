# battleboard/shared/models/Profile.py
"""
Miroir local du user/session store.

Le JWT donne l'identité (sub = user_id), cette table donne le rôle.
Un utilisateur sans ligne profile est traité comme admin
(comportement historique de la console d'administration).
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from battleboard.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id  = Column(String, primary_key=True)
    email    = Column(String, nullable=True)
    role     = Column(String, nullable=False, default="admin")   # user | admin | super_admin
    depot_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Profile user={self.user_id} role={self.role}>"
