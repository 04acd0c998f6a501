# vve_governance/models/person.py

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship

from vve_governance.constants import PERSON_ROLES, MANAGER_ROLES, ROLE_MEMBER
from vve_governance.db_types import UUIDType, EnumType
from vve_governance.extensions import db


class Person(db.Model):
    __tablename__ = "persons"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    display_name = Column(String(128), nullable=False)
    email = Column(String(256), unique=True, nullable=True)
    role = Column(EnumType(*PERSON_ROLES, name="person_role"), nullable=False, default=ROLE_MEMBER)
    is_super_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    voting_units = relationship("VotingUnit", back_populates="owner")

    @property
    def is_manager(self) -> bool:
        """Board members, managers and admins may run the proposal lifecycle."""
        return bool(self.is_super_admin) or self.role in MANAGER_ROLES

    def to_dict(self):
        """Serializes the Person object to a dictionary."""
        return {
            "id": str(self.id),
            "display_name": self.display_name,
            "email": self.email,
            "role": self.role,
            "is_super_admin": bool(self.is_super_admin),
        }
