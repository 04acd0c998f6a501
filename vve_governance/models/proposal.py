# vve_governance/models/proposal.py

import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from vve_governance.constants import PROPOSAL_STATUSES, VALID_POLICIES, STATUS_DRAFT, POLICY_SIMPLE
from vve_governance.db_types import UUIDType, EnumType
from vve_governance.extensions import db


class Proposal(db.Model):
    __tablename__ = "proposals"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    author_person_id = Column(UUIDType, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True)
    meeting_id = Column(UUIDType, ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    policy = Column(EnumType(*VALID_POLICIES, name="majority_policy"), nullable=False, default=POLICY_SIMPLE)
    status = Column(EnumType(*PROPOSAL_STATUSES, name="proposal_status"), nullable=False, default=STATUS_DRAFT)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    decided_at = Column(DateTime(timezone=True), nullable=True)

    author = relationship("Person")
    meeting = relationship("Meeting", back_populates="proposals")
    ballots = relationship("Ballot", back_populates="proposal", cascade="all, delete-orphan")

    def to_dict(self):
        """Serializes the Proposal object to a dictionary."""
        return {
            "id": str(self.id),
            "author_person_id": str(self.author_person_id) if self.author_person_id else None,
            "meeting_id": str(self.meeting_id) if self.meeting_id else None,
            "title": self.title,
            "description": self.description,
            "policy": self.policy,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }
