# vve_governance/models/ballot.py

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from vve_governance.constants import VALID_CHOICES
from vve_governance.db_types import UUIDType, EnumType, FractionType
from vve_governance.extensions import db


class Ballot(db.Model):
    __tablename__ = "votes"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    proposal_id = Column(UUIDType, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    voting_unit_id = Column(UUIDType, ForeignKey("voting_units.id"), nullable=False)
    caster_person_id = Column(UUIDType, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True, index=True)

    choice = Column(EnumType(*VALID_CHOICES, name="vote_choice"), nullable=False)
    # Copied from the unit at cast time and never recomputed.
    weight = Column(FractionType, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    proposal = relationship("Proposal", back_populates="ballots")
    voting_unit = relationship("VotingUnit")

    # One ballot per unit per proposal; the database is the final arbiter.
    __table_args__ = (
        UniqueConstraint('proposal_id', 'voting_unit_id', name='unique_unit_proposal'),
    )

    def to_dict(self):
        """Serializes the Ballot object to a dictionary."""
        return {
            "id": str(self.id),
            "proposal_id": str(self.proposal_id),
            "voting_unit_id": str(self.voting_unit_id),
            "caster_person_id": str(self.caster_person_id) if self.caster_person_id else None,
            "choice": self.choice,
            "weight": str(self.weight),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
