# vve_governance/models/voting_unit.py

import uuid
from decimal import Decimal
from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from vve_governance.constants import DEFAULT_UNIT_WEIGHT
from vve_governance.db_types import UUIDType, FractionType
from vve_governance.extensions import db


class VotingUnit(db.Model):
    __tablename__ = "voting_units"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    owner_person_id = Column(UUIDType, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True, index=True)
    label = Column(String(64), nullable=False)
    # Share of ownership. NULL means the unit votes with the default weight.
    fraction = Column(FractionType, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    owner = relationship("Person", back_populates="voting_units")

    __table_args__ = (
        CheckConstraint('fraction IS NULL OR fraction > 0', name='check_fraction_positive'),
    )

    @property
    def effective_weight(self) -> Decimal:
        if self.fraction is None:
            return Decimal(DEFAULT_UNIT_WEIGHT)
        return Decimal(str(self.fraction))

    def to_dict(self):
        """Serializes the VotingUnit object to a dictionary."""
        return {
            "id": str(self.id),
            "owner_person_id": str(self.owner_person_id) if self.owner_person_id else None,
            "label": self.label,
            "fraction": str(self.fraction) if self.fraction is not None else None,
            "effective_weight": str(self.effective_weight),
        }
