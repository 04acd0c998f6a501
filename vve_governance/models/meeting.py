# vve_governance/models/meeting.py

import uuid
from sqlalchemy import Column, String, Text, DateTime, func
from sqlalchemy.orm import relationship

from vve_governance.constants import MEETING_STATUSES, MEETING_PLANNED
from vve_governance.db_types import UUIDType, EnumType
from vve_governance.extensions import db


class Meeting(db.Model):
    __tablename__ = "meetings"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(Text, nullable=True)
    status = Column(EnumType(*MEETING_STATUSES, name="meeting_status"), nullable=False, default=MEETING_PLANNED)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    proposals = relationship("Proposal", back_populates="meeting")

    def to_dict(self):
        """Serializes the Meeting object to a dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "date": self.date.isoformat() if self.date else None,
            "location": self.location,
            "status": self.status,
        }
