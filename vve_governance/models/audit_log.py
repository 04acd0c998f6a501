# vve_governance/models/audit_log.py

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, func

from vve_governance.constants import AUDITED_ACTIONS
from vve_governance.db_types import UUIDType, EnumType, JSONType
from vve_governance.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)
    actor_person_id = Column(UUIDType, ForeignKey("persons.id", ondelete="SET NULL"), nullable=True)
    action_type = Column(EnumType(*AUDITED_ACTIONS, name="audited_action"), nullable=False)
    target_entity_id = Column(String(255), nullable=True)
    details = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        """Serializes the AuditLog object to a dictionary."""
        return {
            "id": str(self.id),
            "actor_person_id": str(self.actor_person_id) if self.actor_person_id else None,
            "action_type": self.action_type,
            "target_entity_id": self.target_entity_id,
            "details": self.details,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
