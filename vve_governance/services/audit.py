# vve_governance/services/audit.py
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from vve_governance.models import AuditLog

logger = logging.getLogger(__name__)


class AuditTrail:
    """Appends audit rows inside the caller's transaction."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, actor_id: Optional[UUID], action_type: str, target_id: Any, details: Optional[Dict[str, Any]] = None) -> AuditLog:
        entry = AuditLog(
            actor_person_id=actor_id,
            action_type=action_type,
            target_entity_id=str(target_id) if target_id is not None else None,
            details=details or {},
        )
        self.session.add(entry)
        logger.debug(f"Audit {action_type} on {target_id} by {actor_id}.")
        return entry
