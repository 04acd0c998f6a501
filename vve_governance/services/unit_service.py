import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from uuid import UUID

from vve_governance.constants import AUDIT_UNIT_TRANSFERRED
from vve_governance.exceptions import (
    GovernanceError,
    PermissionDeniedError,
    PersonNotFoundError,
    UnitNotFoundError,
)
from vve_governance.extensions import db
from vve_governance.models import Person, VotingUnit
from vve_governance.models.db_utils import get_session_scope
from vve_governance.services.audit import AuditTrail

logger = logging.getLogger(__name__)


def _parse_fraction(raw) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        fraction = Decimal(str(raw))
    except InvalidOperation:
        raise GovernanceError(f"Invalid fraction {raw!r}.")
    if fraction <= 0:
        raise GovernanceError("A unit's fraction must be positive.")
    return fraction


class UnitService:
    """
    Administration of voting units: registration, ownership transfer and
    fraction changes. Cast ballots keep the weight they were cast with.
    """

    def __init__(self):
        self.db = db

    def init_app(self, app, db_instance):
        self.db = db_instance

    def _require_manager(self, session, actor_id: UUID) -> Person:
        actor = session.get(Person, actor_id) if actor_id else None
        if actor is None or not actor.is_manager:
            raise PermissionDeniedError("Only board members or managers may administer voting units.")
        return actor

    def _load_unit(self, session, unit_id: UUID) -> VotingUnit:
        unit = session.get(VotingUnit, unit_id)
        if unit is None:
            raise UnitNotFoundError()
        return unit

    def _load_owner(self, session, owner_id: UUID) -> Person:
        owner = session.get(Person, owner_id)
        if owner is None:
            raise PersonNotFoundError("Owner not found.")
        return owner

    def register_unit(self, actor_id: UUID, unit_data: Dict[str, Any]) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            self._require_manager(session, actor_id)
            owner = self._load_owner(session, unit_data["owner_person_id"])
            unit = VotingUnit(
                owner_person_id=owner.id,
                label=unit_data["label"],
                fraction=_parse_fraction(unit_data.get("fraction")),
            )
            session.add(unit)
            session.flush()
            logger.info(f"Voting unit {unit.label} registered for {owner.display_name}.")
            return unit.to_dict()

    def transfer_unit(self, actor_id: UUID, unit_id: UUID, new_owner_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            actor = self._require_manager(session, actor_id)
            unit = self._load_unit(session, unit_id)
            new_owner = self._load_owner(session, new_owner_id)
            previous_owner_id = unit.owner_person_id
            unit.owner_person_id = new_owner.id
            AuditTrail(session).record(actor.id, AUDIT_UNIT_TRANSFERRED, unit.id, {
                "from": str(previous_owner_id) if previous_owner_id else None,
                "to": str(new_owner.id),
            })
            session.flush()
            logger.info(f"Voting unit {unit.label} transferred to {new_owner.display_name}.")
            return unit.to_dict()

    def update_fraction(self, actor_id: UUID, unit_id: UUID, fraction) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            self._require_manager(session, actor_id)
            unit = self._load_unit(session, unit_id)
            unit.fraction = _parse_fraction(fraction)
            session.flush()
            return unit.to_dict()


# Singleton instance
unit_service = UnitService()
