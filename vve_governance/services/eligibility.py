# vve_governance/services/eligibility.py
import logging
from typing import List, Set
from uuid import UUID

from vve_governance.exceptions import UnitNotEligibleError
from vve_governance.repositories.base import UnitStore, BallotStore

logger = logging.getLogger(__name__)


class EligibilityResolver:
    """Works out which voting units a person may cast ballots for."""

    def __init__(self, unit_store: UnitStore, ballot_store: BallotStore):
        self.unit_store = unit_store
        self.ballot_store = ballot_store

    def units_controlled_by(self, person_id: UUID) -> Set:
        """Every unit the person currently owns. Unknown persons simply own nothing."""
        if person_id is None:
            return set()
        return set(self.unit_store.list_units(person_id))

    def has_cast(self, proposal_id: UUID, unit_id: UUID) -> bool:
        """Optimistic pre-check only; the ballot store's insert is authoritative."""
        return self.ballot_store.find_ballot(proposal_id, unit_id) is not None

    def assert_controls(self, person_id: UUID, unit_id: UUID):
        unit = self.unit_store.get_unit(unit_id)
        if unit is None or person_id is None or unit.owner_person_id != person_id:
            logger.info(f"Person {person_id} does not control unit {unit_id}.")
            raise UnitNotEligibleError()
        return unit

    def uncast_units(self, person_id: UUID, proposal_id: UUID) -> List:
        """Controlled units that have not voted on the proposal yet."""
        units = sorted(self.units_controlled_by(person_id), key=lambda u: u.label)
        return [u for u in units if not self.has_cast(proposal_id, u.id)]
