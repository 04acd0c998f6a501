# vve_governance/services/vote_ledger.py
"""
Vote ledger.

Records one ballot per (proposal, voting unit). A ballot's weight is copied
from the unit at the moment of casting and is never recomputed afterwards, so
later ownership splits or transfers cannot rewrite a cast vote.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from vve_governance.constants import (
    CHOICE_FOR,
    CHOICE_AGAINST,
    CHOICE_ABSTAIN,
    VALID_CHOICES,
    STATUS_OPEN,
)
from vve_governance.exceptions import (
    DuplicateVoteError,
    InvalidChoiceError,
    ProposalNotFoundError,
    ProposalNotOpenError,
)
from vve_governance.repositories.base import BallotStore, ProposalStore, TallySource, UnitStore
from vve_governance.services.decision_evaluator import TallyAggregate
from vve_governance.services.eligibility import EligibilityResolver

logger = logging.getLogger(__name__)


def normalize_choice(choice: str) -> str:
    key = choice.strip().upper() if isinstance(choice, str) else None
    if key not in VALID_CHOICES:
        raise InvalidChoiceError(f"Invalid choice {choice!r}. Must be one of: {', '.join(VALID_CHOICES)}")
    return key


def derive_tally(proposal_id: UUID, eligible_units: Iterable, ballots: Iterable) -> TallyAggregate:
    """
    Aggregates raw units and ballots into a tally.

    Eligibility is a head count of units, not a sum of weights. ABSTAIN
    ballots count toward ``votes_cast`` but toward neither side.
    """
    total_eligible = len(list(eligible_units))
    votes_cast = votes_for = votes_against = 0
    weights = {CHOICE_FOR: Decimal("0"), CHOICE_AGAINST: Decimal("0"), CHOICE_ABSTAIN: Decimal("0")}

    for ballot in ballots:
        if ballot.proposal_id != proposal_id:
            continue
        votes_cast += 1
        if ballot.choice == CHOICE_FOR:
            votes_for += 1
        elif ballot.choice == CHOICE_AGAINST:
            votes_against += 1
        weights[ballot.choice] += Decimal(str(ballot.weight))

    return TallyAggregate(
        total_eligible=total_eligible,
        votes_cast=votes_cast,
        votes_for=votes_for,
        votes_against=votes_against,
        weight_for=weights[CHOICE_FOR],
        weight_against=weights[CHOICE_AGAINST],
        weight_abstain=weights[CHOICE_ABSTAIN],
    )


class VoteLedger:
    def __init__(
        self,
        proposal_store: ProposalStore,
        unit_store: UnitStore,
        ballot_store: BallotStore,
        eligibility: EligibilityResolver,
        tally_source: Optional[TallySource] = None,
    ):
        self.proposal_store = proposal_store
        self.unit_store = unit_store
        self.ballot_store = ballot_store
        self.eligibility = eligibility
        self.tally_source = tally_source

    def cast_ballot(self, proposal_id: UUID, unit_id: UUID, person_id: UUID, choice: str):
        """Casts a single ballot for one unit. Raises one specific error on any failed precondition."""
        choice = normalize_choice(choice)

        # Locks the proposal row so a concurrent finalize or revert waits for this ballot.
        proposal = self.proposal_store.get_proposal(proposal_id, lock=True)
        if proposal is None:
            raise ProposalNotFoundError()
        if proposal.status != STATUS_OPEN:
            raise ProposalNotOpenError()

        unit = self.eligibility.assert_controls(person_id, unit_id)

        if self.eligibility.has_cast(proposal_id, unit_id):
            raise DuplicateVoteError()

        # Snapshot: unset fractions vote with the default weight of 1.
        weight = unit.effective_weight
        ballot = self.ballot_store.insert_ballot_if_absent(
            proposal_id,
            unit_id,
            {"caster_person_id": person_id, "choice": choice, "weight": weight},
        )
        # The insert re-checks OPEN itself and raises ProposalNotOpenError.
        if ballot is None:
            raise DuplicateVoteError()

        logger.info(f"Ballot {choice} for unit {unit.label} on proposal {proposal_id} recorded (weight {weight}).")
        return ballot

    def ballots_cast_by(self, person_id: UUID, proposal_ids: Optional[Iterable[UUID]] = None) -> List:
        if person_id is None:
            return []
        return self.ballot_store.list_ballots_by_caster(person_id, proposal_ids)

    def tally_for(self, proposal_id: UUID) -> TallyAggregate:
        """Uses the pre-aggregated source when there is one, else derives from raw rows."""
        if self.tally_source is not None:
            tally = self.tally_source.fetch(proposal_id)
            if tally is not None:
                return tally
        return derive_tally(
            proposal_id,
            self.unit_store.list_eligible_units(),
            self.ballot_store.list_ballots(proposal_id),
        )
