# vve_governance/services/lifecycle.py
"""
Proposal lifecycle state machine.

    DRAFT -> OPEN -> ACCEPTED | REJECTED | EXPIRED
    OPEN  -> DRAFT   (only while no ballot exists)

Every transition locks the proposal row and is a conditional update on the
current status, so two concurrent finalizations cannot both succeed. The
revert to DRAFT is additionally conditional on no ballot existing. Terminal
proposals are never touched again.
"""
import logging
from typing import Any, Dict, Tuple
from uuid import UUID

from vve_governance.constants import (
    POLICY_SIMPLE,
    STATUS_DRAFT,
    STATUS_OPEN,
    STATUS_ACCEPTED,
    STATUS_REJECTED,
    STATUS_EXPIRED,
    TERMINAL_STATUSES,
    AUDIT_PROPOSAL_CREATED,
    AUDIT_PROPOSAL_STATUS_CHANGED,
    AUDIT_PROPOSAL_DELETED,
)
from vve_governance.exceptions import (
    ConcurrentStatusConflict,
    InvalidTransitionError,
    MeetingNotFoundError,
    PermissionDeniedError,
    ProposalNotEditableError,
    ProposalNotFoundError,
    VotesAlreadyCastError,
    VotesCastError,
)
from vve_governance.models import Proposal
from vve_governance.repositories.base import BallotStore, MeetingStore, ProposalStore
from vve_governance.services.decision_evaluator import DecisionSnapshot, evaluate, normalize_policy
from vve_governance.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    STATUS_DRAFT: frozenset({STATUS_OPEN}),
    STATUS_OPEN: frozenset({STATUS_DRAFT, STATUS_ACCEPTED, STATUS_REJECTED, STATUS_EXPIRED}),
}

EDITABLE_FIELDS = ("title", "description", "policy", "meeting_id")

# Fields an explicit null may clear.
CLEARABLE_FIELDS = ("meeting_id",)


def _require_manager(actor, action: str) -> None:
    if actor is None or not actor.is_manager:
        raise PermissionDeniedError(f"Only board members or managers may {action}.")


class ProposalLifecycle:
    def __init__(
        self,
        proposal_store: ProposalStore,
        ballot_store: BallotStore,
        meeting_store: MeetingStore,
        ledger: VoteLedger,
        audit=None,
    ):
        self.proposal_store = proposal_store
        self.ballot_store = ballot_store
        self.meeting_store = meeting_store
        self.ledger = ledger
        self.audit = audit

    # ------------------------- Helpers -------------------------
    def _load(self, proposal_id: UUID, lock: bool = False) -> Proposal:
        proposal = self.proposal_store.get_proposal(proposal_id, lock=lock)
        if proposal is None:
            raise ProposalNotFoundError()
        return proposal

    def _check_meeting(self, meeting_id) -> None:
        if meeting_id is not None and self.meeting_store.get_meeting(meeting_id) is None:
            raise MeetingNotFoundError()

    def _record(self, actor, action_type: str, target_id, details: Dict[str, Any]) -> None:
        if self.audit is not None:
            self.audit.record(actor.id if actor is not None else None, action_type, target_id, details)

    def _transition(self, actor, proposal: Proposal, to_status: str, require_no_ballots: bool = False) -> Proposal:
        from_status = proposal.status
        if to_status not in ALLOWED_TRANSITIONS.get(from_status, frozenset()):
            raise InvalidTransitionError(f"Cannot move a proposal from {from_status} to {to_status}.")

        if require_no_ballots:
            moved = self.proposal_store.update_status_if_no_ballots(proposal.id, from_status, to_status)
        else:
            moved = self.proposal_store.update_status(proposal.id, from_status, to_status)
        if not moved:
            if require_no_ballots and self.ballot_store.count_ballots(proposal.id) > 0:
                logger.info(f"Revert of proposal {proposal.id} lost to a ballot cast after the pre-check.")
                raise VotesAlreadyCastError()
            logger.warning(f"Status conflict on proposal {proposal.id}: expected {from_status}.")
            raise ConcurrentStatusConflict()

        self._record(actor, AUDIT_PROPOSAL_STATUS_CHANGED, proposal.id, {"from": from_status, "to": to_status})
        logger.info(f"Proposal {proposal.id} moved {from_status} -> {to_status}.")
        return proposal

    # ------------------------- Authoring -------------------------
    def create(self, actor, data: Dict[str, Any]) -> Proposal:
        """Creates a proposal in DRAFT, or directly OPEN when a manager asks for it."""
        if actor is None:
            raise PermissionDeniedError("An identified person is required to create proposals.")

        status = (data.get("status") or STATUS_DRAFT).upper()
        if status == STATUS_OPEN:
            _require_manager(actor, "open proposals for voting")
        elif status != STATUS_DRAFT:
            raise InvalidTransitionError("Proposals are created as DRAFT or OPEN.")
        self._check_meeting(data.get("meeting_id"))

        proposal = Proposal(
            author_person_id=actor.id,
            title=data["title"],
            description=data.get("description") or "",
            policy=normalize_policy(data.get("policy") or POLICY_SIMPLE),
            meeting_id=data.get("meeting_id"),
            status=status,
        )
        self.proposal_store.add_proposal(proposal)
        self._record(actor, AUDIT_PROPOSAL_CREATED, proposal.id, {"status": status, "policy": proposal.policy})
        logger.info(f"New proposal '{proposal.title}' created with ID {proposal.id} ({status}).")
        return proposal

    def update_draft(self, actor, proposal_id: UUID, changes: Dict[str, Any]) -> Proposal:
        proposal = self._load(proposal_id)
        if proposal.status != STATUS_DRAFT:
            raise ProposalNotEditableError()
        if actor is None or proposal.author_person_id != actor.id:
            raise PermissionDeniedError("Only the author may edit a draft proposal.")

        for field in EDITABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if value is None and field not in CLEARABLE_FIELDS:
                continue
            if field == "policy":
                value = normalize_policy(value)
            elif field == "meeting_id":
                self._check_meeting(value)
            setattr(proposal, field, value)
        self.proposal_store.add_proposal(proposal)
        return proposal

    # ------------------------- Transitions -------------------------
    def open(self, actor, proposal_id: UUID) -> Proposal:
        _require_manager(actor, "open proposals for voting")
        proposal = self._load(proposal_id, lock=True)
        return self._transition(actor, proposal, STATUS_OPEN)

    def revert_to_draft(self, actor, proposal_id: UUID) -> Proposal:
        _require_manager(actor, "return proposals to draft")
        proposal = self._load(proposal_id, lock=True)
        if proposal.status == STATUS_OPEN and self.ballot_store.count_ballots(proposal.id) > 0:
            raise VotesAlreadyCastError()
        # The update itself also refuses while any ballot exists.
        return self._transition(actor, proposal, STATUS_DRAFT, require_no_ballots=True)

    def finalize(self, actor, proposal_id: UUID) -> Tuple[Proposal, DecisionSnapshot]:
        """Closes voting: ACCEPTED when the snapshot has passed, otherwise REJECTED."""
        _require_manager(actor, "finalize proposals")
        proposal = self._load(proposal_id, lock=True)
        if proposal.status != STATUS_OPEN:
            raise InvalidTransitionError(f"Only OPEN proposals can be finalized (status is {proposal.status}).")

        snapshot = evaluate(proposal.policy, self.ledger.tally_for(proposal.id))
        outcome = STATUS_ACCEPTED if snapshot.is_passed else STATUS_REJECTED
        if snapshot.votes_uncast > 0:
            logger.info(f"Proposal {proposal.id} finalized early with {snapshot.votes_uncast} units uncast.")
        return self._transition(actor, proposal, outcome), snapshot

    def expire(self, actor, proposal_id: UUID) -> Proposal:
        _require_manager(actor, "expire proposals")
        proposal = self._load(proposal_id, lock=True)
        return self._transition(actor, proposal, STATUS_EXPIRED)

    # ------------------------- Deletion -------------------------
    def delete(self, actor, proposal_id: UUID) -> None:
        """
        Removes a proposal and its ballots.

        Managers, or the author of a draft, may delete proposals without
        ballots. Once ballots exist only a super-admin may delete.
        """
        proposal = self._load(proposal_id, lock=True)
        is_author_draft = (
            actor is not None
            and proposal.status == STATUS_DRAFT
            and proposal.author_person_id == actor.id
        )
        if not is_author_draft:
            _require_manager(actor, "delete proposals")

        ballot_count = self.ballot_store.count_ballots(proposal.id)
        if ballot_count > 0 and not actor.is_super_admin:
            raise VotesCastError()

        if ballot_count > 0:
            logger.warning(f"Super-admin {actor.id} deleting proposal {proposal.id} with {ballot_count} ballots.")
        self._record(actor, AUDIT_PROPOSAL_DELETED, proposal.id, {
            "status": proposal.status,
            "ballots": ballot_count,
            "terminal": proposal.status in TERMINAL_STATUSES,
        })
        self.proposal_store.delete_proposal(proposal.id)
