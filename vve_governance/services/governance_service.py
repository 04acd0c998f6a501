import logging
from collections import namedtuple
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID

from vve_governance.constants import STATUS_OPEN, TERMINAL_STATUSES, MEETING_STATUSES, PROPOSAL_STATUSES
from vve_governance.exceptions import (
    GovernanceError,
    InvalidStatusError,
    PermissionDeniedError,
    ProposalNotFoundError,
    ProposalNotOpenError,
    UnitNotEligibleError,
)
from vve_governance.extensions import db
from vve_governance.models import Meeting, Proposal
from vve_governance.models.db_utils import get_session_scope
from vve_governance.repositories import (
    SqlBallotStore,
    SqlMeetingStore,
    SqlPersonStore,
    SqlProposalStore,
    SqlTallySource,
    SqlUnitStore,
)
from vve_governance.services.audit import AuditTrail
from vve_governance.services.decision_evaluator import evaluate
from vve_governance.services.eligibility import EligibilityResolver
from vve_governance.services.lifecycle import ProposalLifecycle
from vve_governance.services.results import BallotOutcome, BatchCastResult, OperationResult
from vve_governance.services.vote_ledger import VoteLedger, normalize_choice

logger = logging.getLogger(__name__)

_Core = namedtuple("_Core", ["persons", "eligibility", "ledger", "lifecycle"])


def _checked_status(status: str, allowed) -> str:
    """Upper-cases a status filter and rejects values the column cannot hold."""
    key = status.strip().upper()
    if key not in allowed:
        raise InvalidStatusError(f"Unknown status '{status}'. Must be one of: {', '.join(allowed)}")
    return key


class GovernanceService:
    """
    Entry point for every governance action.

    Each public method runs in its own transactional session scope, takes the
    acting person's id explicitly, and returns plain dictionaries that are
    safe to use after the session closes.
    """

    def __init__(self):
        self.app = None
        self.db = db
        logger.info("GovernanceService initialized.")

    def init_app(self, app, db_instance):
        self.app = app
        self.db = db_instance

    # ------------------------- Wiring -------------------------
    def _core(self, session) -> _Core:
        units = SqlUnitStore(session)
        ballots = SqlBallotStore(session)
        proposals = SqlProposalStore(session)
        eligibility = EligibilityResolver(units, ballots)
        ledger = VoteLedger(proposals, units, ballots, eligibility, SqlTallySource(session))
        lifecycle = ProposalLifecycle(proposals, ballots, SqlMeetingStore(session), ledger, AuditTrail(session))
        return _Core(SqlPersonStore(session), eligibility, ledger, lifecycle)

    def attempt(self, operation: Callable, *args, **kwargs) -> OperationResult:
        """Runs a service method and reports its outcome as a tagged result."""
        try:
            return OperationResult.success(operation(*args, **kwargs))
        except GovernanceError as e:
            return OperationResult.failure(e)

    def _describe(self, core: _Core, proposal: Proposal, viewer_id: Optional[UUID] = None) -> Dict[str, Any]:
        data = proposal.to_dict()
        tally = core.ledger.tally_for(proposal.id)
        data["tally"] = tally.to_dict()
        data["decision"] = evaluate(proposal.policy, tally).to_dict()
        if viewer_id is not None:
            data["my_ballots"] = [b.to_dict() for b in core.ledger.ballots_cast_by(viewer_id, [proposal.id])]
            data["can_vote"] = (
                proposal.status == STATUS_OPEN
                and bool(core.eligibility.uncast_units(viewer_id, proposal.id))
            )
        return data

    # ------------------------- Proposals -------------------------
    def create_proposal(self, actor_id: UUID, proposal_data: Dict[str, Any]) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            actor = core.persons.get_person(actor_id)
            proposal = core.lifecycle.create(actor, proposal_data)
            return self._describe(core, proposal, actor_id)

    def update_proposal(self, actor_id: UUID, proposal_id: UUID, changes: Dict[str, Any]) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            actor = core.persons.get_person(actor_id)
            proposal = core.lifecycle.update_draft(actor, proposal_id, changes)
            return proposal.to_dict()

    def open_proposal(self, actor_id: UUID, proposal_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = core.lifecycle.open(core.persons.get_person(actor_id), proposal_id)
            return proposal.to_dict()

    def revert_proposal(self, actor_id: UUID, proposal_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = core.lifecycle.revert_to_draft(core.persons.get_person(actor_id), proposal_id)
            return proposal.to_dict()

    def expire_proposal(self, actor_id: UUID, proposal_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = core.lifecycle.expire(core.persons.get_person(actor_id), proposal_id)
            return proposal.to_dict()

    def finalize_proposal(self, actor_id: UUID, proposal_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal, snapshot = core.lifecycle.finalize(core.persons.get_person(actor_id), proposal_id)
            return {"proposal": proposal.to_dict(), "decision": snapshot.to_dict()}

    def delete_proposal(self, actor_id: UUID, proposal_id: UUID) -> None:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            core.lifecycle.delete(core.persons.get_person(actor_id), proposal_id)

    def get_proposal(self, proposal_id: UUID, viewer_id: Optional[UUID] = None) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = session.get(Proposal, proposal_id)
            if proposal is None:
                raise ProposalNotFoundError()
            return self._describe(core, proposal, viewer_id)

    def get_all_proposals(
        self,
        status: Optional[str] = None,
        meeting_id: Optional[UUID] = None,
        viewer_id: Optional[UUID] = None,
    ) -> List[Dict[str, Any]]:
        """Fetches all proposals with their decision snapshots, newest first."""
        with get_session_scope(self.db) as session:
            core = self._core(session)
            query = session.query(Proposal).order_by(Proposal.created_at.desc())
            if status:
                query = query.filter_by(status=_checked_status(status, PROPOSAL_STATUSES))
            if meeting_id:
                query = query.filter_by(meeting_id=meeting_id)
            return [self._describe(core, p, viewer_id) for p in query.all()]

    def get_decision(self, proposal_id: UUID) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = session.get(Proposal, proposal_id)
            if proposal is None:
                raise ProposalNotFoundError()
            return evaluate(proposal.policy, core.ledger.tally_for(proposal.id)).to_dict()

    # ------------------------- Voting -------------------------
    def cast_ballot(self, actor_id: UUID, proposal_id: UUID, unit_id: UUID, choice: str) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            ballot = self._core(session).ledger.cast_ballot(proposal_id, unit_id, actor_id, choice)
            return ballot.to_dict()

    def cast_ballots(
        self,
        actor_id: UUID,
        proposal_id: UUID,
        choice: str,
        unit_ids: Optional[Iterable[UUID]] = None,
        atomic: bool = False,
    ) -> BatchCastResult:
        """
        Votes the same way with several units in one user action.

        Without ``unit_ids`` every unit the person controls is used. In the
        default best-effort mode each unit commits on its own and the result
        lists per-unit outcomes; with ``atomic=True`` either every ballot is
        recorded or none is.
        """
        choice = normalize_choice(choice)
        with get_session_scope(self.db) as session:
            core = self._core(session)
            proposal = session.get(Proposal, proposal_id)
            if proposal is None:
                raise ProposalNotFoundError()
            if proposal.status != STATUS_OPEN:
                raise ProposalNotOpenError()
            if unit_ids is None:
                controlled = sorted(core.eligibility.units_controlled_by(actor_id), key=lambda u: u.label)
                unit_ids = [u.id for u in controlled]
            else:
                unit_ids = list(unit_ids)

        if not unit_ids:
            raise UnitNotEligibleError("You have no voting units linked to your account.")

        result = BatchCastResult(proposal_id=str(proposal_id), choice=choice, atomic=atomic)
        if atomic:
            result.outcomes = self._cast_all_or_nothing(actor_id, proposal_id, choice, unit_ids)
        else:
            for unit_id in unit_ids:
                try:
                    ballot = self.cast_ballot(actor_id, proposal_id, unit_id, choice)
                    result.outcomes.append(BallotOutcome(unit_id=str(unit_id), ok=True, ballot=ballot))
                except GovernanceError as e:
                    result.outcomes.append(
                        BallotOutcome(unit_id=str(unit_id), ok=False, error=e.code, message=str(e))
                    )

        logger.info(
            f"Batch vote by {actor_id} on {proposal_id}: {result.cast_count}/{len(unit_ids)} ballots recorded."
        )
        return result

    def _cast_all_or_nothing(self, actor_id: UUID, proposal_id: UUID, choice: str, unit_ids: List[UUID]) -> List[BallotOutcome]:
        recorded: List[BallotOutcome] = []
        try:
            with get_session_scope(self.db) as session:
                ledger = self._core(session).ledger
                for unit_id in unit_ids:
                    ballot = ledger.cast_ballot(proposal_id, unit_id, actor_id, choice)
                    recorded.append(BallotOutcome(unit_id=str(unit_id), ok=True, ballot=ballot.to_dict()))
            return recorded
        except GovernanceError as e:
            failed_index = len(recorded)
            outcomes = [
                BallotOutcome(unit_id=o.unit_id, ok=False, error="ROLLED_BACK",
                              message="Batch rolled back; this ballot was not recorded.")
                for o in recorded
            ]
            outcomes.append(BallotOutcome(unit_id=str(unit_ids[failed_index]), ok=False, error=e.code, message=str(e)))
            outcomes.extend(
                BallotOutcome(unit_id=str(unit_id), ok=False, error="NOT_ATTEMPTED",
                              message="Batch stopped before this unit.")
                for unit_id in unit_ids[failed_index + 1:]
            )
            return outcomes

    def get_my_ballots(self, actor_id: UUID, proposal_ids: Optional[Iterable[UUID]] = None) -> List[Dict[str, Any]]:
        with get_session_scope(self.db) as session:
            ballots = self._core(session).ledger.ballots_cast_by(actor_id, proposal_ids)
            return [b.to_dict() for b in ballots]

    def get_my_units(self, actor_id: UUID) -> List[Dict[str, Any]]:
        with get_session_scope(self.db) as session:
            units = self._core(session).eligibility.units_controlled_by(actor_id)
            return [u.to_dict() for u in sorted(units, key=lambda u: u.label)]

    def get_voting_overview(self, actor_id: UUID) -> Dict[str, Any]:
        """Dashboard counts plus the caller's ballots."""
        with get_session_scope(self.db) as session:
            core = self._core(session)
            statuses = [s for (s,) in session.query(Proposal.status).all()]
            return {
                "active_count": sum(1 for s in statuses if s == STATUS_OPEN),
                "completed_count": sum(1 for s in statuses if s in TERMINAL_STATUSES),
                "my_units": len(core.eligibility.units_controlled_by(actor_id)),
                "my_ballots": [b.to_dict() for b in core.ledger.ballots_cast_by(actor_id)],
            }

    # ------------------------- Meetings -------------------------
    def get_meetings(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        with get_session_scope(self.db) as session:
            query = session.query(Meeting).order_by(Meeting.date.desc())
            if status:
                query = query.filter_by(status=_checked_status(status, MEETING_STATUSES))
            return [m.to_dict() for m in query.all()]

    def create_meeting(self, actor_id: UUID, meeting_data: Dict[str, Any]) -> Dict[str, Any]:
        with get_session_scope(self.db) as session:
            actor = self._core(session).persons.get_person(actor_id)
            if actor is None or not actor.is_manager:
                raise PermissionDeniedError("Only board members or managers may plan meetings.")
            status = (meeting_data.get("status") or "PLANNED").upper()
            if status not in MEETING_STATUSES:
                raise InvalidStatusError(f"Invalid meeting status '{status}'.")
            meeting = Meeting(
                title=meeting_data["title"],
                date=meeting_data["date"],
                location=meeting_data.get("location"),
                status=status,
            )
            session.add(meeting)
            session.flush()
            logger.info(f"Meeting '{meeting.title}' planned for {meeting.date}.")
            return meeting.to_dict()


# Singleton instance
governance_service = GovernanceService()
