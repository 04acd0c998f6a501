# vve_governance/repositories/sql_stores.py
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import case, exists, func, insert, literal, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vve_governance.constants import CHOICE_FOR, CHOICE_AGAINST, CHOICE_ABSTAIN, STATUS_OPEN, TERMINAL_STATUSES
from vve_governance.exceptions import ProposalNotOpenError
from vve_governance.models import Person, Meeting, VotingUnit, Proposal, Ballot
from vve_governance.repositories.base import (
    PersonStore,
    MeetingStore,
    UnitStore,
    BallotStore,
    ProposalStore,
    TallySource,
)
from vve_governance.services.decision_evaluator import TallyAggregate

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO NOTHING.
_CONFLICT_AWARE_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlPersonStore(PersonStore):
    def __init__(self, session: Session):
        self.session = session

    def get_person(self, person_id: UUID) -> Optional[Person]:
        return self.session.get(Person, person_id)


class SqlMeetingStore(MeetingStore):
    def __init__(self, session: Session):
        self.session = session

    def get_meeting(self, meeting_id: UUID) -> Optional[Meeting]:
        return self.session.get(Meeting, meeting_id)


class SqlUnitStore(UnitStore):
    def __init__(self, session: Session):
        self.session = session

    def list_units(self, owner_id: UUID) -> List[VotingUnit]:
        return (
            self.session.query(VotingUnit)
            .filter_by(owner_person_id=owner_id)
            .order_by(VotingUnit.label)
            .all()
        )

    def get_unit(self, unit_id: UUID) -> Optional[VotingUnit]:
        return self.session.get(VotingUnit, unit_id)

    def list_eligible_units(self) -> List[VotingUnit]:
        return self.session.query(VotingUnit).order_by(VotingUnit.label).all()


class SqlBallotStore(BallotStore):
    def __init__(self, session: Session):
        self.session = session

    def insert_ballot_if_absent(self, proposal_id: UUID, unit_id: UUID, payload: Dict[str, Any]) -> Optional[Ballot]:
        ballot_id = uuid.uuid4()
        values = {"id": ballot_id, "proposal_id": proposal_id, "voting_unit_id": unit_id, **payload}
        columns = Ballot.__table__.c
        # INSERT ... SELECT FROM proposals WHERE status = 'OPEN': the status is
        # checked by the same statement that writes the ballot.
        source = (
            select(*[literal(value, type_=columns[name].type) for name, value in values.items()])
            .select_from(Proposal.__table__)
            .where(Proposal.id == proposal_id, Proposal.status == STATUS_OPEN)
        )
        self.session.flush()
        if self._insert_from(list(values), source) == 1:
            return self.session.get(Ballot, ballot_id)

        if self.find_ballot(proposal_id, unit_id) is not None:
            # Unique (proposal, unit) constraint: another request won the race.
            logger.warning(f"Ballot insert conflict for unit {unit_id} on proposal {proposal_id}.")
            return None
        logger.info(f"Ballot for unit {unit_id} refused: proposal {proposal_id} left OPEN before the write.")
        raise ProposalNotOpenError()

    def _insert_from(self, column_names: List[str], source) -> int:
        dialect_insert = _CONFLICT_AWARE_INSERTS.get(self.session.get_bind().dialect.name)
        if dialect_insert is not None:
            stmt = dialect_insert(Ballot.__table__).from_select(column_names, source).on_conflict_do_nothing()
            return self.session.execute(stmt).rowcount
        # Other backends: a savepoint keeps the caller's transaction usable after a conflict.
        try:
            with self.session.begin_nested():
                return self.session.execute(insert(Ballot.__table__).from_select(column_names, source)).rowcount
        except IntegrityError:
            return 0

    def find_ballot(self, proposal_id: UUID, unit_id: UUID) -> Optional[Ballot]:
        return self.session.query(Ballot).filter_by(proposal_id=proposal_id, voting_unit_id=unit_id).first()

    def list_ballots(self, proposal_id: UUID, caster_id: Optional[UUID] = None) -> List[Ballot]:
        query = self.session.query(Ballot).filter_by(proposal_id=proposal_id)
        if caster_id:
            query = query.filter_by(caster_person_id=caster_id)
        return query.order_by(Ballot.created_at).all()

    def list_ballots_by_caster(self, caster_id: UUID, proposal_ids: Optional[Iterable[UUID]] = None) -> List[Ballot]:
        query = self.session.query(Ballot).filter_by(caster_person_id=caster_id)
        if proposal_ids is not None:
            proposal_ids = list(proposal_ids)
            if not proposal_ids:
                return []
            query = query.filter(Ballot.proposal_id.in_(proposal_ids))
        return query.order_by(Ballot.created_at).all()

    def count_ballots(self, proposal_id: UUID) -> int:
        return self.session.query(func.count(Ballot.id)).filter_by(proposal_id=proposal_id).scalar() or 0


class SqlProposalStore(ProposalStore):
    def __init__(self, session: Session):
        self.session = session

    def get_proposal(self, proposal_id: UUID, lock: bool = False) -> Optional[Proposal]:
        if not lock:
            return self.session.get(Proposal, proposal_id)
        # SELECT ... FOR UPDATE where the backend supports it; SQLite serializes writers anyway.
        return (
            self.session.query(Proposal)
            .filter(Proposal.id == proposal_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def add_proposal(self, proposal: Proposal) -> None:
        self.session.add(proposal)
        self.session.flush()

    def update_status(self, proposal_id: UUID, from_status: str, to_status: str) -> bool:
        return self._conditional_update(proposal_id, from_status, to_status)

    def update_status_if_no_ballots(self, proposal_id: UUID, from_status: str, to_status: str) -> bool:
        has_ballots = exists().where(Ballot.proposal_id == Proposal.id)
        return self._conditional_update(proposal_id, from_status, to_status, ~has_ballots)

    def _conditional_update(self, proposal_id: UUID, from_status: str, to_status: str, *criteria) -> bool:
        values = {"status": to_status}
        if to_status in TERMINAL_STATUSES:
            values["decided_at"] = datetime.now(timezone.utc)
        updated = (
            self.session.query(Proposal)
            .filter(Proposal.id == proposal_id, Proposal.status == from_status, *criteria)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            return False
        # Make the loaded instance reflect the new row.
        proposal = self.session.get(Proposal, proposal_id)
        if proposal is not None:
            self.session.refresh(proposal)
        return True

    def delete_proposal(self, proposal_id: UUID) -> None:
        proposal = self.session.get(Proposal, proposal_id)
        if proposal is not None:
            self.session.delete(proposal)
            self.session.flush()


class SqlTallySource(TallySource):
    """Aggregates head counts and weight sums in SQL, one query per table."""

    def __init__(self, session: Session):
        self.session = session

    def fetch(self, proposal_id: UUID) -> TallyAggregate:
        total_eligible = self.session.query(func.count(VotingUnit.id)).scalar() or 0

        def _weight_sum(choice):
            return func.coalesce(func.sum(case((Ballot.choice == choice, Ballot.weight), else_=0)), 0)

        row = (
            self.session.query(
                func.count(Ballot.id).label("votes_cast_head"),
                func.coalesce(func.sum(case((Ballot.choice == CHOICE_FOR, 1), else_=0)), 0).label("votes_for_head"),
                func.coalesce(func.sum(case((Ballot.choice == CHOICE_AGAINST, 1), else_=0)), 0).label("votes_against_head"),
                _weight_sum(CHOICE_FOR).label("weight_for"),
                _weight_sum(CHOICE_AGAINST).label("weight_against"),
                _weight_sum(CHOICE_ABSTAIN).label("weight_abstain"),
            )
            .filter(Ballot.proposal_id == proposal_id)
            .one()
        )
        stats = dict(row._mapping)
        stats["total_eligible_head"] = total_eligible
        for key in ("weight_for", "weight_against", "weight_abstain"):
            stats[key] = Decimal(str(stats[key] or 0))
        return TallyAggregate.from_stats_row(stats)
