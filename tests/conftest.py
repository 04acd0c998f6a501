"""
Shared fixtures.

Pure core tests run against the in-memory stores below. Service and route
tests use the real Flask app on an in-memory SQLite database.
"""
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from vve_governance.config import TestingConfig
from vve_governance.constants import ROLE_MEMBER, ROLE_BOARD, STATUS_OPEN, POLICY_SIMPLE, DEFAULT_UNIT_WEIGHT
from vve_governance.extensions import db
from vve_governance.factory import create_app
from vve_governance.models import Person, VotingUnit, Proposal
from vve_governance.exceptions import ProposalNotOpenError
from vve_governance.repositories.base import PersonStore, MeetingStore, UnitStore, BallotStore, ProposalStore
from vve_governance.services.eligibility import EligibilityResolver
from vve_governance.services.lifecycle import ProposalLifecycle
from vve_governance.services.vote_ledger import VoteLedger


# --- In-memory stores ---

class MemoryPersonStore(PersonStore):
    def __init__(self):
        self.persons = {}

    def get_person(self, person_id):
        return self.persons.get(person_id)


class MemoryMeetingStore(MeetingStore):
    def __init__(self):
        self.meetings = {}

    def get_meeting(self, meeting_id):
        return self.meetings.get(meeting_id)


class MemoryUnitStore(UnitStore):
    def __init__(self):
        self.units = {}

    def list_units(self, owner_id):
        return sorted((u for u in self.units.values() if u.owner_person_id == owner_id), key=lambda u: u.label)

    def get_unit(self, unit_id):
        return self.units.get(unit_id)

    def list_eligible_units(self):
        return list(self.units.values())


class MemoryBallotStore(BallotStore):
    def __init__(self, proposals=None):
        self.ballots = {}
        self.proposals = proposals
        self.hide_existing = False

    def insert_ballot_if_absent(self, proposal_id, unit_id, payload):
        key = (proposal_id, unit_id)
        if key in self.ballots:
            return None
        if self.proposals is not None:
            proposal = self.proposals.proposals.get(proposal_id)
            if proposal is None or proposal.status != STATUS_OPEN:
                raise ProposalNotOpenError()
        ballot = SimpleNamespace(id=uuid.uuid4(), proposal_id=proposal_id, voting_unit_id=unit_id, **payload)
        self.ballots[key] = ballot
        return ballot

    def find_ballot(self, proposal_id, unit_id):
        # Simulates a ballot that lands between the pre-check and the insert.
        if self.hide_existing:
            return None
        return self.ballots.get((proposal_id, unit_id))

    def list_ballots(self, proposal_id, caster_id=None):
        return [
            b for b in self.ballots.values()
            if b.proposal_id == proposal_id and (caster_id is None or b.caster_person_id == caster_id)
        ]

    def list_ballots_by_caster(self, caster_id, proposal_ids=None):
        wanted = set(proposal_ids) if proposal_ids is not None else None
        return [
            b for b in self.ballots.values()
            if b.caster_person_id == caster_id and (wanted is None or b.proposal_id in wanted)
        ]

    def count_ballots(self, proposal_id):
        return len(self.list_ballots(proposal_id))


class MemoryProposalStore(ProposalStore):
    def __init__(self):
        self.proposals = {}
        self.ballots = None
        self.lose_races = False

    def get_proposal(self, proposal_id, lock=False):
        return self.proposals.get(proposal_id)

    def add_proposal(self, proposal):
        if proposal.id is None:
            proposal.id = uuid.uuid4()
        self.proposals[proposal.id] = proposal

    def update_status(self, proposal_id, from_status, to_status):
        proposal = self.proposals.get(proposal_id)
        if self.lose_races or proposal is None or proposal.status != from_status:
            return False
        proposal.status = to_status
        return True

    def update_status_if_no_ballots(self, proposal_id, from_status, to_status):
        if self.ballots is not None and self.ballots.count_ballots(proposal_id) > 0:
            return False
        return self.update_status(proposal_id, from_status, to_status)

    def delete_proposal(self, proposal_id):
        self.proposals.pop(proposal_id, None)


class FakeUnit:
    """Hashable stand-in for a voting unit row."""

    def __init__(self, owner_person_id, label, fraction=None):
        self.id = uuid.uuid4()
        self.owner_person_id = owner_person_id
        self.label = label
        self.fraction = fraction

    @property
    def effective_weight(self):
        if self.fraction is None:
            return Decimal(DEFAULT_UNIT_WEIGHT)
        return Decimal(str(self.fraction))


class MemoryGovernance:
    """A fully wired core on in-memory stores, plus helpers to seed it."""

    def __init__(self):
        self.persons = MemoryPersonStore()
        self.units = MemoryUnitStore()
        self.meetings = MemoryMeetingStore()
        self.proposals = MemoryProposalStore()
        self.ballots = MemoryBallotStore(self.proposals)
        self.proposals.ballots = self.ballots
        self.eligibility = EligibilityResolver(self.units, self.ballots)
        self.ledger = VoteLedger(self.proposals, self.units, self.ballots, self.eligibility)
        self.lifecycle = ProposalLifecycle(self.proposals, self.ballots, self.meetings, self.ledger)

    def person(self, is_manager=False, is_super_admin=False):
        person = SimpleNamespace(id=uuid.uuid4(), is_manager=is_manager or is_super_admin,
                                 is_super_admin=is_super_admin)
        self.persons.persons[person.id] = person
        return person

    def unit(self, owner, label=None, fraction=None):
        unit = FakeUnit(owner.id if owner else None, label or f"unit-{len(self.units.units) + 1:02d}", fraction)
        self.units.units[unit.id] = unit
        return unit

    def proposal(self, author, status=STATUS_OPEN, policy=POLICY_SIMPLE):
        proposal = SimpleNamespace(id=uuid.uuid4(), author_person_id=author.id,
                                   status=status, policy=policy, title="Dakrenovatie")
        self.proposals.proposals[proposal.id] = proposal
        return proposal

    def meeting(self, title="ALV voorjaar"):
        meeting = SimpleNamespace(id=uuid.uuid4(), title=title)
        self.meetings.meetings[meeting.id] = meeting
        return meeting


@pytest.fixture
def core():
    return MemoryGovernance()


# --- Flask app on SQLite ---

@pytest.fixture
def app():
    """Create a test Flask application."""
    test_app = create_app(config_class=TestingConfig)

    with test_app.app_context():
        db.create_all()
        yield test_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def make_person(app):
    def _make(name="Eigenaar", role=ROLE_MEMBER, is_super_admin=False):
        person = Person(display_name=name, role=role, is_super_admin=is_super_admin)
        db.session.add(person)
        db.session.flush()
        person_id = person.id
        db.session.commit()
        return person_id
    return _make


@pytest.fixture
def make_unit(app):
    def _make(owner_id, label, fraction=None):
        unit = VotingUnit(owner_person_id=owner_id, label=label,
                          fraction=Decimal(str(fraction)) if fraction is not None else None)
        db.session.add(unit)
        db.session.flush()
        unit_id = unit.id
        db.session.commit()
        return unit_id
    return _make


@pytest.fixture
def make_proposal(app):
    def _make(author_id, status=STATUS_OPEN, policy=POLICY_SIMPLE, title="Dakrenovatie 2025"):
        proposal = Proposal(author_person_id=author_id, title=title, policy=policy, status=status)
        db.session.add(proposal)
        db.session.flush()
        proposal_id = proposal.id
        db.session.commit()
        return proposal_id
    return _make


@pytest.fixture
def board_member(make_person):
    return make_person(name="Bestuur", role=ROLE_BOARD)
