"""Tests for the proposal state machine on in-memory stores."""
import uuid

import pytest

from vve_governance.constants import (
    CHOICE_FOR,
    CHOICE_AGAINST,
    POLICY_QUALIFIED_TWO_THIRDS,
    POLICY_UNANIMOUS,
    STATUS_DRAFT,
    STATUS_OPEN,
    STATUS_ACCEPTED,
    STATUS_REJECTED,
    STATUS_EXPIRED,
)
from vve_governance.exceptions import (
    ConcurrentStatusConflict,
    InvalidPolicyError,
    InvalidTransitionError,
    MeetingNotFoundError,
    PermissionDeniedError,
    ProposalNotEditableError,
    ProposalNotFoundError,
    VotesAlreadyCastError,
    VotesCastError,
)


@pytest.fixture
def manager(core):
    return core.person(is_manager=True)


@pytest.fixture
def owners(core):
    """Six owners with one unit each."""
    people = [core.person() for _ in range(6)]
    units = [core.unit(p, label=f"A-{i:02d}") for i, p in enumerate(people, start=1)]
    return list(zip(people, units))


def vote(core, proposal, owner_unit, choice):
    person, unit = owner_unit
    return core.ledger.cast_ballot(proposal.id, unit.id, person.id, choice)


# --- Creation and editing ---

def test_create_defaults_to_draft(core):
    author = core.person()
    proposal = core.lifecycle.create(author, {"title": "Nieuwe fietsenstalling"})

    assert proposal.status == STATUS_DRAFT
    assert proposal.policy == "SIMPLE"
    assert proposal.author_person_id == author.id
    assert core.proposals.get_proposal(proposal.id) is proposal


def test_create_maps_legacy_policy_names(core):
    proposal = core.lifecycle.create(core.person(), {"title": "Splitsingsakte", "policy": "SPECIAL"})
    assert proposal.policy == POLICY_QUALIFIED_TWO_THIRDS


def test_only_managers_create_open_proposals(core, manager):
    with pytest.raises(PermissionDeniedError):
        core.lifecycle.create(core.person(), {"title": "Direct stemmen", "status": "OPEN"})

    proposal = core.lifecycle.create(manager, {"title": "Direct stemmen", "status": "OPEN"})
    assert proposal.status == STATUS_OPEN


def test_create_requires_a_person(core):
    with pytest.raises(PermissionDeniedError):
        core.lifecycle.create(None, {"title": "Anoniem"})


def test_author_edits_draft(core):
    author = core.person()
    proposal = core.proposal(author, status=STATUS_DRAFT)

    core.lifecycle.update_draft(author, proposal.id, {"title": "Dakrenovatie fase 2", "policy": "UNANIMOUS"})

    assert proposal.title == "Dakrenovatie fase 2"
    assert proposal.policy == POLICY_UNANIMOUS


def test_update_draft_rejects_unknown_policy(core):
    author = core.person()
    proposal = core.proposal(author, status=STATUS_DRAFT)

    with pytest.raises(InvalidPolicyError):
        core.lifecycle.update_draft(author, proposal.id, {"policy": "PLURALITY"})


def test_only_the_author_edits_and_only_while_draft(core, manager):
    author = core.person()
    draft = core.proposal(author, status=STATUS_DRAFT)
    opened = core.proposal(author, status=STATUS_OPEN)

    with pytest.raises(PermissionDeniedError):
        core.lifecycle.update_draft(manager, draft.id, {"title": "Overgenomen"})
    with pytest.raises(ProposalNotEditableError):
        core.lifecycle.update_draft(author, opened.id, {"title": "Te laat"})


def test_update_draft_links_and_clears_meeting(core):
    author = core.person()
    meeting = core.meeting()
    proposal = core.proposal(author, status=STATUS_DRAFT)

    core.lifecycle.update_draft(author, proposal.id, {"meeting_id": meeting.id})
    assert proposal.meeting_id == meeting.id

    # An explicit null unlinks; an absent key leaves the link alone.
    core.lifecycle.update_draft(author, proposal.id, {"title": "Nieuwe titel"})
    assert proposal.meeting_id == meeting.id
    core.lifecycle.update_draft(author, proposal.id, {"meeting_id": None, "title": None})
    assert proposal.meeting_id is None
    assert proposal.title == "Nieuwe titel"


def test_unknown_meeting_is_rejected(core):
    author = core.person()
    proposal = core.proposal(author, status=STATUS_DRAFT)

    with pytest.raises(MeetingNotFoundError):
        core.lifecycle.create(author, {"title": "ALV stuk", "meeting_id": uuid.uuid4()})
    with pytest.raises(MeetingNotFoundError):
        core.lifecycle.update_draft(author, proposal.id, {"meeting_id": uuid.uuid4()})
    assert not hasattr(proposal, "meeting_id")


# --- Transitions ---

def test_open_and_revert_without_ballots(core, manager):
    proposal = core.proposal(manager, status=STATUS_DRAFT)

    core.lifecycle.open(manager, proposal.id)
    assert proposal.status == STATUS_OPEN

    core.lifecycle.revert_to_draft(manager, proposal.id)
    assert proposal.status == STATUS_DRAFT


def test_revert_with_ballots_is_rejected_and_status_unchanged(core, manager, owners):
    proposal = core.proposal(manager)
    vote(core, proposal, owners[0], CHOICE_FOR)

    with pytest.raises(VotesAlreadyCastError):
        core.lifecycle.revert_to_draft(manager, proposal.id)
    assert proposal.status == STATUS_OPEN


def test_ballot_landing_after_revert_check_keeps_proposal_open(core, manager, owners, monkeypatch):
    proposal = core.proposal(manager)
    real_count = core.ballots.count_ballots
    calls = []

    def count_then_vote(proposal_id):
        # The first count sees no ballots; one is cast right after it.
        if not calls:
            calls.append(proposal_id)
            vote(core, proposal, owners[0], CHOICE_FOR)
            return 0
        return real_count(proposal_id)

    monkeypatch.setattr(core.ballots, "count_ballots", count_then_vote)

    with pytest.raises(VotesAlreadyCastError):
        core.lifecycle.revert_to_draft(manager, proposal.id)
    assert proposal.status == STATUS_OPEN
    assert real_count(proposal.id) == 1


def test_members_cannot_drive_transitions(core, owners):
    member = owners[0][0]
    proposal = core.proposal(member, status=STATUS_DRAFT)

    for action in (core.lifecycle.open, core.lifecycle.revert_to_draft,
                   core.lifecycle.finalize, core.lifecycle.expire):
        with pytest.raises(PermissionDeniedError):
            action(member, proposal.id)
    assert proposal.status == STATUS_DRAFT


def test_finalize_accepts_when_majority_reached_early(core, manager, owners):
    proposal = core.proposal(manager)
    for owner_unit in owners[:4]:
        vote(core, proposal, owner_unit, CHOICE_FOR)

    finalized, snapshot = core.lifecycle.finalize(manager, proposal.id)

    assert finalized.status == STATUS_ACCEPTED
    assert snapshot.is_passed
    assert snapshot.votes_uncast == 2


def test_finalize_rejects_without_majority(core, manager, owners):
    proposal = core.proposal(manager)
    vote(core, proposal, owners[0], CHOICE_FOR)
    vote(core, proposal, owners[1], CHOICE_AGAINST)

    finalized, snapshot = core.lifecycle.finalize(manager, proposal.id)

    assert finalized.status == STATUS_REJECTED
    assert not snapshot.is_passed


def test_expire_closes_without_verdict(core, manager):
    proposal = core.proposal(manager)
    core.lifecycle.expire(manager, proposal.id)
    assert proposal.status == STATUS_EXPIRED


@pytest.mark.parametrize("status", [STATUS_ACCEPTED, STATUS_REJECTED, STATUS_EXPIRED])
def test_terminal_proposals_never_move(core, manager, status):
    proposal = core.proposal(manager, status=status)

    with pytest.raises(InvalidTransitionError):
        core.lifecycle.open(manager, proposal.id)
    with pytest.raises(InvalidTransitionError):
        core.lifecycle.revert_to_draft(manager, proposal.id)
    with pytest.raises(InvalidTransitionError):
        core.lifecycle.finalize(manager, proposal.id)
    with pytest.raises(InvalidTransitionError):
        core.lifecycle.expire(manager, proposal.id)
    assert proposal.status == status


def test_draft_cannot_be_finalized_or_expired(core, manager):
    proposal = core.proposal(manager, status=STATUS_DRAFT)

    with pytest.raises(InvalidTransitionError):
        core.lifecycle.finalize(manager, proposal.id)
    with pytest.raises(InvalidTransitionError):
        core.lifecycle.expire(manager, proposal.id)


def test_lost_status_race_raises_conflict(core, manager, owners):
    proposal = core.proposal(manager)
    vote(core, proposal, owners[0], CHOICE_FOR)
    core.proposals.lose_races = True

    with pytest.raises(ConcurrentStatusConflict):
        core.lifecycle.finalize(manager, proposal.id)
    assert proposal.status == STATUS_OPEN


def test_unknown_proposal(core, manager):
    with pytest.raises(ProposalNotFoundError):
        core.lifecycle.open(manager, uuid.uuid4())


# --- Deletion ---

def test_author_deletes_own_draft(core):
    author = core.person()
    proposal = core.proposal(author, status=STATUS_DRAFT)

    core.lifecycle.delete(author, proposal.id)

    assert core.proposals.get_proposal(proposal.id) is None


def test_member_cannot_delete_open_proposal(core):
    author = core.person()
    proposal = core.proposal(author, status=STATUS_OPEN)

    with pytest.raises(PermissionDeniedError):
        core.lifecycle.delete(author, proposal.id)


def test_delete_with_ballots_needs_super_admin(core, manager, owners):
    proposal = core.proposal(manager)
    vote(core, proposal, owners[0], CHOICE_FOR)

    with pytest.raises(VotesCastError):
        core.lifecycle.delete(manager, proposal.id)
    assert core.proposals.get_proposal(proposal.id) is proposal

    core.lifecycle.delete(core.person(is_super_admin=True), proposal.id)
    assert core.proposals.get_proposal(proposal.id) is None
