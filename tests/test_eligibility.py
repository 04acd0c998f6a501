"""Tests for resolving which units a person may vote with."""
import uuid

import pytest

from vve_governance.constants import CHOICE_FOR
from vve_governance.exceptions import UnitNotEligibleError


def test_units_controlled_by_returns_owned_units(core):
    owner = core.person()
    neighbour = core.person()
    first = core.unit(owner, label="A-01")
    second = core.unit(owner, label="A-02")
    core.unit(neighbour, label="B-01")

    assert core.eligibility.units_controlled_by(owner.id) == {first, second}


def test_unknown_person_controls_nothing(core):
    assert core.eligibility.units_controlled_by(uuid.uuid4()) == set()
    assert core.eligibility.units_controlled_by(None) == set()


def test_transfer_moves_control(core):
    seller = core.person()
    buyer = core.person()
    unit = core.unit(seller)

    unit.owner_person_id = buyer.id

    assert core.eligibility.units_controlled_by(seller.id) == set()
    assert core.eligibility.assert_controls(buyer.id, unit.id) is unit


def test_assert_controls_rejects_missing_and_foreign_units(core):
    owner = core.person()
    unit = core.unit(owner)

    with pytest.raises(UnitNotEligibleError):
        core.eligibility.assert_controls(core.person().id, unit.id)
    with pytest.raises(UnitNotEligibleError):
        core.eligibility.assert_controls(owner.id, uuid.uuid4())


def test_uncast_units_shrinks_as_ballots_arrive(core):
    owner = core.person()
    first = core.unit(owner, label="A-01")
    second = core.unit(owner, label="A-02")
    proposal = core.proposal(owner)

    assert core.eligibility.uncast_units(owner.id, proposal.id) == [first, second]
    assert not core.eligibility.has_cast(proposal.id, first.id)

    core.ledger.cast_ballot(proposal.id, first.id, owner.id, CHOICE_FOR)

    assert core.eligibility.has_cast(proposal.id, first.id)
    assert core.eligibility.uncast_units(owner.id, proposal.id) == [second]
