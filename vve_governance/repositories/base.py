# vve_governance/repositories/base.py
"""
Storage interfaces the governance core depends on.

The core never issues queries itself; it talks to these stores. The SQL
implementations live in ``sql_stores``.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID


class PersonStore(ABC):

    @abstractmethod
    def get_person(self, person_id: UUID):
        """Returns the person or None."""


class MeetingStore(ABC):

    @abstractmethod
    def get_meeting(self, meeting_id: UUID):
        """Returns the meeting or None."""


class UnitStore(ABC):

    @abstractmethod
    def list_units(self, owner_id: UUID) -> List[Any]:
        """Units currently owned by ``owner_id``."""

    @abstractmethod
    def get_unit(self, unit_id: UUID):
        """Returns the unit or None."""

    @abstractmethod
    def list_eligible_units(self) -> List[Any]:
        """Every unit entitled to vote."""


class BallotStore(ABC):

    @abstractmethod
    def insert_ballot_if_absent(self, proposal_id: UUID, unit_id: UUID, payload: Dict[str, Any]):
        """
        Atomically inserts a ballot unless one exists for (proposal, unit).

        The write only happens while the proposal is OPEN at that moment.
        Returns the new ballot, or None when the pair already has a ballot;
        raises ProposalNotOpenError when the proposal has left OPEN.
        Never ends the caller's transaction.
        """

    @abstractmethod
    def find_ballot(self, proposal_id: UUID, unit_id: UUID):
        """Returns the ballot for (proposal, unit) or None."""

    @abstractmethod
    def list_ballots(self, proposal_id: UUID, caster_id: Optional[UUID] = None) -> List[Any]:
        """Ballots on a proposal, optionally only those cast by ``caster_id``."""

    @abstractmethod
    def list_ballots_by_caster(self, caster_id: UUID, proposal_ids: Optional[Iterable[UUID]] = None) -> List[Any]:
        """Ballots cast by a person, optionally limited to some proposals."""

    @abstractmethod
    def count_ballots(self, proposal_id: UUID) -> int:
        """Number of ballots on a proposal."""


class ProposalStore(ABC):

    @abstractmethod
    def get_proposal(self, proposal_id: UUID, lock: bool = False):
        """Returns the proposal or None. With ``lock`` the row stays locked until commit."""

    @abstractmethod
    def add_proposal(self, proposal) -> None:
        """Persists a new proposal."""

    @abstractmethod
    def update_status(self, proposal_id: UUID, from_status: str, to_status: str) -> bool:
        """
        Moves a proposal from ``from_status`` to ``to_status``.

        Returns False without changing anything when the current status is
        not ``from_status`` (someone else got there first).
        """

    @abstractmethod
    def update_status_if_no_ballots(self, proposal_id: UUID, from_status: str, to_status: str) -> bool:
        """Like ``update_status``, but also refuses while any ballot exists."""

    @abstractmethod
    def delete_proposal(self, proposal_id: UUID) -> None:
        """Removes a proposal and its ballots."""


class TallySource(ABC):

    @abstractmethod
    def fetch(self, proposal_id: UUID):
        """
        Pre-aggregated tally for a proposal.

        Returns a TallyAggregate, or None when no aggregate is available and
        the caller should derive one from raw units and ballots.
        """
