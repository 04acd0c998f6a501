# vve_governance/repositories/__init__.py

from .base import PersonStore, MeetingStore, UnitStore, BallotStore, ProposalStore, TallySource
from .sql_stores import (
    SqlPersonStore,
    SqlMeetingStore,
    SqlUnitStore,
    SqlBallotStore,
    SqlProposalStore,
    SqlTallySource,
)

__all__ = [
    "PersonStore",
    "MeetingStore",
    "UnitStore",
    "BallotStore",
    "ProposalStore",
    "TallySource",
    "SqlPersonStore",
    "SqlMeetingStore",
    "SqlUnitStore",
    "SqlBallotStore",
    "SqlProposalStore",
    "SqlTallySource",
]
