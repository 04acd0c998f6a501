# vve_governance/models/__init__.py

from .person import Person
from .voting_unit import VotingUnit
from .meeting import Meeting
from .proposal import Proposal
from .ballot import Ballot
from .audit_log import AuditLog

__all__ = [
    "Person",
    "VotingUnit",
    "Meeting",
    "Proposal",
    "Ballot",
    "AuditLog",
]
