# vve_governance/services/results.py
from typing import Any, List, Optional

from pydantic import BaseModel

from vve_governance.exceptions import GovernanceError


class OperationResult(BaseModel):
    """A self-describing outcome for callers that prefer values over exceptions."""
    ok: bool
    value: Any = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: GovernanceError) -> "OperationResult":
        return cls(ok=False, error=exc.code, message=str(exc))


class BallotOutcome(BaseModel):
    """Result of casting the ballot of a single unit inside a batch."""
    unit_id: str
    ok: bool
    ballot: Optional[dict] = None
    error: Optional[str] = None
    message: Optional[str] = None


class BatchCastResult(BaseModel):
    """Per-unit results of one "vote with all my units" action."""
    proposal_id: str
    choice: str
    atomic: bool
    outcomes: List[BallotOutcome] = []

    @property
    def all_succeeded(self) -> bool:
        return bool(self.outcomes) and all(o.ok for o in self.outcomes)

    @property
    def cast_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["all_succeeded"] = self.all_succeeded
        data["cast_count"] = self.cast_count
        return data
