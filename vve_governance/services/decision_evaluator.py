# vve_governance/services/decision_evaluator.py
"""
Decision evaluator.

Pure functions that turn a proposal's majority policy and a tally of head
counts into a decision snapshot. Nothing in this module touches storage.

Thresholds are absolute: they are measured against every eligible unit, not
against the ballots cast so far. That is what makes early impossibility
detection possible.
"""
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vve_governance.constants import (
    POLICY_QUALIFIED_TWO_THIRDS,
    POLICY_UNANIMOUS,
    POLICY_ALIASES,
    POLICY_LABELS,
    VALID_POLICIES,
    VERDICT_PASSED,
    VERDICT_IMPOSSIBLE,
    VERDICT_PENDING,
)
from vve_governance.exceptions import InvalidPolicyError, DecisionInvariantError

logger = logging.getLogger(__name__)


class TallyAggregate(BaseModel):
    """Head-count summary of the ballots on one proposal."""

    model_config = ConfigDict(frozen=True)

    total_eligible: int = Field(..., ge=0)
    votes_cast: int = Field(..., ge=0)
    votes_for: int = Field(..., ge=0)
    votes_against: int = Field(..., ge=0)

    # Reporting only; thresholds never look at weights.
    weight_for: Decimal = Decimal("0")
    weight_against: Decimal = Decimal("0")
    weight_abstain: Decimal = Decimal("0")

    @model_validator(mode="after")
    def _choices_fit_in_cast(self) -> "TallyAggregate":
        if self.votes_for + self.votes_against > self.votes_cast:
            raise ValueError("votes_for + votes_against cannot exceed votes_cast.")
        return self

    @property
    def votes_abstain(self) -> int:
        return self.votes_cast - self.votes_for - self.votes_against

    @property
    def turnout(self) -> float:
        """Share of eligible units that cast a ballot (abstentions included)."""
        if self.total_eligible == 0:
            return 0.0
        return self.votes_cast / self.total_eligible

    @classmethod
    def from_stats_row(cls, row: Optional[Mapping[str, Any]]) -> "TallyAggregate":
        """Builds a tally from a stats view row; missing columns count as zero."""
        row = row or {}
        return cls(
            total_eligible=row.get("total_eligible_head") or 0,
            votes_cast=row.get("votes_cast_head") or 0,
            votes_for=row.get("votes_for_head") or 0,
            votes_against=row.get("votes_against_head") or 0,
            weight_for=Decimal(str(row.get("weight_for") or 0)),
            weight_against=Decimal(str(row.get("weight_against") or 0)),
            weight_abstain=Decimal(str(row.get("weight_abstain") or 0)),
        )

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["votes_abstain"] = self.votes_abstain
        data["turnout"] = round(self.turnout, 4)
        return data


class DecisionSnapshot(BaseModel):
    """Momentary verdict for a proposal. Advisory; it never changes status."""

    model_config = ConfigDict(frozen=True)

    policy: str
    policy_label: str
    total_eligible: int
    votes_cast: int
    votes_for: int
    votes_against: int
    votes_uncast: int
    required_for: int
    still_needed: int
    max_possible_for: int
    is_impossible: bool
    is_passed: bool

    @property
    def verdict(self) -> str:
        if self.is_passed:
            return VERDICT_PASSED
        if self.is_impossible:
            return VERDICT_IMPOSSIBLE
        return VERDICT_PENDING

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["verdict"] = self.verdict
        return data


def normalize_policy(policy: str) -> str:
    """Maps legacy proposal types onto the three supported policies."""
    if not isinstance(policy, str):
        raise InvalidPolicyError(f"Invalid policy: {policy!r}")
    key = policy.strip().upper()
    key = POLICY_ALIASES.get(key, key)
    if key not in VALID_POLICIES:
        raise InvalidPolicyError(f"Invalid policy '{policy}'. Must be one of: {', '.join(VALID_POLICIES)}")
    return key


def required_for(policy: str, total_eligible: int) -> int:
    """Number of FOR ballots a proposal needs under the given policy."""
    policy = normalize_policy(policy)
    if policy == POLICY_UNANIMOUS:
        return total_eligible
    if policy == POLICY_QUALIFIED_TWO_THIRDS:
        # ceil(total * 2 / 3) without floating point
        return -(-total_eligible * 2 // 3)
    return total_eligible // 2 + 1


def evaluate(policy: str, tally: TallyAggregate) -> DecisionSnapshot:
    """Computes the decision snapshot for a tally under a majority policy."""
    policy = normalize_policy(policy)
    needed = required_for(policy, tally.total_eligible)

    votes_uncast = tally.total_eligible - tally.votes_cast
    max_possible_for = tally.votes_for + votes_uncast
    is_impossible = max_possible_for < needed
    is_passed = tally.votes_for >= needed

    if is_passed and is_impossible and tally.total_eligible >= 1:
        logger.error(f"Inconsistent tally produced a passed and impossible decision: {tally!r}")
        raise DecisionInvariantError(
            f"Tally {tally.votes_cast} cast of {tally.total_eligible} eligible is inconsistent."
        )

    return DecisionSnapshot(
        policy=policy,
        policy_label=POLICY_LABELS[policy],
        total_eligible=tally.total_eligible,
        votes_cast=tally.votes_cast,
        votes_for=tally.votes_for,
        votes_against=tally.votes_against,
        votes_uncast=votes_uncast,
        required_for=needed,
        still_needed=max(0, needed - tally.votes_for),
        max_possible_for=max_possible_for,
        is_impossible=is_impossible,
        is_passed=is_passed,
    )
