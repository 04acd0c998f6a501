# vve_governance/exceptions.py
"""
Error kinds raised by the governance core.

Every precondition failure maps to exactly one class below. Each carries a
stable ``code`` for API consumers and the HTTP status the routes answer with.
"""
import http


class GovernanceError(Exception):
    """Base class for recoverable governance errors."""

    code = "GOVERNANCE_ERROR"
    http_status = http.HTTPStatus.BAD_REQUEST
    default_message = "Governance operation failed."

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    def to_dict(self) -> dict:
        return {"status": "error", "error": self.code, "message": str(self)}


class ProposalNotFoundError(GovernanceError):
    code = "PROPOSAL_NOT_FOUND"
    http_status = http.HTTPStatus.NOT_FOUND
    default_message = "Proposal not found."


class UnitNotFoundError(GovernanceError):
    code = "UNIT_NOT_FOUND"
    http_status = http.HTTPStatus.NOT_FOUND
    default_message = "Voting unit not found."


class PersonNotFoundError(GovernanceError):
    code = "PERSON_NOT_FOUND"
    http_status = http.HTTPStatus.NOT_FOUND
    default_message = "Person not found."


class MeetingNotFoundError(GovernanceError):
    code = "MEETING_NOT_FOUND"
    http_status = http.HTTPStatus.NOT_FOUND
    default_message = "Meeting not found."


class ProposalNotOpenError(GovernanceError):
    code = "PROPOSAL_NOT_OPEN"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "This proposal is no longer open for voting."


class DuplicateVoteError(GovernanceError):
    code = "DUPLICATE_VOTE"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "This voting unit has already voted on the proposal."


class UnitNotEligibleError(GovernanceError):
    code = "UNIT_NOT_ELIGIBLE"
    http_status = http.HTTPStatus.FORBIDDEN
    default_message = "You do not control this voting unit."


class VotesAlreadyCastError(GovernanceError):
    """Blocks reverting an OPEN proposal to DRAFT."""

    code = "VOTES_ALREADY_CAST"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "Votes have already been cast; the proposal cannot return to draft."


class VotesCastError(GovernanceError):
    """Blocks deleting a proposal with ballots unless the actor is a super-admin."""

    code = "VOTES_CAST"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "Votes have been cast on this proposal; it cannot be deleted."


class ConcurrentStatusConflict(GovernanceError):
    code = "CONCURRENT_STATUS_CONFLICT"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "The proposal status changed concurrently. Reload and try again."


class InvalidTransitionError(GovernanceError):
    code = "INVALID_TRANSITION"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "This status change is not allowed."


class ProposalNotEditableError(GovernanceError):
    code = "PROPOSAL_NOT_EDITABLE"
    http_status = http.HTTPStatus.CONFLICT
    default_message = "Only draft proposals can be edited."


class PermissionDeniedError(GovernanceError):
    code = "PERMISSION_DENIED"
    http_status = http.HTTPStatus.FORBIDDEN
    default_message = "You are not allowed to perform this action."


class InvalidChoiceError(GovernanceError):
    code = "INVALID_CHOICE"
    default_message = "Invalid vote choice."


class InvalidPolicyError(GovernanceError):
    code = "INVALID_POLICY"
    default_message = "Invalid majority policy."


class InvalidStatusError(GovernanceError):
    code = "INVALID_STATUS"
    default_message = "Unknown status."


class DecisionInvariantError(AssertionError):
    """A tally produced a snapshot that is both passed and impossible.

    This only happens with inconsistent input (more ballots than eligible
    units) and is treated as a defect, not a user error.
    """
