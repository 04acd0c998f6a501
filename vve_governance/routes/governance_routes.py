# vve_governance/routes/governance_routes.py
import logging
import http
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from flask import Blueprint, current_app, request, jsonify, Response, g
from pydantic import BaseModel, Field
from typing_extensions import Literal

from vve_governance.exceptions import GovernanceError
from vve_governance.extensions import limiter
from vve_governance.services.governance_service import governance_service
from vve_governance.utils.auth import require_actor, optional_actor
from vve_governance.utils.validation import validate_with

logger = logging.getLogger(__name__)
governance_bp = Blueprint('governance', __name__, url_prefix='/api/v1/governance')

PolicyName = Literal['SIMPLE', 'QUALIFIED_TWO_THIRDS', 'UNANIMOUS', 'NORMAL', 'SPECIAL']


# --- Pydantic Input Models ---
class CreateProposalSchema(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    description: str = ""
    policy: PolicyName = 'SIMPLE'
    meeting_id: Optional[uuid.UUID] = None
    status: Literal['DRAFT', 'OPEN'] = 'DRAFT'


class UpdateProposalSchema(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    policy: Optional[PolicyName] = None
    meeting_id: Optional[uuid.UUID] = None


class CastVoteSchema(BaseModel):
    choice: Literal['FOR', 'AGAINST', 'ABSTAIN']
    unit_ids: Optional[List[uuid.UUID]] = None
    atomic: bool = False


class CreateMeetingSchema(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    date: datetime
    location: Optional[str] = None
    status: Literal['PLANNED', 'HELD', 'CANCELLED'] = 'PLANNED'


def _vote_rate_limit() -> str:
    return current_app.config.get("VOTE_RATE_LIMIT", "20 per minute")


# --- Proposals ---

@governance_bp.route('/proposals', methods=['GET'])
def list_proposals() -> Tuple[Response, int]:
    """Lists proposals with their current decision snapshots.
    ---
    tags: [proposals]
    parameters:
      - {name: status, in: query, type: string}
      - {name: meeting_id, in: query, type: string}
    responses:
      200: {description: Proposals with tally and decision}
    """
    meeting_id = request.args.get('meeting_id')
    try:
        meeting_id = uuid.UUID(meeting_id) if meeting_id else None
    except ValueError:
        return jsonify({"status": "error", "error": "Invalid 'meeting_id' parameter"}), http.HTTPStatus.BAD_REQUEST

    proposals = governance_service.get_all_proposals(
        status=request.args.get('status'),
        meeting_id=meeting_id,
        viewer_id=optional_actor(),
    )
    return jsonify({"status": "success", "proposals": proposals}), http.HTTPStatus.OK


@governance_bp.route('/proposals', methods=['POST'])
@require_actor
@validate_with(CreateProposalSchema)
def create_proposal() -> Tuple[Response, int]:
    """Creates a new proposal authored by the calling person."""
    proposal_data: CreateProposalSchema = g.validated_data
    logger.info(f"📥 API: Received proposal creation request from person: {g.actor_id}")
    new_proposal = governance_service.create_proposal(g.actor_id, proposal_data.model_dump())
    return jsonify({
        "status": "success",
        "message": "Proposal created successfully.",
        "proposal": new_proposal,
    }), http.HTTPStatus.CREATED


@governance_bp.route('/proposals/<uuid:proposal_id>', methods=['GET'])
def get_proposal_details(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    """Gets a single proposal with its tally and decision snapshot."""
    proposal = governance_service.get_proposal(proposal_id, viewer_id=optional_actor())
    return jsonify({"status": "success", "proposal": proposal}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>', methods=['PATCH'])
@require_actor
@validate_with(UpdateProposalSchema)
def update_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    """Edits a draft proposal. Only its author may do so."""
    changes: UpdateProposalSchema = g.validated_data
    proposal = governance_service.update_proposal(g.actor_id, proposal_id, changes.model_dump(exclude_unset=True))
    return jsonify({"status": "success", "proposal": proposal}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>', methods=['DELETE'])
@require_actor
def delete_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    """Deletes a proposal. Proposals with ballots need a super-admin."""
    governance_service.delete_proposal(g.actor_id, proposal_id)
    logger.info(f"🗑️ API: Proposal {proposal_id} deleted by {g.actor_id}.")
    return jsonify({"status": "success", "message": "Proposal deleted."}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>/open', methods=['POST'])
@require_actor
def open_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    proposal = governance_service.open_proposal(g.actor_id, proposal_id)
    return jsonify({"status": "success", "proposal": proposal}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>/revert', methods=['POST'])
@require_actor
def revert_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    proposal = governance_service.revert_proposal(g.actor_id, proposal_id)
    return jsonify({"status": "success", "proposal": proposal}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>/finalize', methods=['POST'])
@require_actor
def finalize_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    """Closes voting and records ACCEPTED or REJECTED from the current decision."""
    result = governance_service.finalize_proposal(g.actor_id, proposal_id)
    return jsonify({"status": "success", **result}), http.HTTPStatus.OK


@governance_bp.route('/proposals/<uuid:proposal_id>/expire', methods=['POST'])
@require_actor
def expire_proposal(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    proposal = governance_service.expire_proposal(g.actor_id, proposal_id)
    return jsonify({"status": "success", "proposal": proposal}), http.HTTPStatus.OK


# --- Votes ---

@governance_bp.route('/proposals/<uuid:proposal_id>/votes', methods=['POST'])
@require_actor
@limiter.limit(_vote_rate_limit)
@validate_with(CastVoteSchema)
def cast_votes(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    """Casts one ballot per unit the caller controls (or per listed unit).
    ---
    tags: [votes]
    parameters:
      - {name: X-Person-Id, in: header, type: string, required: true}
    responses:
      201: {description: Every ballot recorded}
      207: {description: Some ballots recorded, see outcomes}
      409: {description: No ballot recorded}
    """
    vote_data: CastVoteSchema = g.validated_data
    logger.info(f"📥 API: Received {vote_data.choice} vote for proposal {proposal_id} from person {g.actor_id}.")

    try:
        result = governance_service.cast_ballots(
            g.actor_id,
            proposal_id,
            vote_data.choice,
            unit_ids=vote_data.unit_ids,
            atomic=vote_data.atomic,
        )
    except GovernanceError as e:
        logger.warning(f"🚫 API: Vote failed for person {g.actor_id} on proposal {proposal_id}. Reason: {e}")
        return jsonify(e.to_dict()), e.http_status

    if result.all_succeeded:
        status_code = http.HTTPStatus.CREATED
    elif result.cast_count > 0:
        status_code = http.HTTPStatus.MULTI_STATUS
    else:
        status_code = http.HTTPStatus.CONFLICT
    return jsonify({"status": "success" if result.all_succeeded else "partial", "result": result.to_dict()}), status_code


@governance_bp.route('/proposals/<uuid:proposal_id>/votes/mine', methods=['GET'])
@require_actor
def my_votes(proposal_id: uuid.UUID) -> Tuple[Response, int]:
    ballots = governance_service.get_my_ballots(g.actor_id, [proposal_id])
    return jsonify({"status": "success", "ballots": ballots}), http.HTTPStatus.OK


@governance_bp.route('/overview', methods=['GET'])
@require_actor
def voting_overview() -> Tuple[Response, int]:
    overview = governance_service.get_voting_overview(g.actor_id)
    return jsonify({"status": "success", **overview}), http.HTTPStatus.OK


# --- Meetings ---

@governance_bp.route('/meetings', methods=['GET'])
def list_meetings() -> Tuple[Response, int]:
    meetings = governance_service.get_meetings(status=request.args.get('status'))
    return jsonify({"status": "success", "meetings": meetings}), http.HTTPStatus.OK


@governance_bp.route('/meetings', methods=['POST'])
@require_actor
@validate_with(CreateMeetingSchema)
def create_meeting() -> Tuple[Response, int]:
    meeting_data: CreateMeetingSchema = g.validated_data
    meeting = governance_service.create_meeting(g.actor_id, meeting_data.model_dump())
    return jsonify({"status": "success", "meeting": meeting}), http.HTTPStatus.CREATED
