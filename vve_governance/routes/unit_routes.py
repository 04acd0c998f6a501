# vve_governance/routes/unit_routes.py
import logging
import http
import uuid
from decimal import Decimal
from typing import Optional, Tuple

from flask import Blueprint, jsonify, Response, g
from pydantic import BaseModel, Field

from vve_governance.services.governance_service import governance_service
from vve_governance.services.unit_service import unit_service
from vve_governance.utils.auth import require_actor
from vve_governance.utils.validation import validate_with

logger = logging.getLogger(__name__)
units_bp = Blueprint('units', __name__, url_prefix='/api/v1/governance/units')


class RegisterUnitSchema(BaseModel):
    owner_person_id: uuid.UUID
    label: str = Field(..., min_length=1, max_length=64)
    fraction: Optional[Decimal] = Field(None, gt=Decimal('0'))


class TransferUnitSchema(BaseModel):
    new_owner_person_id: uuid.UUID


class UpdateUnitSchema(BaseModel):
    fraction: Optional[Decimal] = Field(None, gt=Decimal('0'))


@units_bp.route('/mine', methods=['GET'])
@require_actor
def my_units() -> Tuple[Response, int]:
    """Voting units the calling person controls. Empty when they own none."""
    units = governance_service.get_my_units(g.actor_id)
    return jsonify({"status": "success", "units": units}), http.HTTPStatus.OK


@units_bp.route('', methods=['POST'])
@require_actor
@validate_with(RegisterUnitSchema)
def register_unit() -> Tuple[Response, int]:
    unit_data: RegisterUnitSchema = g.validated_data
    unit = unit_service.register_unit(g.actor_id, unit_data.model_dump())
    return jsonify({"status": "success", "unit": unit}), http.HTTPStatus.CREATED


@units_bp.route('/<uuid:unit_id>/transfer', methods=['POST'])
@require_actor
@validate_with(TransferUnitSchema)
def transfer_unit(unit_id: uuid.UUID) -> Tuple[Response, int]:
    transfer: TransferUnitSchema = g.validated_data
    unit = unit_service.transfer_unit(g.actor_id, unit_id, transfer.new_owner_person_id)
    logger.info(f"🔁 API: Unit {unit_id} transferred by {g.actor_id}.")
    return jsonify({"status": "success", "unit": unit}), http.HTTPStatus.OK


@units_bp.route('/<uuid:unit_id>', methods=['PATCH'])
@require_actor
@validate_with(UpdateUnitSchema)
def update_unit(unit_id: uuid.UUID) -> Tuple[Response, int]:
    """Changes a unit's fraction. Ballots already cast keep their recorded weight."""
    changes: UpdateUnitSchema = g.validated_data
    unit = unit_service.update_fraction(g.actor_id, unit_id, changes.fraction)
    return jsonify({"status": "success", "unit": unit}), http.HTTPStatus.OK
