"""Settlement routes."""
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from groupledger.core import BalanceService
from groupledger.extensions import get_store
from groupledger.utils.responses import error_response
from groupledger.utils.validators import require_keys

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.route("/", methods=["POST"])
@jwt_required()
def settle():
    """
    Record a payment from the caller to a user they owe.

    Request body:
    {
        "group_id": "...",
        "payee_id": "...",
        "amount": 30.00
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "group_id", "payee_id", "amount")

    settlement, error = BalanceService(get_store()).settle_balance(
        group_id=data["group_id"],
        payer_id=get_jwt_identity(),
        payee_id=data["payee_id"],
        amount=data["amount"],
    )
    if error:
        return error_response(error)
    return jsonify(settlement.to_dict()), 201


@settlements_bp.route("/group/<group_id>", methods=["GET"])
@jwt_required()
def group_settlements(group_id):
    settlements, error = BalanceService(get_store()).get_group_settlements(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"settlements": [s.to_dict() for s in settlements]})


@settlements_bp.route("/mine", methods=["GET"])
@jwt_required()
def my_settlements():
    settlements, error = BalanceService(get_store()).get_user_settlements(get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"settlements": [s.to_dict() for s in settlements]})
