"""Balance routes: raw debts, net positions and suggested transfers."""
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from groupledger.core import BalanceService
from groupledger.extensions import get_store
from groupledger.utils.money import format_currency, from_cents
from groupledger.utils.responses import error_response

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/summary", methods=["GET"])
@jwt_required()
def summary():
    """Caller's totals across every group."""
    result, error = BalanceService(get_store()).get_user_balance_summary(get_jwt_identity())
    if error:
        return error_response(error)
    payload = result.to_dict()
    payload["net_balance_display"] = format_currency(result.net_cents)
    return jsonify(payload)


@balances_bp.route("/<group_id>", methods=["GET"])
@jwt_required()
def group_balances(group_id):
    balances, error = BalanceService(get_store()).get_group_balances(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"balances": [b.to_dict() for b in balances]})


@balances_bp.route("/<group_id>/net", methods=["GET"])
@jwt_required()
def net_balances(group_id):
    """
    Net position per member.

    Positive balance = is owed money
    Negative balance = owes money
    """
    balances, error = BalanceService(get_store()).get_net_balances(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"balances": [b.to_dict() for b in balances]})


@balances_bp.route("/<group_id>/simplified", methods=["GET"])
@jwt_required()
def simplified_debts(group_id):
    """
    Who should pay whom to settle the group.

    Returns:
    {
        "debts": [{"from": "...", "to": "...", "amount": 30.00}],
        "total": 30.00
    }
    """
    transfers, error = BalanceService(get_store()).get_simplified_debts(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({
        "debts": [t.to_dict() for t in transfers],
        "total": from_cents(sum(t.amount_cents for t in transfers)),
    })
