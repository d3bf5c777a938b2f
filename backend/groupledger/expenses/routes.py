# groupledger/expenses/routes.py

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from groupledger.core import ExpenseService, validate_split
from groupledger.extensions import get_store
from groupledger.utils.money import from_cents
from groupledger.utils.responses import error_response
from groupledger.utils.validators import (
    optional_mapping,
    optional_str,
    require_id_list,
    require_keys,
    require_str,
)

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/", methods=["POST"])
@jwt_required()
def add_expense():
    """
    Add an expense and update balances.

    Request body:
    {
        "group_id": "...",
        "description": "Dinner",
        "amount": 90.00,
        "paid_by": "...",                 // optional, defaults to the caller
        "split_type": "equal|exact|percentage",   // default: equal
        "participant_ids": ["...", "..."],
        "custom_amounts": {"<user_id>": 60.0},       // exact only
        "custom_percentages": {"<user_id>": 40.0}    // percentage only
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "group_id", "description", "amount")
    caller = get_jwt_identity()

    result, error = ExpenseService(get_store()).add_expense(
        group_id=require_str(data, "group_id"),
        description=require_str(data, "description"),
        amount=data["amount"],
        paid_by=optional_str(data, "paid_by") or caller,
        split_type=data.get("split_type", "equal"),
        participant_ids=require_id_list(data, "participant_ids"),
        custom_amounts=optional_mapping(data, "custom_amounts"),
        custom_percentages=optional_mapping(data, "custom_percentages"),
        recorded_by=caller,
    )
    if error:
        return error_response(error)
    return jsonify(result.to_dict()), 201


@expenses_bp.route("/preview", methods=["POST"])
@jwt_required()
def preview_split():
    """Calculate a split without recording anything."""
    data = request.get_json(silent=True) or {}
    require_keys(data, "amount")
    split_type = data.get("split_type", "equal")
    custom = optional_mapping(data, "custom_percentages" if split_type == "percentage" else "custom_amounts")

    splits, error = ExpenseService(get_store()).preview_split(
        data["amount"], require_id_list(data, "participant_ids"), split_type, custom
    )
    if error:
        return error_response(error)
    assigned = sum(s.amount_cents for s in splits)
    return jsonify({
        "splits": [s.to_dict() for s in splits],
        "total_assigned": from_cents(assigned),
    })


@expenses_bp.route("/validate", methods=["POST"])
@jwt_required()
def check_split():
    data = request.get_json(silent=True) or {}
    require_keys(data, "amount")
    split_type = data.get("split_type", "equal")
    custom = optional_mapping(data, "custom_percentages" if split_type == "percentage" else "custom_amounts")

    valid, message = validate_split(data["amount"], split_type, custom)
    return jsonify({"valid": valid, "error": message})


@expenses_bp.route("/group/<group_id>", methods=["GET"])
@jwt_required()
def list_group_expenses(group_id):
    service = ExpenseService(get_store())
    expenses, error = service.get_group_expenses(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify(service.summarize(expenses))


@expenses_bp.route("/<expense_id>", methods=["DELETE"])
@jwt_required()
def delete_expense(expense_id):
    _, error = ExpenseService(get_store()).delete_expense(expense_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"deleted": True})
