"""Group and membership routes."""
from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from groupledger.core import GroupService
from groupledger.extensions import get_store
from groupledger.utils.responses import error_response
from groupledger.utils.validators import optional_str, require_keys, require_str

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
@jwt_required()
def create_group():
    """
    Create a group; the caller becomes its creator and first member.

    Request body:
    {
        "name": "Lisbon trip",
        "description": "optional"
    }
    """
    data = request.get_json(silent=True) or {}
    require_keys(data, "name")

    group, error = GroupService(get_store()).create_group(
        name=require_str(data, "name"),
        created_by=get_jwt_identity(),
        description=optional_str(data, "description"),
    )
    if error:
        return error_response(error)
    return jsonify(group.to_dict()), 201


@groups_bp.route("/", methods=["GET"])
@jwt_required()
def list_groups():
    groups, error = GroupService(get_store()).get_user_groups(get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"groups": [g.to_dict() for g in groups]})


@groups_bp.route("/<group_id>", methods=["GET"])
@jwt_required()
def get_group(group_id):
    details, error = GroupService(get_store()).get_group_details(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({
        "group": details["group"].to_dict(),
        "members": [m.to_dict() for m in details["members"]],
    })


@groups_bp.route("/<group_id>", methods=["DELETE"])
@jwt_required()
def delete_group(group_id):
    _, error = GroupService(get_store()).delete_group(group_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"deleted": True})


@groups_bp.route("/<group_id>/members", methods=["POST"])
@jwt_required()
def add_member(group_id):
    """
    Add a member by user id or email (creator only).

    Request body:
    {"user_id": "..."} or {"email": "bob@example.com"}
    """
    data = request.get_json(silent=True) or {}
    profile, error = GroupService(get_store()).add_member(
        group_id,
        requested_by=get_jwt_identity(),
        user_id=optional_str(data, "user_id"),
        email=optional_str(data, "email"),
    )
    if error:
        return error_response(error)
    return jsonify(profile.to_dict()), 201


@groups_bp.route("/<group_id>/members/<user_id>", methods=["DELETE"])
@jwt_required()
def remove_member(group_id, user_id):
    _, error = GroupService(get_store()).remove_member(group_id, user_id, get_jwt_identity())
    if error:
        return error_response(error)
    return jsonify({"removed": True})
