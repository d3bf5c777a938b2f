from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from groupledger.errors import InvalidInputError, NotFoundError
from groupledger.extensions import get_store
from groupledger.utils.validators import optional_str, require_keys

users_bp = Blueprint("users", __name__)

@users_bp.route("/profile", methods=["GET"])
@jwt_required()
def profile():
    profile = get_store().get_profile(get_jwt_identity())
    if not profile:
        raise NotFoundError("User not found")
    return jsonify(profile.to_dict())


@users_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """Create or update the caller's profile so others can find them by email."""
    data = request.get_json(silent=True) or {}
    require_keys(data, "email")
    store = get_store()
    uid = get_jwt_identity()

    if not isinstance(data["email"], str) or "@" not in data["email"]:
        raise InvalidInputError("A valid email is required")
    email = data["email"].strip().lower()
    existing = store.get_profile_by_email(email)
    if existing and existing.id != uid:
        raise InvalidInputError("Email already in use")

    profile = store.upsert_profile(uid, email, (optional_str(data, "full_name") or "").strip() or None)
    return jsonify(profile.to_dict())


@users_bp.route("/search", methods=["GET"])
@jwt_required()
def search_users():
    """Search for users by email or name."""
    query = request.args.get("q", "").strip()

    if len(query) < 2:
        return jsonify({"users": []})

    users = get_store().search_profiles(query, exclude_id=get_jwt_identity())
    return jsonify({"users": [u.to_dict() for u in users]})
