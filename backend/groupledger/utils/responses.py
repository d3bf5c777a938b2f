"""JSON response helpers shared by the blueprints."""
from flask import jsonify


def error_response(error):
    return jsonify(error.to_dict()), error.status_code
