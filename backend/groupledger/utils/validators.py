"""Request validators."""
from groupledger.errors import InvalidInputError


def require_keys(payload, *keys):
    missing = [k for k in keys if (payload or {}).get(k) in (None, "")]
    if missing:
        raise InvalidInputError(f"Missing required fields: {', '.join(missing)}")
    return True


def require_id_list(payload, key):
    value = (payload or {}).get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise InvalidInputError(f"{key} must be a list of user ids")
    return value


def optional_mapping(payload, key):
    value = (payload or {}).get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InvalidInputError(f"{key} must be an object keyed by user id")
    return value


def require_str(payload, key):
    value = (payload or {}).get(key)
    if value in (None, ""):
        raise InvalidInputError(f"Missing required fields: {key}")
    if not isinstance(value, str):
        raise InvalidInputError(f"{key} must be a string")
    return value


def optional_str(payload, key):
    value = (payload or {}).get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(f"{key} must be a string")
    return value
