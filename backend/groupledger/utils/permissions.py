"""Permission helpers."""

def is_creator(user_id, group):
    return getattr(group, "created_by", None) == user_id
