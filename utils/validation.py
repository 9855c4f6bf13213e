def parse_user_id(value):
    """Positive integer id from JSON, or None. JSON booleans are not ids."""
    if isinstance(value, bool):
        return None
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None
