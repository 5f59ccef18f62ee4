from flask import request, jsonify


def json_object() -> dict:
    """The request body as a dict; a missing or unparseable body counts as empty."""
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError("Request body must be a JSON object")
    return data


def text_field(data: dict, key: str):
    """Stripped string value of data[key], None when absent or blank."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value.strip() or None


def invalid(error: str):
    return jsonify({"success": False, "error": error, "code": "invalid"}), 400
