from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from flask import jsonify

# Reason codes for guard rejections
NOT_AUTHENTICATED = "not_authenticated"
SELF_TARGET = "self_target"
RATE_LIMITED = "rate_limited"
IN_FLIGHT = "in_flight"
DUPLICATE = "duplicate"
NOT_FRIEND = "not_friend"
NOT_FOUND = "not_found"
INVALID_STATE = "invalid_state"
FORBIDDEN = "forbidden"
INVALID = "invalid"
STORE_ERROR = "store_error"

HTTP_STATUS_FOR_CODE = {
    NOT_AUTHENTICATED: 401,
    SELF_TARGET: 400,
    INVALID: 400,
    FORBIDDEN: 403,
    NOT_FRIEND: 403,
    NOT_FOUND: 404,
    IN_FLIGHT: 409,
    DUPLICATE: 409,
    INVALID_STATE: 409,
    RATE_LIMITED: 429,
    STORE_ERROR: 500,
}


@dataclass
class ActionResult:
    """Outcome of a mutating social operation."""

    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, error: str) -> "ActionResult":
        return cls(success=False, error=error, code=code)

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        return HTTP_STATUS_FOR_CODE.get(self.code, 400)

    def to_dict(self) -> dict:
        out = {"success": self.success}
        if self.error:
            out["error"] = self.error
        if self.code:
            out["code"] = self.code
        out.update(self.data)
        return out


def result_response(result: ActionResult):
    """(json, status) pair for a blueprint view."""
    return jsonify(result.to_dict()), result.http_status
