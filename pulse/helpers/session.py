from functools import wraps
from typing import Optional

from flask import session, g, jsonify

from pulse.models import Profile

def get_current_profile() -> Optional[Profile]:
    profile_id = session.get("profile_id")
    if not profile_id:
        return None
    return Profile.query.filter_by(id=profile_id).first()

def bind_profile(profile: Profile):
    session.permanent = True
    session["profile_id"] = profile.id

def clear_profile():
    session.pop("profile_id", None)

def profile_required(view):
    """Resolve the signed-in profile into g.profile, or answer 401."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        profile = get_current_profile()
        if not profile:
            return jsonify({"success": False, "error": "Not logged in", "code": "not_authenticated"}), 401
        g.profile = profile
        return view(*args, **kwargs)
    return wrapped
