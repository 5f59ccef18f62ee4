from flask import Blueprint, jsonify, g

from pulse.extensions import atomic
from pulse.models import Profile
from pulse.helpers.analytics import track_event
from pulse.helpers.email import normalize_email
from pulse.helpers.payload import json_object, text_field, invalid
from pulse.helpers.relationships import RelationshipGraph
from pulse.helpers.serialize import profile_dict
from pulse.helpers.session import get_current_profile, bind_profile, clear_profile, profile_required

profiles_bp = Blueprint("profiles", __name__)

EDITABLE_FIELDS = ("name", "email", "profile_image", "avatar_color")


def _clean(data: dict) -> dict:
    out = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = text_field(data, key)
        if key == "email":
            value = normalize_email(value)
        out[key] = value or None
    return out


@profiles_bp.route("/api/profiles", methods=["POST"])
def save_profile():
    """
    First profile save creates the profile and binds it to the session.
    Saving again (already bound) updates it.

    Payload:
      {"name": "Sam", "email": "sam@example.com", "avatar_color": "#ff8800"}
    """
    try:
        fields = _clean(json_object())
    except TypeError as e:
        return invalid(str(e))

    profile = get_current_profile()
    if profile is None:
        if not fields.get("name"):
            return invalid("Name is required")

        profile = Profile(daily_streak=0, **fields)
        with atomic() as session:
            session.add(profile)
        bind_profile(profile)
        track_event("profile_completed", {"profileId": profile.id})
        return jsonify({"success": True, "profile": profile_dict(profile, include_private=True)}), 201

    return _update(profile, fields)


def _update(profile, fields):
    if "name" in fields and not fields["name"]:
        return invalid("Name is required")

    with atomic():
        for key, value in fields.items():
            setattr(profile, key, value)

    track_event("profile_updated", {"profileId": profile.id, "fields": sorted(fields)})
    return jsonify({"success": True, "profile": profile_dict(profile, include_private=True)})


@profiles_bp.route("/api/profiles/me", methods=["GET"])
@profile_required
def my_profile():
    return jsonify({"success": True, "profile": profile_dict(g.profile, include_private=True)})


@profiles_bp.route("/api/profiles/me", methods=["PATCH"])
@profile_required
def edit_my_profile():
    try:
        fields = _clean(json_object())
    except TypeError as e:
        return invalid(str(e))
    return _update(g.profile, fields)


@profiles_bp.route("/api/profiles/<profile_id>", methods=["GET"])
@profile_required
def view_profile(profile_id):
    profile = Profile.query.filter_by(id=profile_id).first()
    if not profile:
        return jsonify({"success": False, "error": "Profile not found", "code": "not_found"}), 404

    graph = RelationshipGraph(g.profile)
    return jsonify({
        "success": True,
        "profile": profile_dict(profile),
        "relationship_status": graph.get_relationship_status(profile.id),
    })


@profiles_bp.route("/api/session/logout", methods=["POST"])
def logout():
    clear_profile()
    return jsonify({"success": True})
