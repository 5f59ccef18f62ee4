from flask import Blueprint, request, jsonify, g

from pulse.helpers.challenges import ChallengeEngine
from pulse.helpers.payload import json_object, text_field, invalid
from pulse.helpers.results import result_response
from pulse.helpers.serialize import invite_dict
from pulse.helpers.session import profile_required

challenges_bp = Blueprint("challenges", __name__)


@challenges_bp.route("/api/challenges", methods=["GET"])
@profile_required
def challenges_overview():
    engine = ChallengeEngine(g.profile)
    return jsonify({
        "success": True,
        "incoming_challenges": [invite_dict(i) for i in engine.incoming_challenges()],
        "sent_challenges": [invite_dict(i) for i in engine.sent_challenges()],
    })


@challenges_bp.route("/api/challenges/pending", methods=["GET"])
@profile_required
def pending_check():
    to_user_id = (request.args.get("to_user_id") or "").strip()
    task_id = (request.args.get("task_id") or "").strip()
    if not to_user_id or not task_id:
        return invalid("to_user_id and task_id are required")

    engine = ChallengeEngine(g.profile)
    return jsonify({"success": True, "has_pending_invite": engine.has_pending_invite(to_user_id, task_id)})


@challenges_bp.route("/api/tasks/<task_id>/challenges", methods=["GET"])
@profile_required
def sent_for_task(task_id):
    engine = ChallengeEngine(g.profile)
    return jsonify({
        "success": True,
        "sent_challenges": [invite_dict(i) for i in engine.get_sent_challenges_for_task(task_id)],
    })


@challenges_bp.route("/api/challenges", methods=["POST"])
@profile_required
def send_challenge():
    """
    Payload:
      {"to_user_id": "...", "task_id": "...", "message": "Beat this!"}
    """
    try:
        data = json_object()
        to_user_id = text_field(data, "to_user_id")
        task_id = text_field(data, "task_id")
        message = text_field(data, "message")
    except TypeError as e:
        return invalid(str(e))

    if not to_user_id or not task_id:
        return invalid("to_user_id and task_id are required")

    result = ChallengeEngine(g.profile).send_challenge(to_user_id, task_id, message)
    return result_response(result)


@challenges_bp.route("/api/challenges/<invite_id>/accept", methods=["POST"])
@profile_required
def accept(invite_id):
    return result_response(ChallengeEngine(g.profile).accept_challenge(invite_id))


@challenges_bp.route("/api/challenges/<invite_id>/decline", methods=["POST"])
@profile_required
def decline(invite_id):
    return result_response(ChallengeEngine(g.profile).decline_challenge(invite_id))
