from flask import Blueprint, jsonify, g

from pulse.helpers.relationships import RelationshipGraph
from pulse.helpers.results import result_response
from pulse.helpers.session import profile_required

friends_bp = Blueprint("friends", __name__)


@friends_bp.route("/api/friends", methods=["GET"])
@profile_required
def friends_overview():
    graph = RelationshipGraph(g.profile)
    friends = graph.friends()
    return jsonify({
        "success": True,
        "friends": friends,
        "incoming_requests": graph.incoming_requests(),
        "outgoing_requests": graph.outgoing_requests(),
        "friend_count": len(friends),
    })


@friends_bp.route("/api/friends/<user_id>/status", methods=["GET"])
@profile_required
def friend_status(user_id):
    graph = RelationshipGraph(g.profile)
    return jsonify({"success": True, "status": graph.get_relationship_status(user_id)})


@friends_bp.route("/api/friends/<user_id>/request", methods=["POST"])
@profile_required
def send_request(user_id):
    return result_response(RelationshipGraph(g.profile).send_friend_request(user_id))


@friends_bp.route("/api/friends/<user_id>/accept", methods=["POST"])
@profile_required
def accept_request(user_id):
    return result_response(RelationshipGraph(g.profile).accept_friend_request(user_id))


@friends_bp.route("/api/friends/<user_id>/ignore", methods=["POST"])
@profile_required
def ignore_request(user_id):
    return result_response(RelationshipGraph(g.profile).ignore_friend_request(user_id))


@friends_bp.route("/api/friends/<user_id>", methods=["DELETE"])
@profile_required
def remove_friend(user_id):
    return result_response(RelationshipGraph(g.profile).unfriend(user_id))
