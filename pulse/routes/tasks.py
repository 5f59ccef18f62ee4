from flask import Blueprint, jsonify, g

from pulse.models import Task
from pulse.helpers.payload import json_object, text_field, invalid
from pulse.helpers.results import result_response
from pulse.helpers.serialize import task_dict
from pulse.helpers.session import profile_required
from pulse.helpers.task_feed import create_task, execute_task, complete_execution

tasks_bp = Blueprint("tasks", __name__)


@tasks_bp.route("/api/tasks", methods=["GET"])
@profile_required
def task_feed():
    tasks = Task.query.order_by(Task.created_at.desc()).all()
    return jsonify({"success": True, "tasks": [task_dict(t) for t in tasks]})


@tasks_bp.route("/api/tasks", methods=["POST"])
@profile_required
def new_task():
    try:
        data = json_object()
        fields = {key: text_field(data, key) for key in ("title", "description", "image_url", "external_link")}
    except TypeError as e:
        return invalid(str(e))

    result = create_task(g.profile, **fields)
    body, status = result_response(result)
    return body, (201 if result.success else status)


@tasks_bp.route("/api/tasks/<task_id>", methods=["GET"])
@profile_required
def task_detail(task_id):
    task = Task.query.filter_by(id=task_id).first()
    if not task:
        return jsonify({"success": False, "error": "Task not found", "code": "not_found"}), 404
    return jsonify({"success": True, "task": task_dict(task, include_executions=True)})


@tasks_bp.route("/api/tasks/<task_id>/execute", methods=["POST"])
@profile_required
def execute(task_id):
    return result_response(execute_task(g.profile, task_id))


@tasks_bp.route("/api/executions/<execution_id>/complete", methods=["POST"])
@profile_required
def complete(execution_id):
    return result_response(complete_execution(g.profile, execution_id))
