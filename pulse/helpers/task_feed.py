from flask import current_app

from pulse.extensions import atomic
from pulse.models import Execution, Task
from pulse.helpers.analytics import track_event
from pulse.helpers.challenges import ChallengeEngine
from pulse.helpers.executions import start_execution, apply_streak
from pulse.helpers.ids import new_id
from pulse.helpers.results import ActionResult, NOT_FOUND, FORBIDDEN, INVALID, INVALID_STATE
from pulse.helpers.time import utcnow


def create_task(profile, title, description, image_url=None, external_link=None) -> ActionResult:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        return ActionResult.fail(INVALID, "Title and description are required")

    task_id = new_id()
    with atomic() as session:
        session.add(Task(
            id=task_id,
            title=title,
            description=description,
            image_url=(image_url or "").strip() or None,
            external_link=(external_link or "").strip() or None,
            creator_id=profile.id,
            created_at=utcnow(),
        ))

    track_event("task_created", {"taskId": task_id})
    return ActionResult.ok(task_id=task_id)


def execute_task(profile, task_id) -> ActionResult:
    """The normal "Execute" button."""
    task = Task.query.filter_by(id=task_id).first()
    if not task:
        return ActionResult.fail(NOT_FOUND, "Task not found")

    with atomic():
        execution = start_execution(task.id, profile)
        execution_id = execution.id

    track_event("task_executed", {"taskId": task_id, "executionId": execution_id})
    return ActionResult.ok(execution_id=execution_id)


def complete_execution(profile, execution_id) -> ActionResult:
    """
    Mark one of the viewer's executions done, bump their streak, and then
    let the challenge engine close out any accepted challenge tied to it.
    """
    execution = Execution.query.filter_by(id=execution_id).first()
    if not execution:
        return ActionResult.fail(NOT_FOUND, "Execution not found")
    if execution.user_id != profile.id:
        return ActionResult.fail(FORBIDDEN, "Not your execution")
    if execution.completed:
        return ActionResult.fail(INVALID_STATE, "Execution already completed")

    now = utcnow()
    with atomic():
        execution.completed = True
        execution.completed_at = now
        streak = apply_streak(profile, now)

    track_event("task_completed", {"taskId": execution.task_id, "executionId": execution_id})

    challenge = ChallengeEngine(profile).mark_challenge_completed(execution_id)
    if not challenge.success:
        # The execution itself is done; report but don't undo it
        current_app.logger.warning(
            "[TASKS] challenge completion failed execution=%s: %s", execution_id, challenge.error
        )

    return ActionResult.ok(
        execution_id=execution_id,
        daily_streak=streak,
        challenge_completed=bool(challenge.data.get("completed")),
    )
