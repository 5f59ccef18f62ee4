from pulse.extensions import db
from pulse.models import Execution
from pulse.helpers.ids import new_id
from pulse.helpers.time import utcnow, days_between


def start_execution(task_id, profile, execution_id=None) -> Execution:
    """
    Add an in-progress execution of task_id for profile to the session.

    Shared by the "Execute" button and by accepting a challenge so both
    produce the same row. Caller commits.
    """
    execution = Execution(
        id=execution_id or new_id(),
        task_id=task_id,
        user_id=profile.id if profile else None,
        executed_at=utcnow(),
        completed=False,
    )
    db.session.add(execution)
    return execution


def next_streak(current: int, last_completion_at, now) -> int:
    """
    Streak after completing something at `now`.

    Yesterday -> +1, today -> unchanged, older or never -> restart at 1.
    """
    current = current or 0
    days = days_between(last_completion_at, now)
    if days is None or days > 1:
        return 1
    if days == 1:
        return current + 1
    return max(current, 1)


def apply_streak(profile, now):
    profile.daily_streak = next_streak(profile.daily_streak, profile.last_completion_at, now)
    profile.last_completion_at = now
    return profile.daily_streak
