from pulse.helpers.time import as_utc


def iso(dt):
    dt = as_utc(dt)
    return dt.isoformat() if dt else None


def profile_dict(profile, include_private: bool = False) -> dict:
    if profile is None:
        return None
    out = {
        "id": profile.id,
        "name": profile.name,
        "profile_image": profile.profile_image,
        "avatar_color": profile.avatar_color,
        "daily_streak": profile.daily_streak or 0,
        "last_completion_at": iso(profile.last_completion_at),
    }
    if include_private:
        out["email"] = profile.email
    return out


def task_dict(task, include_executions: bool = False) -> dict:
    if task is None:
        return None
    out = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "image_url": task.image_url,
        "external_link": task.external_link,
        "created_at": iso(task.created_at),
        "creator_id": task.creator_id,
        "execution_count": len(task.executions),
        "completed_count": sum(1 for e in task.executions if e.completed),
    }
    if include_executions:
        out["executions"] = [execution_dict(e) for e in task.executions]
    return out


def execution_dict(execution) -> dict:
    if execution is None:
        return None
    return {
        "id": execution.id,
        "task_id": execution.task_id,
        "user_id": execution.user_id,
        "executed_at": iso(execution.executed_at),
        "completed": bool(execution.completed),
        "completed_at": iso(execution.completed_at),
    }


def invite_dict(invite) -> dict:
    return {
        "id": invite.id,
        "status": invite.status,
        "message": invite.message,
        "created_at": iso(invite.created_at),
        "responded_at": iso(invite.responded_at),
        "completed_at": iso(invite.completed_at),
        "from_user": profile_dict(invite.from_user),
        "to_user": profile_dict(invite.to_user),
        "task": {
            "id": invite.task.id,
            "title": invite.task.title,
            "description": invite.task.description,
            "image_url": invite.task.image_url,
        } if invite.task else None,
        "execution": {
            "id": invite.execution.id,
            "completed": bool(invite.execution.completed),
            "completed_at": iso(invite.execution.completed_at),
        } if invite.execution else None,
    }
