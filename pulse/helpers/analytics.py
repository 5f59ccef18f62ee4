from flask import current_app

# Product events recorded by the social + task flows
EVENTS = {
    "profile_completed",
    "profile_updated",
    "task_created",
    "task_executed",
    "task_completed",
    "friend_request_sent",
    "friend_request_accepted",
    "friend_request_ignored",
    "friend_removed",
    "challenge_sent",
    "challenge_accepted",
    "challenge_declined",
    "challenge_completed",
}


def track_event(event: str, properties: dict = None):
    if event not in EVENTS:
        raise ValueError(f"unknown analytics event: {event}")

    current_app.logger.info("[ANALYTICS] %s %s", event, properties or {})
