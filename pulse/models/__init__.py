from .profile import Profile
from .task import Task
from .execution import Execution
from .relationship import Relationship, RELATIONSHIP_PENDING, RELATIONSHIP_ACCEPTED
from .challenge_invite import (
    ChallengeInvite,
    CHALLENGE_PENDING,
    CHALLENGE_ACCEPTED,
    CHALLENGE_DECLINED,
    CHALLENGE_COMPLETED,
)

__all__ = [
    "Profile",
    "Task",
    "Execution",
    "Relationship",
    "ChallengeInvite",
    "RELATIONSHIP_PENDING",
    "RELATIONSHIP_ACCEPTED",
    "CHALLENGE_PENDING",
    "CHALLENGE_ACCEPTED",
    "CHALLENGE_DECLINED",
    "CHALLENGE_COMPLETED",
]
