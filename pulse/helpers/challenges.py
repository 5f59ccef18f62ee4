"""
Challenge invites: one friend daring another to do a task.

    pending --accept--> accepted --mark_challenge_completed--> completed
    pending --decline--> declined

Unlike the friendship graph, every failure here comes back with a message
the UI can show as-is.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pulse.extensions import db, atomic
from pulse.models import (
    ChallengeInvite,
    Task,
    CHALLENGE_PENDING,
    CHALLENGE_ACCEPTED,
    CHALLENGE_DECLINED,
    CHALLENGE_COMPLETED,
)
from pulse.helpers.analytics import track_event
from pulse.helpers.email import send_challenge_email
from pulse.helpers.executions import start_execution
from pulse.helpers.ids import new_id
from pulse.helpers.inflight import CHALLENGE_LOCKS
from pulse.helpers.relationships import RelationshipGraph
from pulse.helpers.results import (
    ActionResult,
    NOT_AUTHENTICATED,
    SELF_TARGET,
    NOT_FRIEND,
    DUPLICATE,
    IN_FLIGHT,
    NOT_FOUND,
    INVALID_STATE,
    FORBIDDEN,
    INVALID,
    STORE_ERROR,
)
from pulse.helpers.time import utcnow

NOT_PENDING_MESSAGE = "Invite not found or already responded"


class InviteNoLongerPending(Exception):
    """Someone else answered the invite between our read and our write."""


class ChallengeEngine:
    def __init__(self, viewer, graph=None, locks=CHALLENGE_LOCKS):
        self.viewer = viewer
        self.graph = graph or RelationshipGraph(viewer)
        self.locks = locks

    @property
    def viewer_id(self):
        return self.viewer.id if self.viewer else None

    # --- derived views ---

    def incoming_challenges(self):
        if not self.viewer_id:
            return []
        return (
            ChallengeInvite.query
            .filter_by(to_user_id=self.viewer_id, status=CHALLENGE_PENDING)
            .order_by(ChallengeInvite.created_at.desc())
            .all()
        )

    def sent_challenges(self):
        if not self.viewer_id:
            return []
        return (
            ChallengeInvite.query
            .filter_by(from_user_id=self.viewer_id)
            .order_by(ChallengeInvite.created_at.desc())
            .all()
        )

    def get_sent_challenges_for_task(self, task_id):
        return [inv for inv in self.sent_challenges() if inv.task_id == task_id]

    def has_pending_invite(self, to_user_id, task_id) -> bool:
        if not self.viewer_id:
            return False
        return (
            ChallengeInvite.query
            .filter_by(
                from_user_id=self.viewer_id,
                to_user_id=to_user_id,
                task_id=task_id,
                status=CHALLENGE_PENDING,
            )
            .first()
            is not None
        )

    def is_friend(self, user_id) -> bool:
        return self.graph.is_friend(user_id)

    # --- mutations ---

    def _load_pending_for_me(self, invite_id):
        """Return (invite, None) if the viewer may answer it, else (None, failure)."""
        invite = ChallengeInvite.query.filter_by(id=invite_id).first()
        if not invite:
            return None, ActionResult.fail(NOT_FOUND, NOT_PENDING_MESSAGE)
        if invite.status != CHALLENGE_PENDING:
            return None, ActionResult.fail(INVALID_STATE, NOT_PENDING_MESSAGE)
        if invite.to_user_id != self.viewer_id:
            return None, ActionResult.fail(FORBIDDEN, "Not your invite")
        return invite, None

    def _respond(self, invite_id, values):
        """Compare-and-set the invite out of pending."""
        updated = (
            ChallengeInvite.query
            .filter_by(id=invite_id, status=CHALLENGE_PENDING)
            .update(values)
        )
        if not updated:
            raise InviteNoLongerPending(invite_id)

    def send_challenge(self, to_user_id, task_id, message=None) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")
        if to_user_id == self.viewer_id:
            return ActionResult.fail(SELF_TARGET, "Cannot challenge yourself")

        if not self.is_friend(to_user_id):
            return ActionResult.fail(NOT_FRIEND, "Can only challenge accepted friends")

        if self.has_pending_invite(to_user_id, task_id):
            return ActionResult.fail(DUPLICATE, "Challenge already sent for this task")

        message = (message or "").strip() or None
        max_len = current_app.config.get("CHALLENGE_MESSAGE_MAX_LENGTH", 200)
        if message and len(message) > max_len:
            return ActionResult.fail(INVALID, f"Message must be {max_len} characters or fewer")

        task = Task.query.filter_by(id=task_id).first()
        if not task:
            return ActionResult.fail(NOT_FOUND, "Task not found")

        lock_key = f"{to_user_id}:{task_id}"
        if not self.locks.claim(self.viewer_id, lock_key):
            return ActionResult.fail(IN_FLIGHT, "Already sending")

        invite_id = new_id()
        try:
            with atomic():
                invite = ChallengeInvite(
                    id=invite_id,
                    from_user_id=self.viewer_id,
                    to_user_id=to_user_id,
                    task_id=task_id,
                    message=message,
                    status=CHALLENGE_PENDING,
                    created_at=utcnow(),
                )
                db.session.add(invite)
        except IntegrityError:
            return ActionResult.fail(DUPLICATE, "Challenge already sent for this task")
        except SQLAlchemyError as e:
            current_app.logger.error("[CHALLENGE] send failed %s -> %s: %s", self.viewer_id, to_user_id, e)
            return ActionResult.fail(STORE_ERROR, str(e))
        finally:
            self.locks.release(self.viewer_id, lock_key)

        track_event("challenge_sent", {
            "inviteId": invite_id,
            "taskId": task_id,
            "toUserId": to_user_id,
            "hasMessage": bool(message),
        })
        send_challenge_email(invite.to_user, self.viewer, task, message)
        return ActionResult.ok(invite_id=invite_id)

    def accept_challenge(self, invite_id) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        invite, failure = self._load_pending_for_me(invite_id)
        if failure:
            return failure

        if not self.locks.claim(self.viewer_id, invite_id):
            return ActionResult.fail(IN_FLIGHT, "Already processing")

        try:
            task_id = invite.task_id
            if not task_id:
                return ActionResult.fail(INVALID_STATE, "No task linked to invite")

            execution_id = new_id()
            now = utcnow()
            with atomic():
                start_execution(task_id, self.viewer, execution_id)
                db.session.flush()
                self._respond(invite_id, {
                    "status": CHALLENGE_ACCEPTED,
                    "responded_at": now,
                    "execution_id": execution_id,
                })
        except InviteNoLongerPending:
            return ActionResult.fail(INVALID_STATE, NOT_PENDING_MESSAGE)
        except SQLAlchemyError as e:
            current_app.logger.error("[CHALLENGE] accept failed invite=%s: %s", invite_id, e)
            return ActionResult.fail(STORE_ERROR, str(e))
        finally:
            self.locks.release(self.viewer_id, invite_id)

        track_event("challenge_accepted", {
            "inviteId": invite_id,
            "taskId": task_id,
            "executionId": execution_id,
            "fromUserId": invite.from_user_id,
        })
        return ActionResult.ok(invite_id=invite_id, execution_id=execution_id)

    def decline_challenge(self, invite_id) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        invite, failure = self._load_pending_for_me(invite_id)
        if failure:
            return failure

        try:
            with atomic():
                self._respond(invite_id, {
                    "status": CHALLENGE_DECLINED,
                    "responded_at": utcnow(),
                })
        except InviteNoLongerPending:
            return ActionResult.fail(INVALID_STATE, NOT_PENDING_MESSAGE)
        except SQLAlchemyError as e:
            current_app.logger.error("[CHALLENGE] decline failed invite=%s: %s", invite_id, e)
            return ActionResult.fail(STORE_ERROR, str(e))

        track_event("challenge_declined", {
            "inviteId": invite_id,
            "taskId": invite.task_id,
            "fromUserId": invite.from_user_id,
        })
        return ActionResult.ok(invite_id=invite_id)

    def mark_challenge_completed(self, execution_id) -> ActionResult:
        """
        Called by the task feed after the viewer finishes an execution.
        Most executions have no challenge behind them; that is a successful no-op.
        """
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        invite = (
            ChallengeInvite.query
            .filter_by(
                execution_id=execution_id,
                status=CHALLENGE_ACCEPTED,
                to_user_id=self.viewer_id,
            )
            .first()
        )
        if not invite:
            return ActionResult.ok(completed=False)

        try:
            with atomic():
                invite.status = CHALLENGE_COMPLETED
                invite.completed_at = utcnow()
        except SQLAlchemyError as e:
            current_app.logger.error("[CHALLENGE] complete failed invite=%s: %s", invite.id, e)
            return ActionResult.fail(STORE_ERROR, str(e))

        track_event("challenge_completed", {
            "inviteId": invite.id,
            "taskId": invite.task_id,
            "executionId": execution_id,
            "fromUserId": invite.from_user_id,
        })
        return ActionResult.ok(completed=True, invite_id=invite.id)
