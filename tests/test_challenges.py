"""Tests for pulse/helpers/challenges.py

Challenges ride on top of the friendship graph: only accepted friends can
dare each other, one open dare per (friend, task), and accepting spawns
exactly one execution.
"""

import pytest

from pulse.extensions import db
from pulse.models import (
    ChallengeInvite,
    Execution,
    Task,
    CHALLENGE_PENDING,
    CHALLENGE_ACCEPTED,
    CHALLENGE_DECLINED,
    CHALLENGE_COMPLETED,
)
from pulse.helpers.challenges import ChallengeEngine
from pulse.helpers.ids import new_id
from pulse.helpers.relationships import RelationshipGraph
from pulse.helpers.results import (
    NOT_AUTHENTICATED,
    SELF_TARGET,
    NOT_FRIEND,
    DUPLICATE,
    IN_FLIGHT,
    NOT_FOUND,
    INVALID_STATE,
    FORBIDDEN,
    INVALID,
)


@pytest.fixture
def make_task(app):
    def _make(title="Cold shower", creator=None):
        task = Task(
            id=new_id(),
            title=title,
            description=f"{title} for five minutes",
            creator_id=creator.id if creator else None,
        )
        db.session.add(task)
        db.session.commit()
        return task
    return _make


@pytest.fixture
def befriend():
    def _befriend(a, b):
        assert RelationshipGraph(a).send_friend_request(b.id).success
        assert RelationshipGraph(b).accept_friend_request(a.id).success
    return _befriend


@pytest.fixture
def friends(alice, bob, befriend):
    befriend(alice, bob)
    return alice, bob


# ─────────────────────────────────────────────────────────────────────────────
# Sending
# ─────────────────────────────────────────────────────────────────────────────


class TestSendChallenge:
    def test_friend_can_be_challenged(self, friends, make_task):
        alice, bob = friends
        task = make_task()

        result = ChallengeEngine(alice).send_challenge(bob.id, task.id, "  Beat this!  ")

        assert result.success is True
        invite = db.session.get(ChallengeInvite, result.data["invite_id"])
        assert invite.status == CHALLENGE_PENDING
        assert invite.message == "Beat this!"
        assert invite.from_user_id == alice.id
        assert invite.to_user_id == bob.id
        assert invite.task_id == task.id
        assert invite.execution_id is None

    def test_blank_message_stored_as_absent(self, friends, make_task):
        alice, bob = friends
        task = make_task()

        result = ChallengeEngine(alice).send_challenge(bob.id, task.id, "   ")

        invite = db.session.get(ChallengeInvite, result.data["invite_id"])
        assert invite.message is None

    def test_message_length_capped(self, friends, make_task):
        alice, bob = friends
        task = make_task()

        result = ChallengeEngine(alice).send_challenge(bob.id, task.id, "x" * 201)

        assert result.code == INVALID
        assert ChallengeInvite.query.count() == 0

    def test_message_at_cap_is_fine(self, friends, make_task):
        alice, bob = friends
        task = make_task()

        assert ChallengeEngine(alice).send_challenge(bob.id, task.id, "x" * 200).success

    def test_requires_login(self, bob, make_task):
        result = ChallengeEngine(None).send_challenge(bob.id, make_task().id)

        assert result.code == NOT_AUTHENTICATED
        assert result.error == "Not logged in"

    def test_cannot_challenge_yourself(self, alice, make_task):
        result = ChallengeEngine(alice).send_challenge(alice.id, make_task().id)

        assert result.code == SELF_TARGET
        assert result.error == "Cannot challenge yourself"

    def test_stranger_cannot_be_challenged(self, alice, bob, make_task):
        result = ChallengeEngine(alice).send_challenge(bob.id, make_task().id)

        assert result.success is False
        assert result.code == NOT_FRIEND
        assert result.error == "Can only challenge accepted friends"

    def test_pending_request_is_not_enough(self, alice, bob, make_task):
        RelationshipGraph(alice).send_friend_request(bob.id)

        result = ChallengeEngine(alice).send_challenge(bob.id, make_task().id)

        assert result.code == NOT_FRIEND

    def test_unfriended_peer_is_rejected_immediately(self, friends, make_task):
        alice, bob = friends
        engine = ChallengeEngine(alice)
        RelationshipGraph(bob).unfriend(alice.id)

        assert engine.send_challenge(bob.id, make_task().id).code == NOT_FRIEND

    def test_second_send_is_duplicate(self, friends, make_task):
        alice, bob = friends
        task = make_task()
        engine = ChallengeEngine(alice)

        engine.send_challenge(bob.id, task.id)
        result = engine.send_challenge(bob.id, task.id)

        assert engine.has_pending_invite(bob.id, task.id) is True
        assert result.code == DUPLICATE
        assert result.error == "Challenge already sent for this task"
        assert ChallengeInvite.query.count() == 1

    def test_other_task_is_not_duplicate(self, friends, make_task):
        alice, bob = friends
        engine = ChallengeEngine(alice)

        assert engine.send_challenge(bob.id, make_task("A").id).success
        assert engine.send_challenge(bob.id, make_task("B").id).success

    def test_can_resend_after_decline(self, friends, make_task):
        alice, bob = friends
        task = make_task()
        first = ChallengeEngine(alice).send_challenge(bob.id, task.id)
        ChallengeEngine(bob).decline_challenge(first.data["invite_id"])

        assert ChallengeEngine(alice).send_challenge(bob.id, task.id).success

    def test_in_flight_send_rejected(self, friends, make_task):
        alice, bob = friends
        task = make_task()
        engine = ChallengeEngine(alice)
        engine.locks.claim(alice.id, f"{bob.id}:{task.id}")

        result = engine.send_challenge(bob.id, task.id)

        assert result.code == IN_FLIGHT
        assert result.error == "Already sending"

    def test_unknown_task(self, friends):
        alice, bob = friends

        assert ChallengeEngine(alice).send_challenge(bob.id, new_id()).code == NOT_FOUND

    def test_database_rejects_second_pending_invite(self, friends, make_task, monkeypatch):
        alice, bob = friends
        task = make_task()
        engine = ChallengeEngine(alice)
        engine.send_challenge(bob.id, task.id)
        # Stale view: pretend we didn't see the first invite
        monkeypatch.setattr(engine, "has_pending_invite", lambda to_user_id, task_id: False)

        result = engine.send_challenge(bob.id, task.id)

        assert result.code == DUPLICATE
        assert ChallengeInvite.query.count() == 1

    def test_challenge_email_dev_fallback(self, alice, make_profile, befriend, make_task, capsys):
        erin = make_profile("Erin", email="erin@example.com")
        befriend(alice, erin)

        ChallengeEngine(alice).send_challenge(erin.id, make_task("Run 5k").id, "Go!")

        assert "[CHALLENGE - DEV ONLY] Alice -> erin@example.com: Run 5k" in capsys.readouterr().err


# ─────────────────────────────────────────────────────────────────────────────
# Responding
# ─────────────────────────────────────────────────────────────────────────────


class TestAcceptChallenge:
    def test_accept_creates_one_linked_execution(self, friends, make_task):
        alice, bob = friends
        task = make_task()
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, task.id).data["invite_id"]

        result = ChallengeEngine(bob).accept_challenge(invite_id)

        assert result.success is True
        invite = db.session.get(ChallengeInvite, invite_id)
        assert invite.status == CHALLENGE_ACCEPTED
        assert invite.responded_at is not None
        executions = Execution.query.all()
        assert len(executions) == 1
        execution = executions[0]
        assert invite.execution_id == execution.id == result.data["execution_id"]
        assert execution.task_id == task.id
        assert execution.user_id == bob.id
        assert execution.completed is False
        assert execution.executed_at is not None

    def test_second_accept_fails(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        engine = ChallengeEngine(bob)
        engine.accept_challenge(invite_id)

        result = engine.accept_challenge(invite_id)

        assert result.code == INVALID_STATE
        assert result.error == "Invite not found or already responded"
        assert Execution.query.count() == 1

    def test_only_recipient_can_accept(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]

        result = ChallengeEngine(alice).accept_challenge(invite_id)

        assert result.code == FORBIDDEN
        assert result.error == "Not your invite"
        assert Execution.query.count() == 0

    def test_unknown_invite(self, bob):
        assert ChallengeEngine(bob).accept_challenge(new_id()).code == NOT_FOUND

    def test_in_flight_accept_rejected(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        engine = ChallengeEngine(bob)
        engine.locks.claim(bob.id, invite_id)

        result = engine.accept_challenge(invite_id)

        assert result.error == "Already processing"
        assert Execution.query.count() == 0

    def test_invite_without_task(self, friends):
        alice, bob = friends
        invite = ChallengeInvite(id=new_id(), from_user_id=alice.id, to_user_id=bob.id, status=CHALLENGE_PENDING)
        db.session.add(invite)
        db.session.commit()

        result = ChallengeEngine(bob).accept_challenge(invite.id)

        assert result.error == "No task linked to invite"
        assert Execution.query.count() == 0

    def test_answered_between_read_and_write(self, friends, make_task, monkeypatch):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        engine = ChallengeEngine(bob)
        real_load = engine._load_pending_for_me

        def load_then_decline(invite_id):
            loaded = real_load(invite_id)
            # Another device declines right after we read it
            ChallengeInvite.query.filter_by(id=invite_id).update({"status": CHALLENGE_DECLINED})
            db.session.commit()
            return loaded

        monkeypatch.setattr(engine, "_load_pending_for_me", load_then_decline)

        result = engine.accept_challenge(invite_id)

        assert result.code == INVALID_STATE
        assert Execution.query.count() == 0
        assert db.session.get(ChallengeInvite, invite_id).status == CHALLENGE_DECLINED


class TestDeclineChallenge:
    def test_decline_is_terminal(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        engine = ChallengeEngine(bob)

        assert engine.decline_challenge(invite_id).success
        invite = db.session.get(ChallengeInvite, invite_id)
        assert invite.status == CHALLENGE_DECLINED
        assert invite.responded_at is not None
        assert invite.execution_id is None

        assert engine.accept_challenge(invite_id).code == INVALID_STATE
        assert engine.decline_challenge(invite_id).code == INVALID_STATE
        assert Execution.query.count() == 0

    def test_only_recipient_can_decline(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]

        assert ChallengeEngine(alice).decline_challenge(invite_id).code == FORBIDDEN
        assert db.session.get(ChallengeInvite, invite_id).status == CHALLENGE_PENDING


class TestMarkChallengeCompleted:
    def test_completes_accepted_invite(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        execution_id = ChallengeEngine(bob).accept_challenge(invite_id).data["execution_id"]

        result = ChallengeEngine(bob).mark_challenge_completed(execution_id)

        assert result.success is True
        assert result.data["completed"] is True
        invite = db.session.get(ChallengeInvite, invite_id)
        assert invite.status == CHALLENGE_COMPLETED
        assert invite.completed_at is not None

    def test_unrelated_execution_is_noop(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        ChallengeEngine(bob).accept_challenge(invite_id)

        result = ChallengeEngine(bob).mark_challenge_completed(new_id())

        assert result.success is True
        assert result.data["completed"] is False
        assert db.session.get(ChallengeInvite, invite_id).status == CHALLENGE_ACCEPTED

    def test_challenger_cannot_complete_for_friend(self, friends, make_task):
        alice, bob = friends
        invite_id = ChallengeEngine(alice).send_challenge(bob.id, make_task().id).data["invite_id"]
        execution_id = ChallengeEngine(bob).accept_challenge(invite_id).data["execution_id"]

        ChallengeEngine(alice).mark_challenge_completed(execution_id)

        assert db.session.get(ChallengeInvite, invite_id).status == CHALLENGE_ACCEPTED


# ─────────────────────────────────────────────────────────────────────────────
# Views
# ─────────────────────────────────────────────────────────────────────────────


class TestChallengeViews:
    def test_incoming_only_pending_newest_first(self, friends, make_task):
        alice, bob = friends
        engine = ChallengeEngine(alice)
        first = engine.send_challenge(bob.id, make_task("First").id).data["invite_id"]
        second = engine.send_challenge(bob.id, make_task("Second").id).data["invite_id"]
        third = engine.send_challenge(bob.id, make_task("Third").id).data["invite_id"]
        ChallengeEngine(bob).decline_challenge(second)

        incoming = ChallengeEngine(bob).incoming_challenges()

        assert [i.id for i in incoming] == [third, first]

    def test_sent_includes_every_status(self, friends, make_task):
        alice, bob = friends
        engine = ChallengeEngine(alice)
        a = engine.send_challenge(bob.id, make_task("A").id).data["invite_id"]
        b = engine.send_challenge(bob.id, make_task("B").id).data["invite_id"]
        ChallengeEngine(bob).decline_challenge(a)

        sent = engine.sent_challenges()

        assert [i.id for i in sent] == [b, a]
        assert ChallengeEngine(bob).sent_challenges() == []

    def test_sent_for_task(self, friends, carol, befriend, make_task):
        alice, bob = friends
        befriend(alice, carol)
        task = make_task("Shared")
        engine = ChallengeEngine(alice)
        engine.send_challenge(bob.id, task.id)
        engine.send_challenge(carol.id, task.id)
        engine.send_challenge(bob.id, make_task("Other").id)

        assert {i.to_user_id for i in engine.get_sent_challenges_for_task(task.id)} == {bob.id, carol.id}
