"""
Friendship graph for one viewer.

Edges are directional ``Relationship`` rows. For any two profiles the edge
set is always one of:

- nothing
- one pending edge (the request)
- two accepted edges, one each way (the friendship)

Every read goes back to the database, so the lists below always reflect
what is committed right now.
"""
from flask import current_app
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from pulse.extensions import db, atomic
from pulse.models import Profile, Relationship, RELATIONSHIP_PENDING, RELATIONSHIP_ACCEPTED
from pulse.helpers.analytics import track_event
from pulse.helpers.email import send_friend_request_email
from pulse.helpers.ids import new_id
from pulse.helpers.inflight import FRIENDSHIP_LOCKS
from pulse.helpers.rate_limit import get_friend_request_limiter
from pulse.helpers.results import (
    ActionResult,
    NOT_AUTHENTICATED,
    SELF_TARGET,
    RATE_LIMITED,
    IN_FLIGHT,
    DUPLICATE,
    NOT_FOUND,
)
from pulse.helpers.serialize import profile_dict
from pulse.helpers.time import utcnow

STATUS_NONE = "none"
STATUS_PENDING_OUTGOING = "pending_outgoing"
STATUS_PENDING_INCOMING = "pending_incoming"
STATUS_ACCEPTED = "accepted"

RATE_LIMIT_MESSAGE = "You are sending too many friend requests. Please try again later."


def dedupe_by_profile_id(items):
    """Keep the first entry per profile id."""
    seen = set()
    out = []
    for item in items:
        if item["id"] in seen:
            continue
        seen.add(item["id"])
        out.append(item)
    return out


def _entry(profile, relationship_id) -> dict:
    entry = profile_dict(profile)
    entry["relationship_id"] = relationship_id
    return entry


class RelationshipGraph:
    def __init__(self, viewer, locks=FRIENDSHIP_LOCKS, limiter=None):
        self.viewer = viewer
        self.locks = locks
        self._limiter = limiter

    @property
    def viewer_id(self):
        return self.viewer.id if self.viewer else None

    @property
    def limiter(self):
        if self._limiter is None:
            self._limiter = get_friend_request_limiter(current_app.config)
        return self._limiter

    # --- edges ---

    def outgoing_edges(self):
        if not self.viewer_id:
            return []
        return (
            Relationship.query
            .filter_by(from_user_id=self.viewer_id)
            .order_by(Relationship.created_at.asc())
            .all()
        )

    def incoming_edges(self):
        if not self.viewer_id:
            return []
        return (
            Relationship.query
            .filter_by(to_user_id=self.viewer_id)
            .order_by(Relationship.created_at.asc())
            .all()
        )

    def edges_between(self, other_user_id):
        if not self.viewer_id:
            return []
        return (
            Relationship.query
            .filter(
                or_(
                    and_(Relationship.from_user_id == self.viewer_id, Relationship.to_user_id == other_user_id),
                    and_(Relationship.from_user_id == other_user_id, Relationship.to_user_id == self.viewer_id),
                )
            )
            .all()
        )

    def _edge(self, from_user_id, to_user_id, status=None):
        q = Relationship.query.filter_by(from_user_id=from_user_id, to_user_id=to_user_id)
        if status:
            q = q.filter_by(status=status)
        return q.first()

    # --- derived views ---

    def mutual_accepted(self):
        return [e for e in self.outgoing_edges() if e.status == RELATIONSHIP_ACCEPTED]

    def friends(self):
        raw = [_entry(e.to_user, e.id) for e in self.mutual_accepted() if e.to_user]
        return dedupe_by_profile_id(raw)

    def incoming_requests(self):
        raw = [
            _entry(e.from_user, e.id)
            for e in self.incoming_edges()
            if e.status == RELATIONSHIP_PENDING and e.from_user
        ]
        return dedupe_by_profile_id(raw)

    def outgoing_requests(self):
        raw = [
            _entry(e.to_user, e.id)
            for e in self.outgoing_edges()
            if e.status == RELATIONSHIP_PENDING and e.to_user
        ]
        return dedupe_by_profile_id(raw)

    def friend_count(self) -> int:
        return len(self.friends())

    def get_relationship_status(self, other_user_id) -> str:
        if not self.viewer_id:
            return STATUS_NONE

        # A send still in progress already counts as a request
        if self.locks.is_held(self.viewer_id, other_user_id):
            return STATUS_PENDING_OUTGOING

        outgoing = self._edge(self.viewer_id, other_user_id)
        if outgoing:
            return STATUS_ACCEPTED if outgoing.status == RELATIONSHIP_ACCEPTED else STATUS_PENDING_OUTGOING

        incoming = self._edge(other_user_id, self.viewer_id)
        if incoming:
            return STATUS_ACCEPTED if incoming.status == RELATIONSHIP_ACCEPTED else STATUS_PENDING_INCOMING

        return STATUS_NONE

    def is_friend(self, other_user_id) -> bool:
        """Both edges present and accepted, read straight from the database."""
        if not self.viewer_id or other_user_id == self.viewer_id:
            return False
        edges = self.edges_between(other_user_id)
        directions = {
            (e.from_user_id, e.to_user_id)
            for e in edges
            if e.status == RELATIONSHIP_ACCEPTED
        }
        return (
            (self.viewer_id, other_user_id) in directions
            and (other_user_id, self.viewer_id) in directions
        )

    # --- mutations ---

    def _lock_pair(self, other_user_id):
        """
        Row-lock both profiles, lowest id first. Crossed sends or accepts on one pair
        then run one after the other, so the later one sees the earlier one's edge.
        SQLite has no FOR UPDATE; its single writer already gives the same ordering.
        """
        for profile_id in sorted((self.viewer_id, other_user_id)):
            Profile.query.filter_by(id=profile_id).with_for_update().first()

    def _promote_pair(self, incoming, now):
        """Accept an incoming pending edge and make sure the reverse accepted edge exists."""
        incoming.status = RELATIONSHIP_ACCEPTED
        incoming.accepted_at = now

        reverse = self._edge(self.viewer_id, incoming.from_user_id)
        if reverse:
            # Left over from a crossed request; upgrade instead of duplicating
            reverse.status = RELATIONSHIP_ACCEPTED
            reverse.accepted_at = now
            return reverse

        reverse = Relationship(
            id=new_id(),
            from_user_id=self.viewer_id,
            to_user_id=incoming.from_user_id,
            status=RELATIONSHIP_ACCEPTED,
            created_at=now,
            accepted_at=now,
        )
        db.session.add(reverse)
        return reverse

    def send_friend_request(self, to_user_id) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")
        if to_user_id == self.viewer_id:
            return ActionResult.fail(SELF_TARGET, "Cannot send a friend request to yourself")

        if not self.limiter.allow(self.viewer_id):
            current_app.logger.warning("[FRIENDS] rate limited profile=%s", self.viewer_id)
            return ActionResult.fail(RATE_LIMITED, RATE_LIMIT_MESSAGE)

        if self.locks.is_held(self.viewer_id, to_user_id):
            return ActionResult.fail(IN_FLIGHT, "Friend request already in progress")

        status = self.get_relationship_status(to_user_id)
        if status in (STATUS_PENDING_OUTGOING, STATUS_ACCEPTED):
            return ActionResult.fail(DUPLICATE, f"Relationship already {status}")

        target = Profile.query.filter_by(id=to_user_id).first()
        if not target:
            return ActionResult.fail(NOT_FOUND, "Profile not found")

        if not self.locks.claim(self.viewer_id, to_user_id):
            return ActionResult.fail(IN_FLIGHT, "Friend request already in progress")

        try:
            now = utcnow()
            with atomic():
                self._lock_pair(to_user_id)

                # They asked first: sending back is the same as accepting
                reciprocal = self._edge(to_user_id, self.viewer_id, RELATIONSHIP_PENDING)
                if reciprocal:
                    self._promote_pair(reciprocal, now)
                    auto_accepted = True
                else:
                    edge = Relationship(
                        id=new_id(),
                        from_user_id=self.viewer_id,
                        to_user_id=to_user_id,
                        status=RELATIONSHIP_PENDING,
                        created_at=now,
                    )
                    db.session.add(edge)
                    db.session.flush()

                    # A crossed request may have been committed since we looked
                    reciprocal = self._edge(to_user_id, self.viewer_id, RELATIONSHIP_PENDING)
                    auto_accepted = reciprocal is not None
                    if auto_accepted:
                        reciprocal.status = RELATIONSHIP_ACCEPTED
                        reciprocal.accepted_at = now
                        edge.status = RELATIONSHIP_ACCEPTED
                        edge.accepted_at = now
        except IntegrityError:
            current_app.logger.info(
                "[FRIENDS] duplicate edge rejected %s -> %s", self.viewer_id, to_user_id
            )
            return ActionResult.fail(DUPLICATE, "Friend request already exists")
        finally:
            self.locks.release(self.viewer_id, to_user_id)

        if auto_accepted:
            track_event("friend_request_accepted", {"fromUserId": to_user_id})
            return ActionResult.ok(status=STATUS_ACCEPTED, auto_accepted=True)

        track_event("friend_request_sent", {"toUserId": to_user_id})
        send_friend_request_email(target, self.viewer)
        return ActionResult.ok(status=STATUS_PENDING_OUTGOING, auto_accepted=False)

    def accept_friend_request(self, from_user_id) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        if not self.locks.claim(self.viewer_id, from_user_id):
            return ActionResult.fail(IN_FLIGHT, "Already processing this request")

        try:
            with atomic():
                self._lock_pair(from_user_id)
                incoming = self._edge(from_user_id, self.viewer_id, RELATIONSHIP_PENDING)
                if not incoming:
                    return ActionResult.fail(NOT_FOUND, "No pending friend request from this user")
                self._promote_pair(incoming, utcnow())
        except IntegrityError:
            return ActionResult.fail(DUPLICATE, "Friendship already exists")
        finally:
            self.locks.release(self.viewer_id, from_user_id)

        track_event("friend_request_accepted", {"fromUserId": from_user_id})
        return ActionResult.ok(status=STATUS_ACCEPTED)

    def ignore_friend_request(self, from_user_id) -> ActionResult:
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        incoming = self._edge(from_user_id, self.viewer_id, RELATIONSHIP_PENDING)
        if not incoming:
            return ActionResult.fail(NOT_FOUND, "No pending friend request from this user")

        with atomic():
            db.session.delete(incoming)

        track_event("friend_request_ignored", {"fromUserId": from_user_id})
        return ActionResult.ok(status=STATUS_NONE)

    def unfriend(self, other_user_id) -> ActionResult:
        """Remove every edge between the two profiles, both directions. Also cancels a sent request."""
        if not self.viewer:
            return ActionResult.fail(NOT_AUTHENTICATED, "Not logged in")

        edges = self.edges_between(other_user_id)
        if not edges:
            return ActionResult.ok(status=STATUS_NONE, removed=0)

        with atomic():
            for edge in edges:
                db.session.delete(edge)

        track_event("friend_removed", {"otherUserId": other_user_id})
        return ActionResult.ok(status=STATUS_NONE, removed=len(edges))
