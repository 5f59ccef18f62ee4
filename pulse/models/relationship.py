from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, UniqueConstraint
from pulse.extensions import db
from pulse.helpers.ids import new_id

RELATIONSHIP_PENDING = "pending"
RELATIONSHIP_ACCEPTED = "accepted"

class Relationship(db.Model):
    """
    Directed edge from_user -> to_user.

    A friendship is two accepted edges, one each way. A request is one
    pending edge. Rows are deleted on ignore / unfriend, never soft-cancelled.
    """
    __tablename__ = "relationship"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    from_user_id = db.Column(
        db.String(36),
        db.ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    to_user_id = db.Column(
        db.String(36),
        db.ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status = db.Column(db.String(20), nullable=False, default=RELATIONSHIP_PENDING)  # 'pending','accepted'
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    from_user = db.relationship(
        "Profile",
        foreign_keys=[from_user_id],
        back_populates="outgoing_relationships",
    )
    to_user = db.relationship(
        "Profile",
        foreign_keys=[to_user_id],
        back_populates="incoming_relationships",
    )

    __table_args__ = (
        # at most one edge per direction per pair
        UniqueConstraint("from_user_id", "to_user_id", name="uq_relationship_direction"),
        CheckConstraint("from_user_id <> to_user_id", name="ck_relationship_not_self"),
    )
