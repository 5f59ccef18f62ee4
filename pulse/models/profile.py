from datetime import datetime, timezone
from pulse.extensions import db
from pulse.helpers.ids import new_id

class Profile(db.Model):
    __tablename__ = "profile"

    # Same value as the signed-in user's id
    id = db.Column(db.String(36), primary_key=True, default=new_id)

    name = db.Column(db.String(120), nullable=False)

    # Optional: only used for notification emails
    email = db.Column(db.String(255), nullable=True, index=True)

    # Avatar is either an uploaded image URL or a generated colour
    profile_image = db.Column(db.String(500), nullable=True)
    avatar_color = db.Column(db.String(20), nullable=True)

    daily_streak = db.Column(db.Integer, nullable=False, default=0)
    last_completion_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    outgoing_relationships = db.relationship(
        "Relationship",
        foreign_keys="Relationship.from_user_id",
        back_populates="from_user",
    )
    incoming_relationships = db.relationship(
        "Relationship",
        foreign_keys="Relationship.to_user_id",
        back_populates="to_user",
    )

    executions = db.relationship("Execution", back_populates="user", lazy=True)
    created_tasks = db.relationship("Task", back_populates="creator", lazy=True)
