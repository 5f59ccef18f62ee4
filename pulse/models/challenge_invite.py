from datetime import datetime, timezone
from sqlalchemy import text
from pulse.extensions import db
from pulse.helpers.ids import new_id

CHALLENGE_PENDING = "pending"
CHALLENGE_ACCEPTED = "accepted"
CHALLENGE_DECLINED = "declined"
CHALLENGE_COMPLETED = "completed"

class ChallengeInvite(db.Model):
    __tablename__ = "challenge_invite"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    from_user_id = db.Column(db.String(36), db.ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id = db.Column(db.String(36), db.ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = db.Column(db.String(36), db.ForeignKey("task.id", ondelete="CASCADE"), nullable=True, index=True)

    # Set once, when the invite is accepted
    execution_id = db.Column(db.String(36), db.ForeignKey("execution.id"), nullable=True, unique=True)

    message = db.Column(db.String(200), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=CHALLENGE_PENDING)  # 'pending','accepted','declined','completed'
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    from_user = db.relationship("Profile", foreign_keys=[from_user_id])
    to_user = db.relationship("Profile", foreign_keys=[to_user_id])
    task = db.relationship("Task")
    execution = db.relationship("Execution")

    __table_args__ = (
        # one open dare per (challenger, friend, task)
        db.Index(
            "uq_challenge_invite_pending",
            "from_user_id",
            "to_user_id",
            "task_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
