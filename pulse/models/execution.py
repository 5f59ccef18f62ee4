from datetime import datetime, timezone
from pulse.extensions import db
from pulse.helpers.ids import new_id

class Execution(db.Model):
    """One user's attempt at one task. Created by "Execute" or by accepting a challenge."""
    __tablename__ = "execution"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    executed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    task_id = db.Column(
        db.String(36),
        db.ForeignKey("task.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("profile.id"),
        nullable=True,
        index=True,
    )

    task = db.relationship("Task", back_populates="executions")
    user = db.relationship("Profile", back_populates="executions")
