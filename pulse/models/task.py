from datetime import datetime, timezone
from pulse.extensions import db
from pulse.helpers.ids import new_id

class Task(db.Model):
    __tablename__ = "task"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)

    image_url = db.Column(db.String(500), nullable=True)
    external_link = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    creator_id = db.Column(
        db.String(36),
        db.ForeignKey("profile.id"),
        nullable=True,
        index=True,
    )
    creator = db.relationship("Profile", back_populates="created_tasks")

    executions = db.relationship(
        "Execution",
        back_populates="task",
        lazy=True,
        order_by="Execution.executed_at.desc()",
    )
