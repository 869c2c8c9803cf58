import uuid
from enum import Enum
from extensions import db
from utils.time_window import utcnow


class VisibilityEnum(Enum):
    private = "private"
    witness = "witness"
    public = "public"


class Promise(db.Model):
    __tablename__ = 'promises'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    promise_text = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    # deadline override; created_at + 24h applies when empty
    target_date = db.Column(db.DateTime, nullable=True)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    is_eco_friendly = db.Column(db.Boolean, default=False, nullable=False)
    witness_email = db.Column(db.String(255), nullable=True)
    visibility = db.Column(db.Enum(VisibilityEnum), default=VisibilityEnum.private, nullable=False)
    completion_reminder_sent = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="promises")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "promise_text": self.promise_text,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "target_date": self.target_date.isoformat() if self.target_date else None,
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "is_eco_friendly": self.is_eco_friendly,
            "witness_email": self.witness_email,
            "visibility": self.visibility.value if self.visibility else VisibilityEnum.private.value,
        }

    def __repr__(self):
        return f"<Promise {self.id} - completed={self.completed}>"
