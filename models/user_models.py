import uuid
from enum import Enum
from extensions import db
from sqlalchemy.orm import relationship
from utils.time_window import utcnow


class ReminderTimeEnum(Enum):
    morning = "morning"
    midday = "midday"
    evening = "evening"


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(128), nullable=False)
    # always stored lower-cased and trimmed
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    reminder_time = db.Column(db.Enum(ReminderTimeEnum), default=ReminderTimeEnum.morning, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    promises = relationship(
        "Promise", back_populates="user",
        cascade="all, delete-orphan"
    )
    invitations = relationship(
        "AccountabilityInvitation", back_populates="user",
        cascade="all, delete-orphan"
    )
    partners = relationship(
        "AccountabilityPartner", back_populates="user",
        cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "reminder_time": self.reminder_time.value if self.reminder_time else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} - {self.email}>"
