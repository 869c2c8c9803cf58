import uuid
from enum import Enum
from extensions import db
from sqlalchemy import UniqueConstraint
from utils.time_window import utcnow


class InvitationStatusEnum(Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class AccountabilityInvitation(db.Model):
    __tablename__ = 'accountability_invitations'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    partner_email = db.Column(db.String(255), nullable=False, index=True)
    # copy of the text at send time, later promise edits do not reach it
    promise_text = db.Column(db.String(200), nullable=False)
    status = db.Column(db.Enum(InvitationStatusEnum), default=InvitationStatusEnum.pending, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    responded_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", back_populates="invitations")

    @property
    def is_resolved(self):
        return self.status != InvitationStatusEnum.pending

    def to_dict(self, with_user=False):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "partner_email": self.partner_email,
            "promise_text": self.promise_text,
            "status": self.status.value,
            "resolved": self.is_resolved,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
        }
        if with_user and self.user:
            data["user"] = {"name": self.user.name, "email": self.user.email}
        return data


class AccountabilityPartner(db.Model):
    __tablename__ = 'accountability_partners'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="partners")

    __table_args__ = (
        UniqueConstraint('user_id', 'email', name='uix_user_partner_email'),
    )

    def to_dict(self):
        return {
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
