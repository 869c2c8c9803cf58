# utils/invitation_service.py
import logging
from extensions import db
from models import AccountabilityInvitation, AccountabilityPartner, InvitationStatusEnum
from utils.errors import ValidationError, NotFound, InvitationResolved
from utils.notifications import dispatch
from utils.promise_service import (
    commit, get_user, validate_email, validate_promise_text, current_open_promise
)
from utils.time_window import utcnow

logger = logging.getLogger(__name__)


def create_invitation(user_id, partner_email, promise_text=None):
    user = get_user(user_id)
    partner_email = validate_email(partner_email, 'partnerEmail')
    if partner_email == user.email:
        raise ValidationError("Cannot invite yourself")

    if promise_text is None:
        current = current_open_promise(user.id)
        if current is None:
            raise ValidationError("Missing promise field")
        promise_text = current.promise_text
    text = validate_promise_text(promise_text)

    invitation = AccountabilityInvitation(
        user_id=user.id,
        partner_email=partner_email,
        promise_text=text,
        status=InvitationStatusEnum.pending,
    )
    db.session.add(invitation)
    commit()
    logger.info("Invitation %s sent by %s to %s", invitation.id, user.id, partner_email)

    dispatch('invitation', to=partner_email, user_name=user.name, user_email=user.email,
             promise=text, invitation_id=invitation.id)
    return invitation


def list_invitations(user_id):
    user = get_user(user_id)
    return AccountabilityInvitation.query.filter_by(user_id=user.id) \
        .order_by(AccountabilityInvitation.created_at.desc()) \
        .all()


def get_invitation(invitation_id):
    invitation = db.session.get(AccountabilityInvitation, invitation_id, populate_existing=True)
    if invitation is None:
        raise NotFound("Invitation not found")
    return invitation


def respond(invitation_id, accept, now=None):
    """
    Move a pending invitation to accepted or declined. The status filter makes
    the update a single conditional write, so a resolved invitation is never
    changed again.
    """
    new_status = InvitationStatusEnum.accepted if accept else InvitationStatusEnum.declined
    now = now or utcnow()

    changed = AccountabilityInvitation.query.filter_by(
        id=invitation_id, status=InvitationStatusEnum.pending
    ).update({'status': new_status, 'responded_at': now}, synchronize_session=False)

    if not changed:
        invitation = get_invitation(invitation_id)
        raise InvitationResolved(
            f"This invitation has already been {invitation.status.value}",
            status=invitation.status.value
        )

    invitation = get_invitation(invitation_id)
    if accept:
        _add_partner_row(invitation.user_id, invitation.partner_email)
    commit()
    logger.info("Invitation %s %s", invitation.id, new_status.value)

    inviter = invitation.user
    dispatch('invitation_accepted' if accept else 'invitation_declined',
             to=inviter.email, user_name=inviter.name,
             partner_email=invitation.partner_email, promise=invitation.promise_text)
    return invitation


# ----------------- accountability partners -----------------

def _add_partner_row(user_id, email):
    partner = AccountabilityPartner.query.filter_by(user_id=user_id, email=email).first()
    if partner is None:
        partner = AccountabilityPartner(user_id=user_id, email=email)
        db.session.add(partner)
    return partner


def list_partners(user_id):
    user = get_user(user_id)
    return AccountabilityPartner.query.filter_by(user_id=user.id) \
        .order_by(AccountabilityPartner.created_at.asc()) \
        .all()


def add_partner(user_id, email):
    user = get_user(user_id)
    email = validate_email(email)
    if email == user.email:
        raise ValidationError("Cannot add yourself as a partner")
    partner = _add_partner_row(user.id, email)
    commit()
    return partner


def remove_partner(user_id, email):
    user = get_user(user_id)
    email = validate_email(email)
    partner = AccountabilityPartner.query.filter_by(user_id=user.id, email=email).first()
    if partner is None:
        raise NotFound("Accountability partner not found")
    db.session.delete(partner)
    commit()
