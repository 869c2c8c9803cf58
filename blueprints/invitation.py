from flask import Blueprint, request, jsonify
from utils import invitation_service
from utils.errors import ValidationError

invitation_bp = Blueprint('invitation', __name__, url_prefix='/api/invitation')


@invitation_bp.route('/<invitation_id>', methods=['GET'])
def get_invitation(invitation_id):
    invitation = invitation_service.get_invitation(invitation_id)
    return jsonify({'invitation': invitation.to_dict(with_user=True)})


def _respond(invitation_id, accept):
    invitation = invitation_service.respond(invitation_id, accept)
    verb = 'accepted' if accept else 'declined'
    return jsonify({
        'success': True,
        'message': f'Invitation {verb} successfully',
        'invitation': invitation.to_dict(with_user=True)
    })


@invitation_bp.route('/<invitation_id>', methods=['POST'])
def act_on_invitation(invitation_id):
    data = request.get_json(silent=True) or {}
    action = data.get('action')
    if action not in ('accept', 'decline'):
        raise ValidationError('action must be "accept" or "decline"')
    return _respond(invitation_id, action == 'accept')


@invitation_bp.route('/<invitation_id>/accept', methods=['POST'])
def accept_invitation(invitation_id):
    return _respond(invitation_id, True)


@invitation_bp.route('/<invitation_id>/decline', methods=['POST'])
def decline_invitation(invitation_id):
    return _respond(invitation_id, False)
