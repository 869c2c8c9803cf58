import logging
from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError
from utils import promise_service, invitation_service
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

user_bp = Blueprint('user', __name__, url_prefix='/api/user')


def _server_error(message):
    return jsonify({'success': False, 'error': message}), 500


@user_bp.route('/<user_id>', methods=['GET'])
def get_user_state(user_id):
    try:
        return jsonify(promise_service.get_user_state(user_id))
    except SQLAlchemyError:
        logger.exception("Failed to load user %s", user_id)
        return _server_error('Internal server error')


@user_bp.route('/<user_id>', methods=['POST'])
def create_promise(user_id):
    data = request.get_json(silent=True) or {}
    if not data.get('promise_text'):
        raise ValidationError('Missing required fields')

    try:
        promise = promise_service.create_promise_for_user(
            user_id,
            data['promise_text'],
            target_date=data.get('target_date'),
            is_eco_friendly=data.get('is_eco_friendly') or False,
            witness_email=data.get('witness_email'),
            visibility=data.get('visibility'),
        )
    except SQLAlchemyError:
        return _server_error('Failed to create promise')

    return jsonify({'success': True, 'promise': promise.to_dict()})


@user_bp.route('/<user_id>', methods=['PATCH'])
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    try:
        updated = promise_service.update_fields(user_id, data)
    except SQLAlchemyError:
        return _server_error('Failed to update promise')

    return jsonify({'success': True, 'updated': updated})


@user_bp.route('/<user_id>', methods=['PUT'])
def complete_current(user_id):
    data = request.get_json(silent=True) or {}
    if data.get('completed') is not True:
        raise ValidationError('Completion is one-way; send {"completed": true}')

    try:
        result = promise_service.complete_promise(user_id)
    except SQLAlchemyError:
        return _server_error('Internal Server Error')

    return jsonify({
        'success': True,
        'changed': result.changed,
        'promise': result.promise.to_dict() if result.promise else None,
    })


@user_bp.route('/<user_id>', methods=['DELETE'])
def delete_account(user_id):
    try:
        promise_service.delete_account(user_id)
    except SQLAlchemyError:
        return _server_error('Internal Server Error')
    return jsonify({'success': True})


@user_bp.route('/<user_id>/history', methods=['GET'])
def get_history(user_id):
    return jsonify({'promises': promise_service.get_history(user_id)})


@user_bp.route('/<user_id>/notify-completion', methods=['POST'])
def notify_completion(user_id):
    data = request.get_json(silent=True) or {}
    promise_id = data.get('promise_id')
    if not promise_id:
        raise ValidationError('Missing promise_id field')

    try:
        result = promise_service.complete_promise(user_id, promise_id)
    except SQLAlchemyError:
        return _server_error('Failed to mark promise as completed')

    return jsonify({
        'success': True,
        'changed': result.changed,
        'notifications': result.notifications,
        'message': f'Sent {len(result.notifications)} notification(s)'
    })


# ----------------- accountability invitations -----------------

@user_bp.route('/<user_id>/invite-partner', methods=['POST'])
def invite_partner(user_id):
    data = request.get_json(silent=True) or {}
    if not data.get('partnerEmail'):
        raise ValidationError('Missing required fields')

    try:
        invitation = invitation_service.create_invitation(user_id, data['partnerEmail'], data.get('promise'))
    except SQLAlchemyError:
        return _server_error('Failed to create invitation')

    return jsonify({
        'success': True,
        'message': 'Invitation sent successfully',
        'invitation': invitation.to_dict()
    })


@user_bp.route('/<user_id>/invite-partner', methods=['GET'])
def list_invitations(user_id):
    invitations = invitation_service.list_invitations(user_id)
    return jsonify({'invitations': [i.to_dict() for i in invitations]})


@user_bp.route('/<user_id>/accountability', methods=['GET'])
def list_partners(user_id):
    partners = invitation_service.list_partners(user_id)
    return jsonify({'partners': [p.to_dict() for p in partners]})


@user_bp.route('/<user_id>/accountability', methods=['POST'])
def add_partner(user_id):
    data = request.get_json(silent=True) or {}
    partner = invitation_service.add_partner(user_id, data.get('email'))
    return jsonify({'success': True, 'partner': partner.to_dict()})


@user_bp.route('/<user_id>/accountability', methods=['DELETE'])
def remove_partner(user_id):
    data = request.get_json(silent=True) or {}
    invitation_service.remove_partner(user_id, data.get('email'))
    return jsonify({'success': True})


# ----------------- visibility & witness -----------------

@user_bp.route('/<user_id>/visibility', methods=['GET'])
def get_visibility(user_id):
    return jsonify({'visibility': promise_service.get_visibility(user_id)})


@user_bp.route('/<user_id>/visibility', methods=['POST'])
def set_visibility(user_id):
    data = request.get_json(silent=True) or {}
    updated = promise_service.set_visibility(user_id, data.get('visibility'))
    return jsonify({'success': True, 'updated': updated})


@user_bp.route('/<user_id>/witness', methods=['GET'])
def get_witness(user_id):
    return jsonify({'witnessEmail': promise_service.get_witness(user_id)})


@user_bp.route('/<user_id>/witness', methods=['POST'])
def set_witness(user_id):
    data = request.get_json(silent=True) or {}
    updated = promise_service.set_witness(user_id, data.get('email'))
    return jsonify({'success': True, 'updated': updated})
