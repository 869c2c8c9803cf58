from flask import Blueprint, request, jsonify
from utils.errors import ValidationError
from utils.reminder_service import REMINDER_TYPES, send_reminder

reminder_bp = Blueprint('reminder', __name__, url_prefix='/api/send-reminder')


@reminder_bp.route('', methods=['POST'])
def trigger_reminder():
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    reminder_type = data.get('reminderType')

    if not user_id or not reminder_type:
        raise ValidationError('Missing required fields')

    sent, message = send_reminder(user_id, reminder_type)
    return jsonify({'success': True, 'sent': sent, 'message': message})


@reminder_bp.route('', methods=['GET'])
def reminder_info():
    return jsonify({
        'message': 'Reminder system is running',
        'reminderTypes': list(REMINDER_TYPES),
        'usage': 'POST /api/send-reminder with body: { "userId": "...", "reminderType": "gentle" }'
    })
