import logging
from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError
from utils.promise_service import create_first_promise, create_promise_for_user, login

logger = logging.getLogger(__name__)

subscribe_bp = Blueprint('subscribe', __name__, url_prefix='/api')


@subscribe_bp.route('/subscribe', methods=['POST'])
def subscribe():
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')

    try:
        # existing user making their next promise
        if user_id:
            promise = create_promise_for_user(
                user_id,
                data.get('promise'),
                target_date=data.get('targetDate'),
                is_eco_friendly=data.get('isEcoFriendly') or False,
            )
            return jsonify({
                'success': True,
                'userId': user_id,
                'promiseId': promise.id,
                'message': 'New promise created'
            })

        user, promise = create_first_promise(
            data.get('name'),
            data.get('email'),
            data.get('promise'),
            is_eco_friendly=data.get('isEcoFriendly') or False,
            reminder_time=data.get('reminderTime'),
        )
    except SQLAlchemyError:
        logger.exception("Subscription failed")
        return jsonify({'success': False, 'error': 'Failed to process subscription'}), 500

    return jsonify({
        'success': True,
        'userId': user.id,
        'promiseId': promise.id,
        'message': 'Subscription successful'
    })


@subscribe_bp.route('/login', methods=['POST'])
def login_by_email():
    data = request.get_json(silent=True) or {}
    user = login(data.get('email'))
    return jsonify({'success': True, 'userId': user.id, 'name': user.name})
