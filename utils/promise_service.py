# utils/promise_service.py
"""
Promise lifecycle: create, read, update, complete and delete.

Primary writes raise on failure (after rolling the session back); email sent
after a successful write goes through ``dispatch`` and can never undo it.
"""
import logging
import re
from collections import namedtuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from extensions import db
from models import User, Promise, ReminderTimeEnum, VisibilityEnum
from utils.errors import ValidationError, NotFound, UserAlreadyExists, PromiseWindowActive
from utils.notifications import dispatch
from utils.time_window import (
    utcnow, to_naive_utc, remaining_ms, can_create_new, time_until_eligible
)

logger = logging.getLogger(__name__)

email_pattern = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')

PROMISE_TEXT_MIN = 3
PROMISE_TEXT_MAX = 200

CompletionResult = namedtuple('CompletionResult', ['promise', 'changed', 'notifications'])


# ----------------- validation -----------------

def normalize_email(email):
    return email.strip().lower() if isinstance(email, str) else ''


def validate_email(email, field='email'):
    email = normalize_email(email)
    if not email:
        raise ValidationError(f"Missing {field} field")
    if not email_pattern.match(email):
        raise ValidationError(f"Invalid {field}")
    return email


def validate_name(name):
    name = name.strip() if isinstance(name, str) else ''
    if not name:
        raise ValidationError("Missing name field")
    # names end up in mail headers
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in name):
        raise ValidationError("Name must not contain control characters")
    return name


def validate_promise_text(text):
    if not isinstance(text, str):
        raise ValidationError("Missing promise text")
    text = text.strip()
    if not PROMISE_TEXT_MIN <= len(text) <= PROMISE_TEXT_MAX:
        raise ValidationError(
            f"Promise must be between {PROMISE_TEXT_MIN} and {PROMISE_TEXT_MAX} characters"
        )
    return text


def parse_enum(enum_cls, value, field):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} value, expected one of: {allowed}")


def parse_target_date(value):
    if value is None or value == '':
        return None
    try:
        return to_naive_utc(value)
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("Invalid target_date, expected an ISO-8601 timestamp")


def parse_future_date(value, now):
    target = parse_target_date(value)
    if target is not None and target <= now:
        raise ValidationError("target_date must be in the future")
    return target


def commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database commit failed")
        raise


# ----------------- lookups -----------------

def get_user(user_id):
    user = db.session.get(User, user_id) if user_id else None
    if user is None:
        raise NotFound("User not found")
    return user


def find_user_by_email(email):
    return User.query.filter_by(email=normalize_email(email)).first()


def most_recent_promise(user_id):
    return Promise.query.filter_by(user_id=user_id) \
        .order_by(Promise.created_at.desc()) \
        .first()


def current_open_promise(user_id):
    return Promise.query.filter_by(user_id=user_id, completed=False) \
        .order_by(Promise.created_at.desc()) \
        .first()


def login(email):
    """Email lookup only; there is no password or session."""
    user = find_user_by_email(validate_email(email))
    if user is None:
        raise NotFound("No account found for this email")
    return user


# ----------------- create -----------------

def create_first_promise(name, email, promise_text, is_eco_friendly=False, reminder_time=None, now=None):
    email = validate_email(email)
    # an existing account wins over any other problem with the body
    if find_user_by_email(email):
        logger.info("Subscribe rejected, account exists for %s", email)
        raise UserAlreadyExists(
            "An account with this email already exists. "
            "Please log in to continue with your existing account."
        )

    name = validate_name(name)
    text = validate_promise_text(promise_text)
    reminder = parse_enum(ReminderTimeEnum, reminder_time or ReminderTimeEnum.morning.value, 'reminderTime')

    now = now or utcnow()
    user = User(name=name, email=email, reminder_time=reminder, created_at=now)
    promise = Promise(user=user, promise_text=text, created_at=now, is_eco_friendly=bool(is_eco_friendly))
    db.session.add(user)
    db.session.add(promise)

    try:
        db.session.commit()
    except IntegrityError:
        # lost a race against another signup with the same email
        db.session.rollback()
        raise UserAlreadyExists(
            "An account with this email already exists. "
            "Please log in to continue with your existing account."
        )
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to create user %s", email)
        raise

    logger.info("Created user %s with promise %s", user.id, promise.id)

    dispatch('welcome', to=user.email, name=user.name, user_id=user.id, promise=promise.promise_text)
    return user, promise


def create_promise_for_user(user_id, promise_text, target_date=None, is_eco_friendly=False,
                            witness_email=None, visibility=None, now=None):
    user = get_user(user_id)
    text = validate_promise_text(promise_text)
    now = now or utcnow()
    target = parse_future_date(target_date, now)
    witness = validate_email(witness_email, 'witness_email') if witness_email else None
    vis = parse_enum(VisibilityEnum, visibility or VisibilityEnum.private.value, 'visibility')

    latest = most_recent_promise(user.id)
    if not can_create_new(latest, now):
        wait = time_until_eligible(latest, now)
        raise PromiseWindowActive(
            f"You can make a new promise in {wait}",
            timeUntilEligible=wait.to_dict()
        )

    promise = Promise(
        user_id=user.id,
        promise_text=text,
        created_at=now,
        target_date=target,
        is_eco_friendly=bool(is_eco_friendly),
        witness_email=witness,
        visibility=vis,
    )
    db.session.add(promise)
    commit()

    logger.info("Created promise %s for user %s", promise.id, user.id)
    return promise


# ----------------- read -----------------

def get_user_state(user_id, now=None):
    now = now or utcnow()
    user = get_user(user_id)
    open_promise = current_open_promise(user.id)
    latest = most_recent_promise(user.id)
    current = open_promise or latest
    wait = time_until_eligible(latest, now)

    return {
        "name": user.name,
        "email": user.email,
        "reminder_time": user.reminder_time.value,
        "current_promise": current.to_dict() if current else None,
        "most_recent_promise": latest.to_dict() if latest else None,
        "timeLeft": remaining_ms(open_promise, now) if open_promise else 0,
        "canCreateNew": wait is None,
        "timeUntilEligible": wait.to_dict() if wait else None,
    }


def get_history(user_id):
    user = get_user(user_id)
    promises = Promise.query.filter_by(user_id=user.id) \
        .order_by(Promise.created_at.desc()) \
        .all()
    return [{
        "id": p.id,
        "date": p.created_at.isoformat(),
        "completed": p.completed,
        "completed_at": p.completed_at.isoformat() if p.completed_at else None,
        "promise_text": p.promise_text,
    } for p in promises]


def get_visibility(user_id):
    user = get_user(user_id)
    current = current_open_promise(user.id) or most_recent_promise(user.id)
    return current.visibility.value if current else VisibilityEnum.private.value


def get_witness(user_id):
    user = get_user(user_id)
    current = current_open_promise(user.id) or most_recent_promise(user.id)
    return current.witness_email if current else None


# ----------------- update -----------------

def update_fields(user_id, fields, now=None):
    """
    Partial update. ``reminder_time`` goes to the user row, promise fields to
    every promise of the user that has not been completed. Returns the number
    of promises updated.
    """
    user = get_user(user_id)
    now = now or utcnow()

    completed = fields.get('completed')
    if completed is not None and completed is not True:
        raise ValidationError("A completed promise cannot be reopened")

    reminder = None
    if fields.get('reminder_time') is not None:
        reminder = parse_enum(ReminderTimeEnum, fields['reminder_time'], 'reminder_time')

    changes = {}
    if fields.get('promise_text') is not None:
        changes['promise_text'] = validate_promise_text(fields['promise_text'])
    if fields.get('target_date') is not None:
        changes['target_date'] = parse_future_date(fields['target_date'], now)
    if fields.get('is_eco_friendly') is not None:
        changes['is_eco_friendly'] = bool(fields['is_eco_friendly'])
    if 'witness_email' in fields:
        witness = fields['witness_email']
        changes['witness_email'] = validate_email(witness, 'witness_email') if witness else None
    if fields.get('visibility') is not None:
        changes['visibility'] = parse_enum(VisibilityEnum, fields['visibility'], 'visibility')

    if reminder is not None:
        user.reminder_time = reminder

    updated = 0
    if changes:
        changes['updated_at'] = now
        updated = Promise.query.filter(
            Promise.user_id == user.id,
            Promise.completed_at.is_(None)
        ).update(changes, synchronize_session=False)
    commit()

    if completed:
        complete_promise(user.id, now=now)
    return updated


def set_visibility(user_id, visibility):
    if not visibility:
        raise ValidationError("Missing visibility field")
    return update_fields(user_id, {'visibility': visibility})


def set_witness(user_id, email):
    return update_fields(user_id, {'witness_email': validate_email(email)})


# ----------------- complete -----------------

def complete_promise(user_id, promise_id=None, now=None):
    """
    Idempotent completion. Without ``promise_id`` the most recent open promise
    is completed. A promise that is already completed, or no open promise at
    all, yields ``changed=False`` and sends nothing.
    """
    user = get_user(user_id)
    now = now or utcnow()

    if promise_id:
        promise = Promise.query.filter_by(id=promise_id, user_id=user.id).first()
        if promise is None:
            raise NotFound("Promise not found")
    else:
        promise = current_open_promise(user.id)
        if promise is None:
            return CompletionResult(None, False, [])

    # conditional update so only one of two racing requests sends notices
    changed = Promise.query.filter(
        Promise.id == promise.id,
        Promise.completed_at.is_(None)
    ).update({'completed': True, 'completed_at': now, 'updated_at': now}, synchronize_session=False)
    commit()

    if not changed:
        return CompletionResult(promise, False, [])

    logger.info("Promise %s completed by user %s", promise.id, user.id)
    return CompletionResult(promise, True, notify_completion(user, promise))


def notify_completion(user, promise):
    notifications = []

    for partner in user.partners:
        if dispatch('partner_completed', to=partner.email, user_name=user.name, promise=promise.promise_text):
            notifications.append(f"Notified {partner.email}")

    if promise.witness_email:
        if dispatch('witness_completed', to=promise.witness_email, user_name=user.name,
                    promise=promise.promise_text):
            notifications.append(f"Notified witness {promise.witness_email}")

    return notifications


# ----------------- delete -----------------

def delete_account(user_id):
    user = get_user(user_id)
    db.session.delete(user)
    commit()
    logger.info("Deleted account %s", user_id)
