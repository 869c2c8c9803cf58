# utils/reminder_service.py
import logging
from datetime import timedelta
from models import User, Promise, ReminderTimeEnum
from utils.errors import ValidationError
from utils.notifications import dispatch
from utils.promise_service import commit, get_user, current_open_promise, most_recent_promise
from utils.time_window import utcnow, remaining_time, can_create_new

logger = logging.getLogger(__name__)

REMINDER_TYPES = ('gentle', 'completion', 'daily')

# UTC hour each reminder preference is served at
REMINDER_SLOT_HOURS = {
    ReminderTimeEnum.morning: 9,
    ReminderTimeEnum.midday: 13,
    ReminderTimeEnum.evening: 19,
}

COMPLETION_REMINDER_LEAD = timedelta(hours=1)


def send_reminder(user_id, reminder_type, now=None):
    """Returns ``(sent, message)``. Nothing to remind about is not an error."""
    if reminder_type not in REMINDER_TYPES:
        raise ValidationError(f"Invalid reminderType, expected one of: {', '.join(REMINDER_TYPES)}")

    user = get_user(user_id)
    now = now or utcnow()

    if reminder_type == 'daily':
        if not can_create_new(most_recent_promise(user.id), now):
            return False, "Current promise window is still active"
        dispatch('daily', to=user.email, name=user.name, user_id=user.id)
        return True, "daily reminder sent successfully"

    promise = current_open_promise(user.id)
    if promise is None:
        return False, "No active promise to remind about"

    params = dict(to=user.email, name=user.name, user_id=user.id,
                  promise=promise.promise_text, is_completed=bool(promise.completed))

    if reminder_type == 'gentle':
        dispatch('gentle', **params)
    elif dispatch('completion', **params):
        promise.completion_reminder_sent = now
        commit()

    return True, f"{reminder_type} reminder sent successfully"


def remind_slot(slot, now=None):
    """Gentle reminder for users with an open promise, daily nudge for the rest."""
    now = now or utcnow()
    sent = 0

    for user in User.query.filter_by(reminder_time=slot).all():
        promise = current_open_promise(user.id)
        if promise is not None:
            dispatch('gentle', to=user.email, name=user.name, user_id=user.id,
                     promise=promise.promise_text, is_completed=False)
            sent += 1
        elif can_create_new(most_recent_promise(user.id), now):
            dispatch('daily', to=user.email, name=user.name, user_id=user.id)
            sent += 1

    logger.info("Reminder slot %s: %d email(s) dispatched", slot.value, sent)
    return sent


def remind_due_completions(now=None):
    """Completion reminder for open promises whose deadline is less than an hour away."""
    now = now or utcnow()
    sent = 0

    candidates = Promise.query.filter(
        Promise.completed_at.is_(None),
        Promise.completion_reminder_sent.is_(None)
    ).all()

    for promise in candidates:
        left = remaining_time(promise, now)
        if not timedelta(0) < left <= COMPLETION_REMINDER_LEAD:
            continue
        user = promise.user
        # left unstamped on failure so the next sweep retries
        if not dispatch('completion', to=user.email, name=user.name, user_id=user.id,
                        promise=promise.promise_text, is_completed=False):
            continue
        promise.completion_reminder_sent = now
        sent += 1

    if sent:
        commit()
    logger.info("Completion reminders: %d email(s) dispatched", sent)
    return sent
