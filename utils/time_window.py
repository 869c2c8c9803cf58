# utils/time_window.py
"""
24-hour promise window rules.

Every function takes an optional ``now`` so callers can pin the clock.
All datetimes are naive UTC.
"""
from collections import namedtuple
from datetime import datetime, timedelta, timezone

PROMISE_WINDOW = timedelta(hours=24)


class Eligibility(namedtuple('Eligibility', ['hours', 'minutes'])):
    """Time left until a new promise may be made, seconds truncated."""

    def __str__(self):
        return f"{self.hours}h {self.minutes}m"

    def to_dict(self):
        return {"hours": self.hours, "minutes": self.minutes}


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    """Normalise a datetime or ISO-8601 string to a naive UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def effective_deadline(promise):
    if promise.target_date is not None:
        return to_naive_utc(promise.target_date)
    return to_naive_utc(promise.created_at) + PROMISE_WINDOW


def remaining_time(promise, now=None):
    """Time left before the promise deadline; never negative."""
    now = now or utcnow()
    return max(timedelta(0), effective_deadline(promise) - now)


def remaining_ms(promise, now=None):
    return int(remaining_time(promise, now) // timedelta(milliseconds=1))


def can_create_new(most_recent, now=None):
    """
    True when no promise exists or the most recent one is at least 24h old.
    The completed flag is ignored: finishing early does not unlock sooner.
    """
    if most_recent is None:
        return True
    now = now or utcnow()
    return now - to_naive_utc(most_recent.created_at) >= PROMISE_WINDOW


def time_until_eligible(most_recent, now=None):
    if can_create_new(most_recent, now):
        return None
    now = now or utcnow()
    left = to_naive_utc(most_recent.created_at) + PROMISE_WINDOW - now
    total_minutes = int(left.total_seconds()) // 60
    return Eligibility(total_minutes // 60, total_minutes % 60)
