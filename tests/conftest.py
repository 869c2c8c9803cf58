import smtplib
from datetime import timedelta

import pytest

import utils.email
from app import create_app
from extensions import db
from models import User, Promise, ReminderTimeEnum
from utils.time_window import utcnow


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'REDIS_URL': None,
        'NOTIFICATIONS_ASYNC': False,
        'SCHEDULER_ENABLED': False,
        'APP_URL': 'https://promise.test',
        'MAIL_SENDER': 'Promise <promises@promise.test>',
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(monkeypatch):
    """Capture emails instead of talking to an SMTP server."""
    sent = []

    def fake_send(to_email, subject, html):
        sent.append({'to': to_email, 'subject': subject, 'html': html})
        return True

    monkeypatch.setattr(utils.email, 'send_email', fake_send)
    return sent


@pytest.fixture
def broken_mail(monkeypatch):
    calls = []

    def failing_send(to_email, subject, html):
        calls.append(to_email)
        raise smtplib.SMTPServerDisconnected("mail provider unavailable")

    monkeypatch.setattr(utils.email, 'send_email', failing_send)
    return calls


@pytest.fixture
def make_user(app):
    def _make(email='ana@x.com', name='Ana', reminder_time=ReminderTimeEnum.morning):
        user = User(name=name, email=email, reminder_time=reminder_time)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_promise(app):
    def _make(user, text='read 10 pages', age=timedelta(0), completed=False, **fields):
        created_at = utcnow() - age
        promise = Promise(
            user_id=user.id,
            promise_text=text,
            created_at=created_at,
            completed=completed,
            completed_at=created_at + timedelta(hours=1) if completed else None,
            **fields
        )
        db.session.add(promise)
        db.session.commit()
        return promise
    return _make
