import smtplib
from types import SimpleNamespace

import pytest

import utils.email
from utils import notifications
from utils.notifications import dispatch, send_notification


class FakeQueue:
    def __init__(self, fail=False):
        self.jobs = []
        self.fail = fail

    def enqueue(self, func, *args, **kwargs):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.jobs.append((func, args, kwargs))
        return SimpleNamespace(id=f"job-{len(self.jobs)}")


def test_gentle_reminder_suppressed_when_completed(app, outbox):
    result = dispatch('gentle', to='ana@x.com', name='Ana', user_id='u1', promise='read', is_completed=True)

    assert result is None
    assert outbox == []


def test_gentle_reminder_sent_when_open(app, outbox):
    assert dispatch('gentle', to='ana@x.com', name='Ana', user_id='u1', promise='read', is_completed=False)
    assert outbox[0]['subject'] == 'A gentle reminder about your promise'
    assert 'https://promise.test/dashboard/u1' in outbox[0]['html']


@pytest.mark.parametrize("is_completed,subject", [
    (True, 'Congratulations on completing your promise!'),
    (False, 'Your promise is ready to be completed'),
])
def test_completion_subject_depends_on_state(app, outbox, is_completed, subject):
    dispatch('completion', to='ana@x.com', name='Ana', user_id='u1', promise='read', is_completed=is_completed)
    assert outbox[0]['subject'] == subject


def test_promise_text_is_html_escaped(app, outbox):
    dispatch('welcome', to='ana@x.com', name='Ana', user_id='u1', promise='<script>alert(1)</script>')
    assert '<script>' not in outbox[0]['html']
    assert '&lt;script&gt;' in outbox[0]['html']


def test_dispatch_swallows_send_failure(app, broken_mail, caplog):
    result = dispatch('daily', to='ana@x.com', name='Ana', user_id='u1')

    assert result is False
    assert broken_mail == ['ana@x.com']
    assert 'failed to send daily to ana@x.com' in caplog.text


def test_dispatch_swallows_unknown_template(app, outbox):
    assert dispatch('birthday', to='ana@x.com') is False
    assert outbox == []


def test_send_notification_raises_for_unknown_template(app):
    with pytest.raises(ValueError):
        send_notification('birthday', {'to': 'ana@x.com'})


def test_dispatch_enqueues_when_async(app, outbox):
    queue = FakeQueue()
    app.extensions['notification_queue'] = queue
    app.config['NOTIFICATIONS_ASYNC'] = True

    assert dispatch('daily', to='ana@x.com', name='Ana', user_id='u1') is True

    func, args, kwargs = queue.jobs[0]
    assert func is notifications.run_notification_job
    assert args == ('daily', {'to': 'ana@x.com', 'name': 'Ana', 'user_id': 'u1'})
    assert kwargs['on_failure'] is notifications.report_failed_job
    # nothing sent inline
    assert outbox == []


def test_dispatch_swallows_enqueue_failure(app, outbox):
    app.extensions['notification_queue'] = FakeQueue(fail=True)
    app.config['NOTIFICATIONS_ASYNC'] = True

    assert dispatch('daily', to='ana@x.com', name='Ana', user_id='u1') is False


def test_async_without_queue_sends_inline(app, outbox):
    app.extensions['notification_queue'] = None
    app.config['NOTIFICATIONS_ASYNC'] = True

    assert dispatch('daily', to='ana@x.com', name='Ana', user_id='u1') is True
    assert len(outbox) == 1


def test_report_failed_job_logs(caplog):
    job = SimpleNamespace(id='job-9', args=('welcome', {'to': 'ana@x.com'}))
    notifications.report_failed_job(job, None, smtplib.SMTPException, smtplib.SMTPException('boom'), None)
    assert 'job-9' in caplog.text
    assert 'ana@x.com' in caplog.text


def test_send_email_suppressed_by_config(app, monkeypatch):
    app.config['MAIL_SUPPRESS_SEND'] = True

    def no_smtp(*args, **kwargs):
        raise AssertionError("SMTP must not be contacted")

    monkeypatch.setattr(utils.email.smtplib, 'SMTP', no_smtp)
    assert utils.email.send_email('ana@x.com', 'hi', '<p>hi</p>') is True


def test_send_email_uses_smtp(app, monkeypatch):
    app.config.update(MAIL_SERVER='smtp.test', MAIL_PORT=2525, MAIL_USE_TLS=True,
                      MAIL_USERNAME='user', MAIL_PASSWORD='secret')
    calls = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            calls.append(('connect', host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            calls.append(('starttls',))

        def login(self, username, password):
            calls.append(('login', username))

        def sendmail(self, sender, recipients, message):
            calls.append(('sendmail', sender, recipients))

    monkeypatch.setattr(utils.email.smtplib, 'SMTP', FakeSMTP)

    utils.email.send_email('ana@x.com', 'hi', '<p>hi</p>')

    assert calls == [
        ('connect', 'smtp.test', 2525),
        ('starttls',),
        ('login', 'user'),
        ('sendmail', 'promises@promise.test', ['ana@x.com']),
    ]
