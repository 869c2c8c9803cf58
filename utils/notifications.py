# utils/notifications.py
"""
Outbound email dispatch.

``dispatch`` never raises: a lifecycle write that already committed must not
be undone because the mail provider is unreachable. With a queue configured
the send runs on an rq worker, otherwise inline in the request.
"""
import logging
from flask import current_app
from utils import email as mailer

logger = logging.getLogger(__name__)


def send_notification(template, params):
    """Render ``template`` and send it. Returns None when the send is suppressed."""
    if template == 'gentle' and params.get('is_completed'):
        logger.info("Gentle reminder skipped for %s: promise already completed", params.get('to'))
        return None

    render = mailer.TEMPLATES.get(template)
    if render is None:
        raise ValueError(f"Unknown email template: {template}")

    subject, html = render(**params)
    return mailer.send_email(params['to'], subject, html)


def run_notification_job(template, params):
    """rq entry point: workers run outside any request, so build the app here."""
    from app import create_app
    app = create_app()

    with app.app_context():
        return send_notification(template, params)


def report_failed_job(job, connection, exc_type, exc_value, traceback):
    # rq keeps the job in its FailedJobRegistry; this is the log side of it
    logger.error(
        "[notifications] job %s (%s) failed for %s: %s",
        job.id, job.args[0] if job.args else '?',
        job.args[1].get('to') if len(job.args) > 1 else '?', exc_value
    )


def dispatch(template, **params):
    """
    Fire-and-forget send. Returns True when the email was sent or queued,
    None when suppressed, False when it failed (already logged).
    """
    try:
        queue = current_app.extensions.get('notification_queue')
        if current_app.config.get('NOTIFICATIONS_ASYNC') and queue is not None:
            job = queue.enqueue(
                run_notification_job, template, params,
                on_failure=report_failed_job,
                job_timeout=60
            )
            logger.info("[notifications] queued %s for %s as job %s", template, params.get('to'), job.id)
            return True

        return send_notification(template, params)
    except Exception:
        logger.exception("[notifications] failed to send %s to %s", template, params.get('to'))
        return False
