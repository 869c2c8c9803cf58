import logging
import smtplib
from html import escape
from email.mime.text import MIMEText
from email.utils import formataddr, parseaddr
from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to_email, subject, html):
    """Send one HTML email over SMTP. Raises on any transport error."""
    config = current_app.config
    sender_name, sender_addr = parseaddr(config['MAIL_SENDER'])

    if config.get('MAIL_SUPPRESS_SEND'):
        logger.info("Mail suppressed: to=%s subject=%r", to_email, subject)
        return True

    msg = MIMEText(html, 'html', 'utf-8')
    msg['From'] = formataddr((sender_name or "Promise", sender_addr))
    msg['To'] = to_email
    msg['Subject'] = subject

    with smtplib.SMTP(config['MAIL_SERVER'], config['MAIL_PORT'], timeout=10) as server:
        if config.get('MAIL_USE_TLS'):
            server.starttls()
        if config.get('MAIL_USERNAME'):
            server.login(config['MAIL_USERNAME'], config['MAIL_PASSWORD'])
        server.sendmail(sender_addr, [to_email], msg.as_string())

    logger.info("Mail sent: to=%s subject=%r", to_email, subject)
    return True


# ----------------- templates -----------------

def dashboard_link(user_id):
    return f"{current_app.config['APP_URL'].rstrip('/')}/dashboard/{user_id}"


def invitation_link(invitation_id):
    return f"{current_app.config['APP_URL'].rstrip('/')}/accept-invitation/{invitation_id}"


def _layout(greeting, lines, promise=None, link=None, link_label=None, footer=None):
    parts = ['<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
             '<h1>Promise</h1>',
             f'<p>{escape(greeting)}</p>']
    if promise:
        parts.append(f'<blockquote style="font-style: italic;">"{escape(promise)}"</blockquote>')
    parts.extend(f'<p>{escape(line)}</p>' for line in lines)
    if link:
        parts.append(f'<p><a href="{escape(link)}">{escape(link_label or link)}</a></p>')
    if footer:
        parts.append(f'<hr><p style="color: #9ca3af;">{escape(footer)}</p>')
    parts.append('</div>')
    return "\n".join(parts)


def render_welcome(name, user_id, promise, **_):
    return (
        f"Welcome to Promise, {name}! Your journey begins now",
        _layout(f"Welcome, {name}",
                ["Every promise plants a seed of change.",
                 "Nurture it with your actions today."],
                promise=promise, link=dashboard_link(user_id), link_label="View Dashboard",
                footer="You'll receive a gentle reminder when it's time for tomorrow's promise.")
    )


def render_daily(name, user_id, **_):
    return (
        "Time for a New Promise",
        _layout(f"Hello, {name}",
                ["A new day brings a new opportunity.",
                 "What will you promise yourself today?"],
                link=dashboard_link(user_id), link_label="Make Today's Promise",
                footer="Keep growing, one promise at a time.")
    )


def render_gentle(name, user_id, promise, **_):
    return (
        "A gentle reminder about your promise",
        _layout(f"Hello, {name}",
                ["Like a seed needs water to grow,",
                 "your promise needs your attention today."],
                promise=promise, link=dashboard_link(user_id), link_label="Complete Promise",
                footer="Small actions create lasting change. You've got this.")
    )


def render_completion(name, user_id, promise, is_completed=False, **_):
    if is_completed:
        subject = "Congratulations on completing your promise!"
        lines = ["Your promise has bloomed!", "You've nurtured it to completion."]
        label = "View Your Progress"
        footer = "Keep growing, one promise at a time."
    else:
        subject = "Your promise is ready to be completed"
        lines = ["It's time to harvest your promise.", "Complete it before the day ends."]
        label = "Complete Now"
        footer = "Every completed promise is a step toward lasting change."
    return subject, _layout(f"Hello, {name}", lines, promise=promise,
                            link=dashboard_link(user_id), link_label=label, footer=footer)


def render_invitation(user_name, user_email, promise, invitation_id, **_):
    return (
        f"{user_name} wants you to be their accountability partner",
        _layout("Hello,",
                [f"{user_name} ({user_email}) has made a promise and would like you "
                 "to help them keep it."],
                promise=promise, link=invitation_link(invitation_id), link_label="Respond to Invitation",
                footer="You can accept or decline from the link above.")
    )


def render_invitation_accepted(user_name, partner_email, promise, **_):
    return (
        "Your accountability partner invitation was accepted!",
        _layout(f"Hello, {user_name}",
                [f"{partner_email} accepted your invitation and will be notified "
                 "when you complete your promise."],
                promise=promise)
    )


def render_invitation_declined(user_name, partner_email, promise, **_):
    return (
        "Accountability partner invitation update",
        _layout(f"Hello, {user_name}",
                [f"{partner_email} declined your invitation.",
                 "You can always invite someone else."],
                promise=promise)
    )


def render_partner_completed(user_name, promise, **_):
    return (
        f"{user_name} completed their promise!",
        _layout("Promise Completed!",
                [f"{user_name} has completed their promise.",
                 "Keep being an amazing accountability partner!"],
                promise=promise)
    )


def render_witness_completed(user_name, promise, **_):
    return (
        f"{user_name} completed their promise - Witness Confirmation",
        _layout("Promise Completed!",
                [f"{user_name} has completed their promise.",
                 "As their witness, you can confirm this completion by replying to this email."],
                promise=promise)
    )


TEMPLATES = {
    'welcome': render_welcome,
    'daily': render_daily,
    'gentle': render_gentle,
    'completion': render_completion,
    'invitation': render_invitation,
    'invitation_accepted': render_invitation_accepted,
    'invitation_declined': render_invitation_declined,
    'partner_completed': render_partner_completed,
    'witness_completed': render_witness_completed,
}
