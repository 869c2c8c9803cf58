import logging
from apscheduler.schedulers.background import BackgroundScheduler
from utils.reminder_service import REMINDER_SLOT_HOURS, remind_slot, remind_due_completions

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone="UTC")


def slot_reminder_job(app, slot):
    with app.app_context():
        try:
            logger.info("Running %s reminder task...", slot.value)
            remind_slot(slot)
        except Exception:
            logger.exception("%s reminder task failed", slot.value)


def completion_reminder_job(app):
    with app.app_context():
        try:
            remind_due_completions()
        except Exception:
            logger.exception("Completion reminder task failed")


def start_scheduler(app):
    for slot, hour in REMINDER_SLOT_HOURS.items():
        scheduler.add_job(slot_reminder_job, 'cron', hour=hour, minute=0, args=[app, slot],
                          id=f"reminder_{slot.value}", replace_existing=True)
    # hourly sweep for deadlines less than an hour away
    scheduler.add_job(completion_reminder_job, 'cron', minute=0, args=[app],
                      id="completion_reminders", replace_existing=True)

    scheduler.start()
    logger.info("Scheduler started: reminders at %s UTC, completion sweep hourly",
                ", ".join(f"{slot.value} {hour:02d}:00" for slot, hour in REMINDER_SLOT_HOURS.items()))
