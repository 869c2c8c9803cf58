# extensions.py
from flask_sqlalchemy import SQLAlchemy
from redis import Redis
from rq import Queue

db = SQLAlchemy()


def init_queue(app):
    """Attach the outbound email queue when a Redis URL is configured."""
    redis_url = app.config.get('REDIS_URL')
    if not redis_url:
        app.extensions['notification_queue'] = None
        return None

    redis_conn = Redis.from_url(redis_url)
    queue = Queue("notifications", connection=redis_conn)
    app.extensions['notification_queue'] = queue
    app.logger.info("Notification queue bound to %s", redis_url)
    return queue
