import logging
import os
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_migrate import Migrate
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from extensions import db, init_queue

# Import model registration up front to make the dependency explicit
from models import register_models

from blueprints.subscribe import subscribe_bp
from blueprints.user import user_bp
from blueprints.invitation import invitation_bp
from blueprints.reminder import reminder_bp
from utils.errors import PromiseError

load_dotenv()


def _env_flag(name, default='False'):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


def configure_logging(level):
    # no-op when the root logger already has handlers (gunicorn, pytest)
    logging.basicConfig(format='[%(asctime)s] %(levelname)s %(name)s: %(message)s')
    logging.getLogger().setLevel(level)


def create_app(test_config=None):
    app = Flask(__name__)

    # the front end runs on its own origin
    CORS(app)

    # ===== config =====
    app.config.update(
        SECRET_KEY=os.getenv('SECRET_KEY', 'dev'),
        SQLALCHEMY_DATABASE_URI=os.getenv('DB_URI', 'sqlite:///promise.db'),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        REDIS_URL=os.getenv('REDIS_URL'),
        NOTIFICATIONS_ASYNC=_env_flag('NOTIFICATIONS_ASYNC', 'True'),
        APP_URL=os.getenv('APP_URL', 'http://localhost:3000'),
        MAIL_SERVER=os.getenv('MAIL_SERVER', 'localhost'),
        MAIL_PORT=int(os.getenv('MAIL_PORT', '587')),
        MAIL_USERNAME=os.getenv('MAIL_USERNAME'),
        MAIL_PASSWORD=os.getenv('MAIL_PASSWORD'),
        MAIL_SENDER=os.getenv('MAIL_SENDER', 'Promise <onboarding@localhost>'),
        MAIL_USE_TLS=_env_flag('MAIL_USE_TLS', 'True'),
        MAIL_SUPPRESS_SEND=_env_flag('MAIL_SUPPRESS_SEND'),
        SCHEDULER_ENABLED=_env_flag('SCHEDULER_ENABLED'),
        LOG_LEVEL=os.getenv('LOG_LEVEL', 'INFO'),
    )
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config['LOG_LEVEL'])

    # ===== extensions =====
    db.init_app(app)
    Migrate(app, db)
    init_queue(app)

    with app.app_context():
        register_models()

    # ===== blueprints =====
    blueprints = [
        subscribe_bp,
        user_bp,
        invitation_bp,
        reminder_bp,
    ]
    for bp in blueprints:
        app.register_blueprint(bp)

    @app.errorhandler(PromiseError)
    def handle_promise_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        app.logger.exception("Database error on %s %s", request.method, request.path)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({'success': False, 'error': 'NOT_FOUND', 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({'success': False, 'error': 'METHOD_NOT_ALLOWED', 'message': 'Method not allowed'}), 405

    # health check
    @app.route('/')
    def health_check():
        return jsonify({'status': 'healthy'})

    return app


if __name__ == '__main__':
    from scheduler import start_scheduler  # deferred import
    app = create_app()
    if app.config['SCHEDULER_ENABLED']:
        start_scheduler(app)
    app.run(host='0.0.0.0', port=5000)
