from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from config import Config
import logging

db = SQLAlchemy()


def apply_statement_timeout(app):
    timeout_ms = app.config.get('DB_STATEMENT_TIMEOUT_MS') or 0
    uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')

    if timeout_ms and uri.startswith('postgresql'):
        engine_options = dict(app.config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})
        connect_args = dict(engine_options.get('connect_args') or {})
        connect_args['options'] = f'-c statement_timeout={int(timeout_ms)}'
        engine_options['connect_args'] = connect_args
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options
        logging.info(f'Database statement timeout set to {timeout_ms} ms')


def create_app(config_class=Config, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    apply_statement_timeout(app)
    db.init_app(app)

    from enrollment_lifecycle.utils.helpers import SystemClock
    app.extensions['clock'] = clock or SystemClock(app.config['TIMEZONE'])

    from enrollment_lifecycle import models

    with app.app_context():
        db.create_all()
        from enrollment_lifecycle.utils import init_db
        init_db.initialize_database()

    from enrollment_lifecycle.utils.counters import setup_enrollment_counter_sync
    setup_enrollment_counter_sync()

    if app.config.get('SCHEDULER_ENABLED'):
        from enrollment_lifecycle.utils.scheduler import init_scheduler
        init_scheduler(app)

    return app
