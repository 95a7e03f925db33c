"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

import os

from flask import Flask

from ..extensions import csrf_protect, db, login_manager, migrate, scheduler
from .error_handlers import error_response, register_error_handlers
from .logging_config import setup_logging


def configure_logging(app: Flask) -> None:
    """Configure the app logger from LOG_LEVEL / LOG_DIR / LOG_JSON."""

    setup_logging(
        app,
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        log_dir=app.config.get("LOG_DIR"),
        json_format=app.config.get("LOG_JSON", False),
    )


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    from ..modules.notification.services.push_queue import push_queue

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf_protect.init_app(app)
    push_queue.init_app(app)


def register_auth(app: Flask) -> None:
    """Wire Flask-Login to the users table; the API answers 401 in JSON."""

    @login_manager.user_loader
    def load_user(user_id: str):
        from ..models import User

        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return error_response("Authentication required", "UNAUTHENTICATED", 401)


def register_blueprints(app: Flask) -> None:
    """Register the API blueprints and connect signal subscribers."""

    from ..modules.notification import notification_api_bp, push_api_bp

    # JSON API: no CSRF form tokens are issued to clients
    csrf_protect.exempt(notification_api_bp)
    csrf_protect.exempt(push_api_bp)

    app.register_blueprint(notification_api_bp, url_prefix="/api/notifications")
    app.register_blueprint(push_api_bp, url_prefix="/api/push")
    app.logger.debug("Registered notification and push API blueprints.")

    register_error_handlers(app)


def register_scheduler(app: Flask) -> None:
    """Start APScheduler with the notification sweeps."""

    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("Scheduler disabled by configuration.")
        return

    # Under the reloader only the child process runs jobs
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return

    from apscheduler.schedulers import SchedulerAlreadyRunningError

    from ..modules.notification.tasks import (
        scheduled_budget_sweep,
        scheduled_dday_daily_sweep,
        scheduled_dday_milestone_sweep,
    )

    timezone = app.config.get("SYSTEM_TIMEZONE", "UTC")
    sweep_hour = app.config.get("NOTIFICATION_SWEEP_HOUR", 9)

    try:
        scheduler.init_app(app)
        scheduler.add_job(
            id="dday_milestone_sweep",
            func=scheduled_dday_milestone_sweep,
            trigger="cron",
            hour=sweep_hour,
            minute=0,
            timezone=timezone,
            replace_existing=True,
        )
        scheduler.add_job(
            id="budget_sweep",
            func=scheduled_budget_sweep,
            trigger="cron",
            hour=sweep_hour,
            minute=5,
            timezone=timezone,
            replace_existing=True,
        )
        # Hourly so each user's preferred_time is honoured
        scheduler.add_job(
            id="dday_daily_sweep",
            func=scheduled_dday_daily_sweep,
            trigger="cron",
            minute=0,
            timezone=timezone,
            replace_existing=True,
        )
        if not scheduler.running:
            scheduler.start()
        app.logger.info(f"Notification sweeps scheduled (daily at {sweep_hour}:00 {timezone}, digest hourly).")
    except SchedulerAlreadyRunningError:
        app.logger.info("Scheduler already running, skipping re-initialisation.")


def initialize_database(app: Flask) -> None:
    """Create database tables for every registered model."""

    from .. import models  # noqa: F401  (registers external collaborator tables)
    from ..modules.notification import models as notification_models  # noqa: F401

    db.create_all()
    app.logger.info("Database tables ensured.")
