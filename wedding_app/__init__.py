"""Application factory for the wedding planner notification service."""

from __future__ import annotations

from flask import Flask

from .config import Config
from .core.bootstrap import (
    configure_logging,
    initialize_database,
    register_auth,
    register_blueprints,
    register_extensions,
    register_scheduler,
)
from .extensions import db

__all__ = ["create_app", "db"]


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure a Flask application instance."""

    app = Flask(__name__)
    app.config.from_object(config_class)
    config_class.init_app(app)

    configure_logging(app)
    register_extensions(app)
    register_auth(app)
    register_blueprints(app)

    with app.app_context():
        initialize_database(app)

    register_scheduler(app)

    return app
