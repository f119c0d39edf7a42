from __future__ import annotations

import importlib
import os
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from .api import errors
from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth
from .common.logger import get_logger, init_logging
from .config import get_settings_module
from .container import build_container
from .database import bootstrap
from .departments.controller import register as register_departments
from .employees.controller import register as register_employees
from .extensions import db
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .settings.controller import register as register_settings
from .tasks.controller import register as register_tasks

logger = get_logger(__name__)

_SETTING_KEYS = (
    "SECRET_KEY",
    "SQLALCHEMY_DATABASE_URI",
    "DEBUG",
    "TESTING",
    "LOG_LEVEL",
    "UPLOAD_FOLDER",
    "AUTO_INIT_DB",
    "AUTO_SEED_DB",
)


def create_app(settings_module: Optional[str] = None, **overrides: Any) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    for key in _SETTING_KEYS:
        if hasattr(settings, key):
            app.config[key] = getattr(settings, key)
    app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]
    app.config["UPLOAD_FOLDER"] = os.path.abspath(app.config.get("UPLOAD_FOLDER", "uploads"))
    app.json.sort_keys = False

    init_logging(app.config.get("LOG_LEVEL", "INFO"))
    db.init_app(app)

    container = build_container(upload_folder=app.config["UPLOAD_FOLDER"])
    app.extensions["container"] = container

    errors.register(app)
    register_auth(app, container)
    register_settings(app, container)
    register_departments(app, container)
    register_employees(app, container)
    register_tasks(app, container)
    register_attendance(app, container)
    register_notifications(app, container)
    register_reports(app, container)

    with app.app_context():
        if app.config.get("AUTO_INIT_DB"):
            bootstrap.create_schema(app.config["SQLALCHEMY_DATABASE_URI"])
        if app.config.get("AUTO_SEED_DB"):
            bootstrap.seed_demo_data()

    logger.info("App ready (settings=%s)", settings_module)
    return app
