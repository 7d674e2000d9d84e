from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .common.web import ACTOR_HEADER
from .config import get_settings_module
from .container import Container, build_container
from .core.exceptions import ConflictError, DomainError, ForbiddenError, NotFoundError, ValidationError
from .database.bootstrap import apply_schema, list_tables
from .leave.controller import register as register_leave
from .notifications.controller import register as register_notifications
from .organization.controller import register as register_settings
from .payroll.controller import register as register_payroll

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ConflictError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
)


def _configure_logging(settings) -> None:
    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format=getattr(settings, "LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s"),
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(e, cls)), 400)
        return jsonify({"success": False, "error": str(e)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "Internal server error"}), 500


def _register_actor_resolution(app: Flask, container: Container) -> None:
    @app.before_request
    def resolve_actor():
        g.user = None
        g.employee = None
        raw = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not raw.isdigit():
            return
        user = container.employees_repo.get_user(int(raw))
        if not user or not user.is_active:
            return
        g.user = user
        g.employee = container.employees_repo.get_by_user_id(user.user_id)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(settings)

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            approver_fallback_limit=int(getattr(settings, "APPROVER_FALLBACK_LIMIT", 25)),
        )

    app.extensions["hrm_container"] = container
    _register_error_handlers(app)
    _register_actor_resolution(app, container)

    register_leave(app, container)
    register_payroll(app, container)
    register_notifications(app, container)
    register_settings(app, container)

    return app
