"""Application factory for the Estate Hub API."""

from __future__ import annotations

import traceback

import jwt
from flask import Flask, current_app, jsonify
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException

from .config import BaseConfig, get_config
from .data_access import users_dao
from .data_access.db import init_app as init_db_app
from .errors import ApiError
from .models.entities import User
from .tokens import decode_token

login_manager = LoginManager()


@login_manager.request_loader
def load_user_from_cookie(request) -> User | None:
    """Resolve the ``access_token`` cookie to a user for Flask-Login."""

    token = request.cookies.get(current_app.config["ACCESS_COOKIE_NAME"])
    if not token:
        return None
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError as exc:
        current_app.logger.warning("Rejected access token: %s", exc)
        return None
    return users_dao.get_user_by_id(payload["id"])


def create_app(config_object: type[BaseConfig] | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__)

    config_cls = config_object or get_config()
    app.config.from_object(config_cls)
    app.json.sort_keys = False

    login_manager.init_app(app)
    init_db_app(app)

    register_blueprints(app)
    register_error_handlers(app)

    @app.route("/api")
    def index():
        """Service banner."""

        return jsonify({"success": True, "message": "Estate Hub API"})

    return app


def register_blueprints(app: Flask) -> None:
    """Import and register application blueprints."""

    from .controllers import (  # pylint: disable=import-outside-toplevel
        auth,
        bookings,
        listings,
        users,
    )

    app.register_blueprint(auth.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(listings.bp)
    app.register_blueprint(bookings.bp)


def _error_response(status_code: int, message: str):
    return jsonify({"success": False, "statusCode": status_code, "message": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Render every failure as the JSON error envelope."""

    @app.errorhandler(ApiError)
    def api_error(error: ApiError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return _error_response(error.code or 500, error.description or error.name)

    @app.errorhandler(Exception)
    def server_error(error: Exception):
        current_app.logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return _error_response(500, "Internal Server Error")
