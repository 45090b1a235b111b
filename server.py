from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from aliasbox.api.base import api_bp
from aliasbox.config import DB_URI, FLASK_SECRET
from aliasbox.db import Database
from aliasbox.extensions import limiter, login_manager
from aliasbox.log import LOG, set_request_user

# the views register their routes on api_bp when imported
from aliasbox.api.views import (  # noqa: F401
    alias,
    auth,
    custom_domain,
    deleted_alias,
    setting,
    user,
    username,
)


def create_app(db: Optional[Database] = None) -> Flask:
    app = Flask(__name__)
    app.url_map.strict_slashes = False
    app.secret_key = FLASK_SECRET

    if db is None:
        db = Database(DB_URI)
    app.extensions["aliasbox_db"] = db

    init_extensions(app)
    register_blueprints(app)
    set_request_hooks(app, db)
    setup_error_page(app)

    return app


def register_blueprints(app: Flask):
    app.register_blueprint(api_bp)


def set_request_hooks(app: Flask, db: Database):
    @app.after_request
    def after_request(res):
        LOG.debug(
            "%s %s %s %s %s",
            request.remote_addr,
            request.method,
            request.path,
            request.args,
            res.status_code,
        )
        return res

    @app.teardown_appcontext
    def shutdown_session(response_or_exc):
        set_request_user(None)
        db.remove()


def setup_error_page(app: Flask):
    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return jsonify(error=e.description), e.code

    @app.errorhandler(Exception)
    def error_handler(e):
        LOG.exception(e)
        return jsonify(error="Internal error"), 500


def init_extensions(app: Flask):
    LOG.debug("init extensions")
    login_manager.init_app(app)
    limiter.init_app(app)


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=7777)
