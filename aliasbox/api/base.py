from functools import wraps
from typing import Optional, Tuple

from flask import Blueprint, g, jsonify
from flask_login import current_user

from aliasbox.action_result import ActionResult
from aliasbox.errors import ErrorKind, NotAuthenticated
from aliasbox.extensions import get_request_token

api_bp = Blueprint(name="api", import_name=__name__, url_prefix="/api")

_STATUS_BY_ERROR_KIND = {
    ErrorKind.ValidationFailed: 400,
    ErrorKind.QuotaExceeded: 400,
    ErrorKind.NotAuthenticated: 401,
    ErrorKind.NotFoundOrForbidden: 403,
    ErrorKind.Conflict: 409,
    ErrorKind.StorageFailure: 500,
}


def authorize_request() -> Optional[Tuple[str, int]]:
    if not current_user.is_authenticated:
        return jsonify(error=NotAuthenticated().error_for_user()), 401

    g.user = current_user._get_current_object()
    g.session_token = get_request_token()
    return None


def require_api_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        error_return = authorize_request()
        if error_return:
            return error_return
        return f(*args, **kwargs)

    return decorated


def error_response(result: ActionResult):
    status = _STATUS_BY_ERROR_KIND.get(result.error_kind, 500)
    return jsonify(error=result.error), status


def message_response(result: ActionResult, status: int = 200, **extra):
    """JSON body for an operation that succeeded, completely or partially"""
    if not result.success:
        return error_response(result)

    res = dict(extra)
    if result.message:
        res["message"] = result.message
    res["partial"] = result.partial
    return jsonify(res), status
