#!/usr/bin/env python3
"""
Session lifecycle route handlers
"""

from concurrent.futures import TimeoutError as FutureTimeoutError
from urllib.parse import urlsplit

from bottle import request, response
from smart_session.auth.errors import AuthorizationInProgressError, InvalidTransitionError, SmartSessionError
from smart_session.utils import logger

DEFAULT_CALLBACK_PATH = "/callback"

# How long a request waits for the manager to settle an operation
REQUEST_TIMEOUT = 30

# Authorization flows finish in the browser; only wait long enough to see them start or get rejected
FLOW_START_TIMEOUT = 2


def _callback_path(redirect_uri):
    path = urlsplit(redirect_uri or "").path
    return path if path.startswith("/") and path != "/" else DEFAULT_CALLBACK_PATH


def _flag(name):
    """Boolean option from a JSON body or the query string"""
    body = request.json if request.json is not None else {}
    value = body.get(name, request.query.get(name))
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


def setup_session_routes(app, manager):
    """Setup session lifecycle routes"""

    callback_path = _callback_path(manager.config.redirect_uri)

    @app.route(callback_path)
    def oauth_callback():
        try:
            handled = manager.handle_redirect(request.url).result(timeout=REQUEST_TIMEOUT)
            return {"handled": handled, **manager.status()}
        except FutureTimeoutError:
            logger.error("Redirect handling timed out")
            response.status = 504
            return {"error": "Redirect handling timed out"}
        except Exception as api_err:
            logger.error(f"API Error in {callback_path}: {str(api_err)}")
            response.status = 400 if isinstance(api_err, SmartSessionError) else 500
            return {"error": str(api_err)}

    @app.route("/api/session")
    def session_status():
        try:
            return manager.status()
        except Exception as api_err:
            logger.error(f"API Error in /api/session: {str(api_err)}")
            response.status = 500
            return {"error": str(api_err)}

    @app.route("/api/session/authorize", method="POST")
    def authorize():
        errors = []

        def completion(success, error):
            if error is not None:
                errors.append(error)

        try:
            success = manager.authorize(completion).result(timeout=FLOW_START_TIMEOUT)
        except FutureTimeoutError:
            # The flow continues; its outcome shows up in /api/session
            response.status = 202
            return {"pending": True, **manager.status()}
        except Exception as api_err:
            logger.error(f"API Error in /api/session/authorize: {str(api_err)}")
            response.status = 500
            return {"error": str(api_err)}

        result = {"success": success, **manager.status()}
        if errors:
            conflict = (AuthorizationInProgressError, InvalidTransitionError)
            response.status = 409 if isinstance(errors[0], conflict) else 400
            result["error"] = str(errors[0])
        return result

    @app.route("/api/session/logout", method="POST")
    def logout():
        try:
            manager.logout().result(timeout=REQUEST_TIMEOUT)
            return {"success": True, **manager.status()}
        except Exception as api_err:
            logger.error(f"API Error in /api/session/logout: {str(api_err)}")
            response.status = 500
            return {"error": str(api_err)}

    @app.route("/api/session/reselect", method="POST")
    def reselect():
        try:
            future = manager.reselect_patient(
                force_login=_flag("force_login"),
                aggressive_reset=_flag("aggressive_reset"),
            )
            started = future.result(timeout=FLOW_START_TIMEOUT)
            return {"success": started, **manager.status()}
        except FutureTimeoutError:
            response.status = 202
            return {"pending": True, **manager.status()}
        except Exception as api_err:
            logger.error(f"API Error in /api/session/reselect: {str(api_err)}")
            response.status = 500
            return {"error": str(api_err)}

    @app.route("/api/session/reauthorize", method="POST")
    def reauthorize():
        try:
            launched = manager.force_reauthorize().result(timeout=FLOW_START_TIMEOUT)
            return {"success": launched, **manager.status()}
        except FutureTimeoutError:
            response.status = 202
            return {"pending": True, **manager.status()}
        except Exception as api_err:
            logger.error(f"API Error in /api/session/reauthorize: {str(api_err)}")
            response.status = 500
            return {"error": str(api_err)}
