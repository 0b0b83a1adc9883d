# Overview: Request decorators for API routes (cashier identity and ledger error mapping).

from functools import wraps
from flask import current_app, g, jsonify, request

from .extensions import db
from .services.errors import LedgerError


CASHIER_HEADER = "X-Cashier-Id"


def require_cashier(f):
    """
    Establish the acting cashier from the gateway header.

    IDENTITY: Authentication happens upstream; the gateway forwards the
    cashier id in X-Cashier-Id and the core trusts it verbatim. Sets:
    - g.cashier_id: int

    Returns 401 if the header is missing and 400 if it is not an integer.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(CASHIER_HEADER)
        if not raw:
            return jsonify({"error": "Cashier identity required"}), 401
        try:
            g.cashier_id = int(raw)
        except ValueError:
            return jsonify({"error": f"Invalid {CASHIER_HEADER} header"}), 400
        return f(*args, **kwargs)

    return decorated_function


def handle_ledger_errors(f):
    """
    Translate service exceptions into JSON responses.

    LedgerError subclasses carry their own status code and details; anything
    else is logged with a traceback and answered with a generic 500. The
    session is rolled back either way so the request leaves no partial state.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LedgerError as e:
            db.session.rollback()
            return jsonify(e.to_dict()), e.status_code
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Unhandled error in %s %s", request.method, request.path)
            return jsonify({"error": "Internal server error"}), 500

    return decorated_function
