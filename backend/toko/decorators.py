# Overview: Request and role decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .services import principal_service
from .services.principal_service import ResolutionStatus


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require an admitted session and establish the request principal.

    Sets the following Flask g attributes:
    - g.principal: immutable Principal (user, role, tenant, tenant status)
    - g.session_id: the session's id (keys the in-memory cart)
    - g.token: the bearer token

    SECURITY: fails closed.
    - 401 when there is no token or it is invalid/expired
    - 403 {"redirect": "/", "signed_out": true} when the tenant is inactive
      (the session has already been revoked) or missing
    - 503 {"redirect": "/"} when the session could not be resolved
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        resolution = principal_service.resolve_session(token)
        decision = principal_service.admit_route(resolution)

        if not decision.admit:
            if resolution.status is ResolutionStatus.UNAUTHENTICATED:
                return jsonify({"error": "Invalid or expired token"}), 401
            if resolution.status is ResolutionStatus.DENIED:
                return jsonify({
                    "error": "Akun toko Anda tidak aktif. Hubungi administrator.",
                    "reason": resolution.reason,
                    "redirect": decision.redirect_to,
                    "signed_out": decision.sign_out,
                }), 403
            return jsonify({
                "error": "Session could not be verified, please try again",
                "redirect": decision.redirect_to,
            }), 503

        g.principal = resolution.principal
        g.session_id = resolution.principal.session_id
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """Require ``g.principal`` to hold one of ``roles``. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Authentication required"}), 401

            if principal.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
