# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Organization


def _header_int(name: str):
    raw = request.headers.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return False


def require_tenant(f):
    """
    Establish tenant context from request headers.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.org_id: The organization ID (tenant context) - REQUIRED
    - g.user_id: Acting user from X-User-ID (may be None)

    Authentication is handled upstream; this only resolves which tenant the
    request targets. Returns 400 if X-Tenant-ID is missing or malformed and
    404 if the organization does not exist or is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        org_id = _header_int("X-Tenant-ID")
        if not org_id:
            return jsonify({"error": "X-Tenant-ID header is required", "details": {}}), 400

        org = db.session.query(Organization).filter_by(id=org_id, is_active=True).first()
        if not org:
            return jsonify({"error": "Organization not found", "details": {"org_id": org_id}}), 404

        user_id = _header_int("X-User-ID")
        if user_id is False:
            return jsonify({"error": "X-User-ID header must be an integer", "details": {}}), 400

        g.org_id = org.id
        g.user_id = user_id

        return f(*args, **kwargs)

    return decorated_function
