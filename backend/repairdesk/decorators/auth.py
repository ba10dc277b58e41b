from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from repairdesk.services.policy import has_permissions, current_session


def require_permissions(*codes: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_roles(*roles: str):
    """Role gate for the few destructive actions reserved to specific staff roles."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if current_session().role not in roles:
                abort(403, description=f"Requires role: {', '.join(roles)}")
            return fn(*args, **kwargs)
        return wrapper
    return outer
