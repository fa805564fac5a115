from __future__ import annotations

from functools import wraps
from typing import Optional

import jwt
from flask import current_app, g, request

from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import AuthenticationError

JWT_ALGO = "HS256"


def decode_bearer(authorization: Optional[str], *, secret: str) -> Actor:
    """Turn an ``Authorization: Bearer <jwt>`` header into an Actor."""

    if not authorization:
        raise AuthenticationError("Not authorized, no token")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Not authorized, invalid auth scheme")

    try:
        payload = jwt.decode(parts[1], secret, algorithms=[JWT_ALGO])
    except jwt.PyJWTError:
        raise AuthenticationError("Not authorized, token failed")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise AuthenticationError("Not authorized, unknown role")

    sub = payload.get("sub")
    user_id = int(sub) if sub is not None and str(sub).isdigit() else None
    return Actor(user_id=user_id, name=str(payload.get("name") or ""), role=role)


def roles_required(*roles: Role):
    """Authenticate the request and check the caller holds one of ``roles``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = decode_bearer(
                request.headers.get("Authorization"),
                secret=current_app.config["JWT_SECRET"],
            )
            actor.require(roles)
            g.actor = actor
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_actor() -> Actor:
    return g.actor
