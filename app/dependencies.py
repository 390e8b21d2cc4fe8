# app/dependencies.py
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import BlogError, ForbiddenError, UnauthorizedError
from app.models.user import User
from app.services.auth import user_from_token

# Security scheme. auto_error is off so a missing header becomes our own 401
bearer = HTTPBearer(description="Bearer access token (JWT)", auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """Mandatory authentication: reject before the handler runs."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    return user_from_token(db, credentials.credentials)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User | None:
    """Optional authentication: any problem with the token means an anonymous caller."""
    if credentials is None or not credentials.credentials:
        return None

    try:
        return user_from_token(db, credentials.credentials)
    except BlogError:
        return None


def require_role(*roles: str):
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenError("Access denied")
        return user

    return checker


def require_ownership(param: str = "user_id"):
    """Admins always pass; everyone else may only reach their own resources."""

    def checker(request: Request, user: User = Depends(get_current_user)) -> User:
        if user.role == "admin":
            return user

        resource_user_id = request.path_params.get(param)
        if str(user.id) != str(resource_user_id):
            raise ForbiddenError("You can only access your own resources")
        return user

    return checker


require_admin = require_role("admin")
