from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import config
from app.errors import (
    ConflictError,
    InvalidTokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.models.user import User

INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DISABLED = "Account is disabled"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long candidate
        return False


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(days=config.JWT_EXPIRES_IN_DAYS),
        "iss": config.JWT_ISSUER,
        "aud": config.JWT_AUDIENCE,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature, expiry, issuer and audience.
    Raises TokenExpiredError, InvalidTokenError or UnauthorizedError.
    """
    try:
        return jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            audience=config.JWT_AUDIENCE,
            issuer=config.JWT_ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()
    except Exception as e:
        print(f"❌ Unexpected token error: {e}")
        raise UnauthorizedError("Authentication failed")


def user_from_token(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidTokenError()

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise InvalidTokenError()
    if not user.is_active:
        raise UnauthorizedError(ACCOUNT_DISABLED)
    return user


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def _stamp_login(db: Session, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)


def register_user(db: Session, name: str, email: str, password: str) -> tuple[User, str]:
    if find_user_by_email(db, email):
        raise ConflictError("Email is already registered")

    user = User(name=name.strip(), email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError("Email is already registered")
    db.refresh(user)

    token = create_access_token(user)
    _stamp_login(db, user)
    return user, token


def authenticate_user(db: Session, email: str, password: str) -> tuple[User, str]:
    user = find_user_by_email(db, email)
    if not user:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not user.is_active:
        raise UnauthorizedError(ACCOUNT_DISABLED)

    if not verify_password(password, user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    token = create_access_token(user)
    _stamp_login(db, user)
    return user, token
