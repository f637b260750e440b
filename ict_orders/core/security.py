"""Password hashing, bearer tokens and the request principal dependency."""

from datetime import timedelta
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ict_orders.core.config import settings
from ict_orders.db.session import get_db
from ict_orders.models.user import User
from ict_orders.services.actor import Principal
from ict_orders.services.errors import AuthenticationError
from ict_orders.services.user_service import get_user_by_id
from ict_orders.utils.time import utcnow

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def issue_access_token(user: User) -> str:
    """Sign a token naming the account; role and username are informational only."""
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "exp": utcnow() + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def user_id_from_token(token: str) -> int:
    """Return the account id a token was issued for.

    Raises:
        AuthenticationError: the token is malformed, expired or carries no usable subject.
    """
    try:
        claims: dict[str, Any] = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Could not validate credentials") from exc


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Load the active account behind the bearer token.

    Role and identity are always read from the database, so a role change or
    deactivation applies to tokens that are already issued.
    """
    user = get_user_by_id(db, user_id_from_token(credentials.credentials))
    if user is None or not user.is_active:
        raise AuthenticationError("Account not found or inactive")
    return user


def get_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(user)
