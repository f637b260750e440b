"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ict_orders.core.security import get_current_user, get_password_hash, issue_access_token
from ict_orders.db.session import get_db
from ict_orders.models.user import User
from ict_orders.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from ict_orders.services.account_service import authenticate_user, record_logout
from ict_orders.services.errors import AuthenticationError
from ict_orders.services.user_service import register_client

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthUserResponse:
    user = register_client(
        db,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        name=payload.name,
        contact_number=payload.contact_number,
        address=payload.address,
    )
    return AuthUserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user: User | None = authenticate_user(db, payload.username, payload.password)
    if user is None:
        raise AuthenticationError("Incorrect username or password")
    return TokenResponse(access_token=issue_access_token(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> Response:
    record_logout(db, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AuthUserResponse)
def me(current_user: User = Depends(get_current_user)) -> AuthUserResponse:
    return AuthUserResponse.model_validate(current_user)
