"""User administration and client profile endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ict_orders.core.security import get_password_hash, get_principal
from ict_orders.db.session import get_db
from ict_orders.models.user import User
from ict_orders.schemas.user import ClientProfileUpdate, RoleUpdate, UserCreate, UserRead
from ict_orders.services.access_control import Capability, ensure_capability
from ict_orders.services.actor import Principal
from ict_orders.services.user_service import (
    ClientProfileChanges,
    change_user_role,
    create_user,
    delete_user,
    update_client_profile,
)

router: APIRouter = APIRouter()


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(
    payload: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    ensure_capability(principal.role, Capability.MANAGE_USERS, "Only administrators can create users")
    return create_user(
        db,
        username=payload.username,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        actor=principal.actor,
        name=payload.name,
        email=payload.email,
        contact_number=payload.contact_number,
        address=payload.address,
    )


@router.put("/{user_id}/profile", response_model=UserRead)
def update_profile_endpoint(
    user_id: int,
    payload: ClientProfileUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    """Update a client profile; open orders pick up the new details."""
    return update_client_profile(
        db,
        user_id=user_id,
        changes=ClientProfileChanges(**payload.model_dump()),
        actor=principal.actor,
        role=principal.role,
    )


@router.patch("/{user_id}/role", response_model=UserRead)
def change_role_endpoint(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    return change_user_role(
        db,
        user_id=user_id,
        new_role=payload.role,
        actor=principal.actor,
        role=principal.role,
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    delete_user(db, user_id=user_id, actor=principal.actor, role=principal.role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
