"""User administration schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserCreate(BaseModel):
    username: str
    password: str
    role: str
    name: str | None = None
    email: str | None = None
    contact_number: str | None = None
    address: str | None = None


class UserRead(BaseModel):
    id: int
    username: str
    role: str
    name: str | None = None
    email: str | None = None
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientProfileUpdate(BaseModel):
    name: str
    email: str
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None


class RoleUpdate(BaseModel):
    role: str
