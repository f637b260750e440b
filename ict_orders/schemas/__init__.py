"""Schema exports."""

from ict_orders.schemas.audit import AuditLogPage, AuditLogRead
from ict_orders.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from ict_orders.schemas.order import (
    ActivityLogEntryRead,
    ChatbotOrderCreate,
    ClientPayload,
    ClientRead,
    OrderCreate,
    OrderPage,
    OrderRead,
    OrderStatusRead,
    OrderUpdate,
)
from ict_orders.schemas.user import ClientProfileUpdate, RoleUpdate, UserCreate, UserRead

__all__ = [
    "ActivityLogEntryRead",
    "AuditLogPage",
    "AuditLogRead",
    "AuthUserResponse",
    "ChatbotOrderCreate",
    "ClientPayload",
    "ClientProfileUpdate",
    "ClientRead",
    "LoginRequest",
    "OrderCreate",
    "OrderPage",
    "OrderRead",
    "OrderStatusRead",
    "OrderUpdate",
    "RegisterRequest",
    "RoleUpdate",
    "TokenResponse",
    "UserCreate",
    "UserRead",
]
