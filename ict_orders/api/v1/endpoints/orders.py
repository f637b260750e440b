"""Order endpoints."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ict_orders.core.security import get_principal
from ict_orders.db.session import get_db
from ict_orders.models.order import Order
from ict_orders.models.user import User
from ict_orders.schemas.order import (
    ActivityLogEntryRead,
    ChatbotOrderCreate,
    ClientRead,
    OrderCreate,
    OrderPage,
    OrderRead,
    OrderStatusRead,
    OrderUpdate,
)
from ict_orders.services.access_control import is_elevated
from ict_orders.services.actor import Principal
from ict_orders.services.audit_store import SqlAuditLogStore
from ict_orders.services.order_service import (
    ClientSnapshot,
    OrderChanges,
    create_chatbot_order,
    create_order,
    delete_order,
    get_order,
    list_orders,
    update_order,
)
from ict_orders.services.order_store import OrderFilter, SqlOrderStore

router: APIRouter = APIRouter()


def serialize_order(order: Order) -> OrderRead:
    return OrderRead(
        id=order.id,
        client=ClientRead(
            id=order.client_id,
            name=order.client_name,
            email=order.client_email,
            contact_number=order.client_contact_number,
            address=order.client_address,
            id_number=order.client_id_number,
        ),
        service_type=order.service_type,
        package_name=order.package_name,
        notes=order.notes,
        status=order.status,
        visp_reference_id=order.visp_reference_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
        version=order.version,
        activity_log=[ActivityLogEntryRead.model_validate(entry) for entry in order.activity_log],
    )


def _profile_snapshot(user: User) -> ClientSnapshot:
    return ClientSnapshot(
        id=f"CLI-{user.id}",
        name=user.name or user.username,
        email=user.username,
        contact_number=user.contact_number,
        address=user.address,
        id_number=user.id_number,
    )


def _client_snapshot(payload: OrderCreate, principal: Principal) -> ClientSnapshot | None:
    if payload.client is not None and is_elevated(principal.role):
        return ClientSnapshot(**payload.client.model_dump())
    if payload.client is not None:
        return ClientSnapshot(**payload.client.model_dump(), id=f"CLI-{principal.user.id}")
    if principal.role == "CLIENT":
        return _profile_snapshot(principal.user)
    return None


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order_endpoint(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderRead:
    """Place a new order; clients order for themselves."""
    order = create_order(
        SqlOrderStore(db),
        SqlAuditLogStore(db),
        client=_client_snapshot(payload, principal),
        service_type=payload.service_type,
        package_name=payload.package_name,
        notes=payload.notes,
        actor=principal.actor,
        role=principal.role,
    )
    return serialize_order(order)


@router.post("/chatbot", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_chatbot_order_endpoint(
    payload: ChatbotOrderCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderRead:
    """Place an order gathered by the chatbot for the signed-in client."""
    order = create_chatbot_order(
        SqlOrderStore(db),
        SqlAuditLogStore(db),
        client=_profile_snapshot(principal.user),
        service_type=payload.service_type,
        package_name=payload.package_name,
        notes=payload.notes,
        actor=principal.actor,
        role=principal.role,
    )
    return serialize_order(order)


@router.get("", response_model=OrderPage)
def list_orders_endpoint(
    status_value: str | None = Query(default=None, alias="status"),
    client_email: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderPage:
    """List orders newest first; clients only see their own."""
    result = list_orders(
        SqlOrderStore(db),
        actor=principal.actor,
        role=principal.role,
        filters=OrderFilter(status=status_value, client_email=client_email),
        page=page,
        page_size=page_size,
    )
    return OrderPage(
        items=[serialize_order(order) for order in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/{order_id}", response_model=OrderRead)
def get_order_endpoint(
    order_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderRead:
    order = get_order(SqlOrderStore(db), order_id=order_id, actor=principal.actor, role=principal.role)
    return serialize_order(order)


@router.get("/{order_id}/simple-status", response_model=OrderStatusRead)
def get_order_status_endpoint(
    order_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderStatusRead:
    """Lightweight status lookup, scoped like a full order read."""
    order = get_order(SqlOrderStore(db), order_id=order_id, actor=principal.actor, role=principal.role)
    return OrderStatusRead.model_validate(order)


@router.patch("/{order_id}", response_model=OrderRead)
def update_order_endpoint(
    order_id: str,
    payload: OrderUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> OrderRead:
    order = update_order(
        SqlOrderStore(db),
        SqlAuditLogStore(db),
        order_id=order_id,
        changes=OrderChanges(**payload.model_dump(exclude={"expected_version"})),
        actor=principal.actor,
        role=principal.role,
        expected_version=payload.expected_version,
    )
    return serialize_order(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order_endpoint(
    order_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    delete_order(
        SqlOrderStore(db),
        SqlAuditLogStore(db),
        order_id=order_id,
        actor=principal.actor,
        role=principal.role,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
