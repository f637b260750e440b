"""Order API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ClientPayload(BaseModel):
    """Client details captured on an order."""

    name: str
    email: str
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None


class OrderCreate(BaseModel):
    """Place a new order.

    Clients may omit ``client``; their profile is used instead.
    """

    client: ClientPayload | None = None
    service_type: str
    package_name: str
    notes: str | None = None


class OrderUpdate(BaseModel):
    """Partial order update; omitted fields are left untouched."""

    status: str | None = None
    notes: str | None = None
    visp_reference_id: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_contact_number: str | None = None
    client_address: str | None = None
    expected_version: int | None = None


class ActivityLogEntryRead(BaseModel):
    id: str
    timestamp: datetime
    text: str
    actor: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ClientRead(BaseModel):
    id: str
    name: str
    email: str
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None


class OrderRead(BaseModel):
    """Serialized order with its activity log."""

    id: str
    client: ClientRead
    service_type: str
    package_name: str
    notes: str | None = None
    status: str
    visp_reference_id: str | None = None
    created_at: datetime
    updated_at: datetime
    version: int
    activity_log: list[ActivityLogEntryRead]


class OrderPage(BaseModel):
    items: list[OrderRead]
    total: int
    page: int
    page_size: int


class ChatbotOrderCreate(BaseModel):
    """Order collected by the chatbot on behalf of the signed-in client."""

    service_type: str
    package_name: str
    notes: str | None = None


class OrderStatusRead(BaseModel):
    id: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
