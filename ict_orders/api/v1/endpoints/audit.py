"""Audit trail endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ict_orders.core.security import get_principal
from ict_orders.db.session import get_db
from ict_orders.schemas.audit import AuditLogPage, AuditLogRead
from ict_orders.services.actor import Principal
from ict_orders.services.audit_service import query_audit_log
from ict_orders.services.audit_store import AuditLogFilter, SqlAuditLogStore
from ict_orders.services.errors import ValidationError
from ict_orders.utils.time import parse_date_or_datetime

router: APIRouter = APIRouter()


def _parse_bound(name: str, raw: str | None):
    if raw is None or not raw.strip():
        return None
    try:
        return parse_date_or_datetime(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an ISO-8601 date or datetime") from exc


@router.get("", response_model=AuditLogPage)
def list_audit_logs(
    actor_id: str | None = None,
    action_type: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> AuditLogPage:
    """Query the audit trail newest first; a bare ``date_to`` covers the whole day."""
    filters = AuditLogFilter(
        actor_id=actor_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        date_from=_parse_bound("date_from", date_from),
        date_to=_parse_bound("date_to", date_to),
    )
    result = query_audit_log(
        SqlAuditLogStore(db),
        actor=principal.actor,
        role=principal.role,
        filters=filters,
        page=page,
        page_size=page_size,
    )
    return AuditLogPage(
        items=[AuditLogRead.model_validate(entry) for entry in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )
