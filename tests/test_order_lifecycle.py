"""Order lifecycle tests against the SQL stores."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from ict_orders.db.base import Base
from ict_orders.models.order import Order
from ict_orders.services.actor import Actor
from ict_orders.services.audit_store import AuditLogFilter, SqlAuditLogStore
from ict_orders.services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
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

ADMIN = Actor(user_id="1", username="admin")
STAFF = Actor(user_id="2", username="jane.staff")
CLIENT = Actor(user_id="7", username="a@b.com")
OTHER_CLIENT = Actor(user_id="8", username="other@example.com")


def _session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    return Session(engine)


def _place(db: Session, email: str = "a@b.com", notes: str | None = None, actor: Actor = ADMIN, role: str = "ADMIN") -> Order:
    return create_order(
        SqlOrderStore(db),
        SqlAuditLogStore(db),
        client=ClientSnapshot(name="John Doe", email=email, contact_number="0821234567", address="123 Main St"),
        service_type="Fibre",
        package_name="50Mbps",
        notes=notes,
        actor=actor,
        role=role,
    )


def _audit_for(db: Session, order_id: str) -> list:
    page = SqlAuditLogStore(db).query(AuditLogFilter(entity_type="Order", entity_id=order_id), offset=0, limit=100)
    return page[0]


def test_create_order_starts_new_with_one_activity_entry() -> None:
    with _session() as db:
        order = _place(db)

        assert order.id.startswith("ORD-")
        assert order.status == "NEW"
        assert len(order.activity_log) == 1
        assert order.activity_log[0].text == "Order created by John Doe."
        assert order.activity_log[0].actor == "admin"
        assert order.created_at == order.updated_at

        entries = _audit_for(db, order.id)
        assert [entry.action_type for entry in entries] == ["ORDER_CREATE"]
        assert entries[0].new_value["service_type"] == "Fibre"
        assert entries[0].actor_username == "admin"


@pytest.mark.parametrize(
    "client, service_type, package_name",
    [
        (None, "Fibre", "50Mbps"),
        (ClientSnapshot(name=" ", email="a@b.com"), "Fibre", "50Mbps"),
        (ClientSnapshot(name="John", email="not-an-email"), "Fibre", "50Mbps"),
        (ClientSnapshot(name="John", email="a@b.com"), "", "50Mbps"),
        (ClientSnapshot(name="John", email="a@b.com"), "Fibre", None),
    ],
)
def test_create_order_rejects_missing_fields(client, service_type, package_name) -> None:
    with _session() as db:
        with pytest.raises(ValidationError):
            create_order(
                SqlOrderStore(db),
                SqlAuditLogStore(db),
                client=client,
                service_type=service_type,
                package_name=package_name,
                actor=ADMIN,
                role="ADMIN",
            )
        assert db.query(Order).count() == 0


def test_client_cannot_place_order_for_someone_else() -> None:
    with _session() as db:
        with pytest.raises(AuthorizationError):
            _place(db, email="someone@else.com", actor=CLIENT, role="CLIENT")

        own = _place(db, email="A@B.com", actor=CLIENT, role="CLIENT")
        assert own.status == "NEW"


def test_chatbot_order_is_tagged_with_its_source() -> None:
    with _session() as db:
        snapshot = ClientSnapshot(name="John Doe", email="a@b.com")
        order = create_chatbot_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            client=snapshot,
            service_type="Fibre",
            package_name="50Mbps",
            actor=CLIENT,
            role="CLIENT",
        )

        assert [entry.text for entry in order.activity_log] == ["Order created (chatbot)."]
        assert _audit_for(db, order.id)[0].new_value["source"] == "chatbot"

        with pytest.raises(AuthorizationError):
            create_chatbot_order(
                SqlOrderStore(db),
                SqlAuditLogStore(db),
                client=snapshot,
                service_type="Fibre",
                package_name="50Mbps",
                actor=STAFF,
                role="STAFF",
            )


def test_update_appends_one_entry_per_changed_field() -> None:
    with _session() as db:
        order = _place(db, notes="weekend install")
        before = order.updated_at

        updated = update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(status="UNDER_REVIEW", notes="weekday install", client_address="9 New Rd"),
            actor=STAFF,
            role="STAFF",
        )

        texts = [entry.text for entry in updated.activity_log]
        assert len(texts) == 4
        assert texts[1:] == [
            "Client address updated.",
            "Status changed from NEW to UNDER_REVIEW.",
            "Notes updated.",
        ]
        assert updated.updated_at > before
        assert updated.created_at == order.created_at
        assert updated.status == "UNDER_REVIEW"

        updates = [entry for entry in _audit_for(db, order.id) if entry.action_type == "ORDER_UPDATE"]
        assert len(updates) == 1
        assert updates[0].previous_value == {
            "status": "NEW",
            "notes": "weekend install",
            "client_address": "123 Main St",
        }
        assert updates[0].new_value["status"] == "UNDER_REVIEW"


def test_update_records_requested_fields_even_when_unchanged() -> None:
    with _session() as db:
        order = _place(db, notes="same")

        update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(notes="same", client_name="Johnny"),
            actor=ADMIN,
            role="ADMIN",
        )

        entries = _audit_for(db, order.id)
        update_entry = next(entry for entry in entries if entry.action_type == "ORDER_UPDATE")
        assert update_entry.new_value == {"notes": "same", "client_name": "Johnny"}
        assert [entry.text for entry in order.activity_log][-1] == 'Client name updated from "John Doe" to "Johnny".'


def test_noop_update_adds_no_activity_but_is_still_audited() -> None:
    with _session() as db:
        order = _place(db, notes="x")
        before = order.updated_at

        updated = update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(notes="x", status="NEW"),
            actor=ADMIN,
            role="ADMIN",
        )

        assert len(updated.activity_log) == 1
        assert updated.updated_at == before
        assert sorted(entry.action_type for entry in _audit_for(db, order.id)) == ["ORDER_CREATE", "ORDER_UPDATE"]


def test_client_cannot_change_status() -> None:
    with _session() as db:
        order = _place(db)

        with pytest.raises(AuthorizationError):
            update_order(
                SqlOrderStore(db),
                SqlAuditLogStore(db),
                order_id=order.id,
                changes=OrderChanges(status="COMPLETED"),
                actor=CLIENT,
                role="CLIENT",
            )

        db.expire_all()
        assert db.get(Order, order.id).status == "NEW"
        assert len(_audit_for(db, order.id)) == 1


def test_client_can_edit_own_notes_but_not_foreign_orders() -> None:
    with _session() as db:
        order = _place(db)

        updated = update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(notes="Please call first", client_contact_number="0110000000"),
            actor=CLIENT,
            role="CLIENT",
        )
        assert [entry.text for entry in updated.activity_log][1:] == [
            "Client contact number updated.",
            "Notes updated.",
        ]

        with pytest.raises(AuthorizationError):
            update_order(
                SqlOrderStore(db),
                SqlAuditLogStore(db),
                order_id=order.id,
                changes=OrderChanges(notes="hijack"),
                actor=OTHER_CLIENT,
                role="CLIENT",
            )


def test_client_cannot_hand_order_to_another_email() -> None:
    with _session() as db:
        order = _place(db)
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)

        with pytest.raises(AuthorizationError):
            update_order(
                orders,
                audit,
                order_id=order.id,
                changes=OrderChanges(client_email="other@example.com"),
                actor=CLIENT,
                role="CLIENT",
            )

        assert list_orders(orders, actor=OTHER_CLIENT, role="CLIENT").total == 0
        assert get_order(orders, order_id=order.id, actor=CLIENT, role="CLIENT").client_email == "a@b.com"
        assert [entry.action_type for entry in _audit_for(db, order.id)] == ["ORDER_CREATE"]

        recased = update_order(
            orders,
            audit,
            order_id=order.id,
            changes=OrderChanges(client_email="A@B.com"),
            actor=CLIENT,
            role="CLIENT",
        )
        assert recased.client_email == "A@B.com"

        moved = update_order(
            orders,
            audit,
            order_id=order.id,
            changes=OrderChanges(client_email="other@example.com"),
            actor=STAFF,
            role="STAFF",
        )
        assert moved.client_email == "other@example.com"


def test_update_validation_and_missing_order() -> None:
    with _session() as db:
        order = _place(db)
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)

        with pytest.raises(NotFoundError):
            update_order(orders, audit, order_id="ORD-missing", changes=OrderChanges(notes="x"), actor=ADMIN, role="ADMIN")
        with pytest.raises(ValidationError):
            update_order(orders, audit, order_id=order.id, changes=OrderChanges(), actor=ADMIN, role="ADMIN")
        with pytest.raises(ValidationError):
            update_order(orders, audit, order_id=order.id, changes=OrderChanges(status="SHIPPED"), actor=ADMIN, role="ADMIN")


def test_status_labels_are_normalized() -> None:
    with _session() as db:
        order = _place(db)
        updated = update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(status="Submitted to VISP", visp_reference_id="VISP_REF_98765"),
            actor=ADMIN,
            role="ADMIN",
        )
        assert updated.status == "SUBMITTED_TO_VISP"
        assert updated.activity_log[-1].text == "VISP Reference ID updated to VISP_REF_98765."


def test_any_status_may_follow_any_other_by_default() -> None:
    with _session() as db:
        order = _place(db)
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)
        for status in ["COMPLETED", "NEW", "CANCELLED", "UNDER_REVIEW"]:
            update_order(orders, audit, order_id=order.id, changes=OrderChanges(status=status), actor=ADMIN, role="ADMIN")
        assert order.status == "UNDER_REVIEW"


def test_transition_table_applies_when_enabled(monkeypatch) -> None:
    from ict_orders.core.config import settings

    monkeypatch.setattr(settings, "enforce_status_transitions", True)
    with _session() as db:
        order = _place(db)
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)

        with pytest.raises(ValidationError):
            update_order(orders, audit, order_id=order.id, changes=OrderChanges(status="COMPLETED"), actor=ADMIN, role="ADMIN")

        update_order(orders, audit, order_id=order.id, changes=OrderChanges(status="SUBMITTED_TO_VISP"), actor=ADMIN, role="ADMIN")
        update_order(orders, audit, order_id=order.id, changes=OrderChanges(status="COMPLETED"), actor=ADMIN, role="ADMIN")
        assert order.status == "COMPLETED"


def test_stale_expected_version_is_rejected() -> None:
    with _session() as db:
        order = _place(db)
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)
        assert order.version == 1

        update_order(orders, audit, order_id=order.id, changes=OrderChanges(notes="first"), actor=ADMIN, role="ADMIN")
        assert order.version == 2

        with pytest.raises(ConflictError):
            update_order(
                orders,
                audit,
                order_id=order.id,
                changes=OrderChanges(notes="second"),
                actor=STAFF,
                role="STAFF",
                expected_version=1,
            )
        assert order.notes == "first"


def test_delete_requires_elevated_role_and_keeps_snapshot_in_audit() -> None:
    with _session() as db:
        order = _place(db)
        order_id = order.id
        orders, audit = SqlOrderStore(db), SqlAuditLogStore(db)

        with pytest.raises(AuthorizationError):
            delete_order(orders, audit, order_id=order_id, actor=CLIENT, role="CLIENT")
        with pytest.raises(NotFoundError):
            delete_order(orders, audit, order_id="ORD-missing", actor=ADMIN, role="ADMIN")

        delete_order(orders, audit, order_id=order_id, actor=ADMIN, role="ADMIN")

        assert orders.get(order_id) is None
        entries = _audit_for(db, order_id)
        assert sorted(entry.action_type for entry in entries) == ["ORDER_CREATE", "ORDER_DELETE"]
        snapshot = next(entry for entry in entries if entry.action_type == "ORDER_DELETE").previous_value
        assert snapshot["client"]["email"] == "a@b.com"
        assert snapshot["activity_log"][0]["text"] == "Order created by John Doe."


def test_get_order_is_scoped_to_owner_for_clients() -> None:
    with _session() as db:
        order = _place(db)
        orders = SqlOrderStore(db)

        assert get_order(orders, order_id=order.id, actor=STAFF, role="STAFF").id == order.id
        assert get_order(orders, order_id=order.id, actor=Actor("7", "A@B.COM"), role="CLIENT").id == order.id
        with pytest.raises(AuthorizationError):
            get_order(orders, order_id=order.id, actor=OTHER_CLIENT, role="CLIENT")
        with pytest.raises(NotFoundError):
            get_order(orders, order_id="ORD-missing", actor=ADMIN, role="ADMIN")


def test_list_orders_paginates_and_scopes_clients() -> None:
    with _session() as db:
        created = [_place(db) for _ in range(3)] + [_place(db, email="other@example.com") for _ in range(2)]
        orders = SqlOrderStore(db)

        first = list_orders(orders, actor=ADMIN, role="ADMIN", page=1, page_size=2)
        assert first.total == 5
        assert len(first.items) == 2
        assert first.items[0].id == created[-1].id

        last = list_orders(orders, actor=ADMIN, role="ADMIN", page=3, page_size=2)
        assert len(last.items) == 1

        mine = list_orders(
            orders,
            actor=CLIENT,
            role="CLIENT",
            filters=OrderFilter(client_email="other@example.com"),
            page_size=10,
        )
        assert mine.total == 3
        assert {order.client_email for order in mine.items} == {"a@b.com"}

        filtered = list_orders(orders, actor=STAFF, role="STAFF", filters=OrderFilter(client_email="other@example.com"))
        assert filtered.total == 2

        with pytest.raises(ValidationError):
            list_orders(orders, actor=ADMIN, role="ADMIN", page=0)


def test_list_orders_filters_by_status() -> None:
    with _session() as db:
        first = _place(db)
        _place(db)
        update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=first.id,
            changes=OrderChanges(status="CANCELLED"),
            actor=ADMIN,
            role="ADMIN",
        )

        result = list_orders(SqlOrderStore(db), actor=ADMIN, role="ADMIN", filters=OrderFilter(status="cancelled"))
        assert result.total == 1
        assert result.items[0].id == first.id

        unknown = list_orders(SqlOrderStore(db), actor=ADMIN, role="ADMIN", filters=OrderFilter(status="SHIPPED"))
        assert unknown.total == 0
        assert unknown.items == []


def test_fibre_order_end_to_end() -> None:
    with _session() as db:
        order = _place(db)
        assert order.status == "NEW"
        assert len(order.activity_log) == 1

        updated = update_order(
            SqlOrderStore(db),
            SqlAuditLogStore(db),
            order_id=order.id,
            changes=OrderChanges(status="COMPLETED"),
            actor=ADMIN,
            role="ADMIN",
        )

        assert updated.status == "COMPLETED"
        assert len(updated.activity_log) == 2
        assert len(_audit_for(db, order.id)) == 2


def test_concurrent_writer_with_stale_copy_gets_conflict(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'concurrent.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    with Session(engine) as setup:
        order_id = _place(setup).id

    with Session(engine) as first, Session(engine) as second:
        stale = SqlOrderStore(first).get(order_id)
        assert stale.version == 1
        update_order(
            SqlOrderStore(second),
            SqlAuditLogStore(second),
            order_id=order_id,
            changes=OrderChanges(notes="from second"),
            actor=STAFF,
            role="STAFF",
        )

        with pytest.raises(ConflictError):
            update_order(
                SqlOrderStore(first),
                SqlAuditLogStore(first),
                order_id=order_id,
                changes=OrderChanges(notes="from first"),
                actor=ADMIN,
                role="ADMIN",
            )

    with Session(engine) as check:
        assert SqlOrderStore(check).get(order_id).notes == "from second"
