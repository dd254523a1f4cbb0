# Overview: Pytest coverage for the read-side query facade.

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta

import pytest

from fulfillment.models import Customer, Note, OrderFile
from fulfillment.permissions import Role
from fulfillment.services import mutation_service, query_service
from fulfillment.services.access_service import ActorScope
from fulfillment.validation import ValidationError


MANAGER = ActorScope.manager()
VICTOR = ActorScope.printshop_manager({"victor"})
DRIVER = ActorScope.driver()


class TestOrderQueries:

    def test_printshop_manager_rollup_over_visible_slice(self, db_session, make_order, printshops):
        order = make_order([("in_production", "victor"), ("ready", "studio-c")])

        view = query_service.get_order(order.id, VICTOR)

        assert view.items_count == 1
        assert view.items[0].assigned_printshop_id == "victor"
        assert view.status_rollup == "in_production"

    def test_manager_rollup_over_all_items(self, db_session, make_order, printshops):
        order = make_order([("delivered", "victor"), ("picked_up", "studio-c")])

        view = query_service.get_order(order.id, MANAGER)

        assert view.status_rollup == "mixed"
        assert view.status_label == "Mixed"
        assert view.customer_name == "Sarah Johnson"

    def test_hidden_or_missing_order_is_none(self, db_session, make_order):
        order = make_order([("new", None)])
        assert query_service.get_order(order.id, DRIVER) is None
        assert query_service.get_order(12345, MANAGER) is None

    def test_views_are_frozen(self, db_session, make_order):
        order = make_order([("new", None)])
        view = query_service.get_order(order.id, MANAGER)
        with pytest.raises(FrozenInstanceError):
            view.status_rollup = "ready"

    def test_rollup_reflects_mutations(self, db_session, make_order):
        order = make_order([("ready", "victor"), ("ready", "victor")])
        assert query_service.get_order(order.id, MANAGER).status_rollup == "ready"

        mutation_service.set_item_status(order.items[0].id, "new", Role.MANAGER)

        assert query_service.get_order(order.id, MANAGER).status_rollup == "new"

    def test_list_orders_scoped(self, db_session, make_order):
        make_order([("in_production", "victor")])
        ready = make_order([("ready", "studio-c")])
        make_order([("ready", "studio-c")], delivery_method="customer_pickup")

        assert len(query_service.list_orders(MANAGER)) == 3
        assert [v.id for v in query_service.list_orders(DRIVER)] == [ready.id]

    def test_orders_by_status(self, db_session, make_order):
        first = make_order([("ready", "victor")])
        make_order([("new", None)])

        assert [v.id for v in query_service.orders_by_status("ready", MANAGER)] == [first.id]
        with pytest.raises(ValidationError):
            query_service.orders_by_status("lost", MANAGER)

    def test_orders_by_customer_newest_first(self, db_session, make_order, customer):
        other = Customer(name="Michael Chen")
        db_session.add(other)
        db_session.commit()

        older = make_order([("new", None)])
        newer = make_order([("new", None)])
        make_order([("new", None)], customer_id=other.id)
        older.created_at = datetime(2026, 1, 1)
        newer.created_at = datetime(2026, 1, 1) + timedelta(days=3)
        db_session.commit()

        views = query_service.orders_by_customer(customer.id, MANAGER)
        assert [v.id for v in views] == [newer.id, older.id]

    def test_to_dict(self, db_session, make_order):
        order = make_order([("ready", "victor")], external_id="#1042")
        data = query_service.get_order(order.id, MANAGER).to_dict()

        assert data["external_id"] == "#1042"
        assert data["status_rollup"] == "ready"
        assert data["items_count"] == 1
        assert data["items"][0]["status_label"] == "Ready"


class TestItemQueries:

    def test_items_by_printshop(self, db_session, make_order):
        make_order([("in_production", "victor"), ("ready", "studio-c"), ("new", None)])

        assert [i.assigned_printshop_id for i in query_service.items_by_printshop("victor", MANAGER)] == ["victor"]
        assert len(query_service.items_by_printshop(None, MANAGER)) == 3

    def test_items_by_status(self, db_session, make_order):
        make_order([("ready", "victor"), ("ready", "studio-c"), ("new", None)])
        assert len(query_service.items_by_status("ready", MANAGER)) == 2
        assert len(query_service.items_by_status("ready", VICTOR)) == 1

    def test_items_by_printshop_and_status(self, db_session, make_order):
        make_order([("ready", "victor"), ("in_production", "victor"), ("ready", "studio-c")])

        items = query_service.items_by_printshop_and_status("victor", "ready", MANAGER)
        assert [(i.assigned_printshop_id, i.status) for i in items] == [("victor", "ready")]
        assert len(query_service.items_by_printshop_and_status(None, "ready", MANAGER)) == 2

    def test_get_item_respects_visibility(self, db_session, make_order):
        order = make_order([("in_production", "studio-c")])
        item_id = order.items[0].id

        assert query_service.get_item(item_id, MANAGER).customer_name == "Sarah Johnson"
        assert query_service.get_item(item_id, VICTOR) is None
        assert query_service.get_item(item_id, DRIVER) is None

    def test_list_items_for_driver(self, db_session, make_order):
        make_order([("ready", "victor"), ("new", None), ("delivered", "victor")])
        assert {i.status for i in query_service.list_items(DRIVER)} == {"ready", "delivered"}


class TestNoteAndFileQueries:

    def test_notes_scoped_for_printshop_manager(self, db_session, make_order):
        order = make_order([("in_production", "victor"), ("ready", "studio-c")])
        victor_item, studio_item = order.items
        db_session.add_all([
            Note(entity_type="order", entity_id=order.id, content="Rush job", departments=["everyone"]),
            Note(entity_type="order", entity_id=order.id, content="Deposit paid", departments=["billing"]),
            Note(entity_type="order_item", entity_id=victor_item.id, content="Matte", departments=["billing"]),
            Note(entity_type="order_item", entity_id=studio_item.id, content="Gloss", departments=["printshop"]),
        ])
        db_session.commit()

        assert sorted(n["content"] for n in query_service.list_notes(VICTOR)) == ["Matte", "Rush job"]
        assert len(query_service.list_notes(MANAGER)) == 4

    def test_files_follow_item_visibility(self, db_session, make_order):
        order = make_order([("in_production", "victor"), ("ready", "studio-c")])
        victor_item, studio_item = order.items
        db_session.add_all([
            OrderFile(order_item_id=victor_item.id, file_name="art.pdf", file_url="https://files/art.pdf", file_type="artwork"),
            OrderFile(order_item_id=studio_item.id, file_name="proof.pdf", file_url="https://files/proof.pdf", file_type="proof"),
        ])
        db_session.commit()

        assert [f["file_name"] for f in query_service.list_files(VICTOR)] == ["art.pdf"]
        # the order holds an in-production item, but the ready item's file is still visible
        assert [f["file_name"] for f in query_service.list_files(DRIVER)] == ["proof.pdf"]


class TestActivityQueries:

    def test_feed_scoped_and_newest_first(self, db_session, make_order, printshops):
        order = make_order([("assigned", "victor"), ("in_production", "studio-c")])
        victor_item, studio_item = order.items
        other = make_order([("ready", "victor")])

        mutation_service.set_item_status(victor_item.id, "in_production", Role.MANAGER)
        mutation_service.set_item_printshop(studio_item.id, "in-house", role=Role.MANAGER)
        mutation_service.set_order_payment_status(order.id, "paid", role=Role.MANAGER)
        mutation_service.set_item_status(other.items[0].id, "out_for_delivery", Role.DRIVER)

        assert [a["message"] for a in query_service.list_activities(MANAGER)] == [
            "Out for delivery",
            "Payment updated to Paid",
            "Assigned to Office HQ",
            "Status updated",
        ]
        assert [a["message"] for a in query_service.list_activities(VICTOR)] == [
            "Out for delivery",
            "Status updated",
        ]
        assert [a["type"] for a in query_service.list_activities(DRIVER)] == ["delivery"]

    def test_feed_for_one_order(self, db_session, make_order):
        order = make_order([("ready", "victor")])
        other = make_order([("ready", "victor")])
        mutation_service.set_order_source(order.id, "studio_c")
        mutation_service.set_order_source(other.id, "propaganda")

        entries = query_service.list_activities(MANAGER, order_id=order.id)

        assert [(e["order_id"], e["to"]) for e in entries] == [(order.id, "Studio C")]
        with pytest.raises(ValidationError):
            query_service.list_activities(MANAGER, order_id="abc")
