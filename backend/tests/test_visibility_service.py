# Overview: Pytest coverage for role-scoped visibility of orders, items, notes, files and activities.

import pytest

from fulfillment.models import Activity, Note, Order, OrderFile, OrderItem
from fulfillment.permissions import Role
from fulfillment.services.access_service import ActorScope
from fulfillment.services.visibility_service import (
    scoped_items,
    visible_activities,
    visible_files,
    visible_items,
    visible_notes,
    visible_orders,
)
from fulfillment.validation import ValidationError


MANAGER = ActorScope.manager()
VICTOR = ActorScope.printshop_manager({"victor"})
DRIVER = ActorScope.driver()


def _order(order_id, item_specs, delivery_method="delivery", first_item_id=None):
    order = Order(id=order_id, delivery_method=delivery_method)
    next_id = first_item_id or order_id * 10
    for offset, (status, shop_id) in enumerate(item_specs):
        order.items.append(OrderItem(
            id=next_id + offset,
            order_id=order_id,
            status=status,
            assigned_printshop_id=shop_id,
        ))
    return order


@pytest.fixture
def universe():
    """Four orders covering the printshop and driver cases."""
    return [
        _order(1, [("in_production", "victor"), ("ready", "studio-c")]),
        _order(2, [("ready", "studio-c"), ("out_for_delivery", "in-house")]),
        _order(3, [("ready", "victor")], delivery_method="customer_pickup"),
        _order(4, []),
    ]


def _all_items(orders):
    return [item for order in orders for item in order.items]


class TestActorScope:

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            ActorScope("admin")

    def test_shop_ids_frozen(self):
        actor = ActorScope.printshop_manager(["victor", "victor"])
        assert actor.shop_ids == frozenset({"victor"})


class TestOrderVisibility:

    def test_manager_sees_everything(self, universe):
        assert visible_orders(universe, MANAGER) == universe

    def test_printshop_manager_sees_orders_with_own_items(self, universe):
        assert [o.id for o in visible_orders(universe, VICTOR)] == [1, 3]

    def test_printshop_manager_without_shops_sees_nothing(self, universe):
        assert visible_orders(universe, ActorScope.printshop_manager([])) == []

    def test_unassigned_items_hidden_from_printshop_manager(self):
        order = _order(5, [("new", None)])
        assert visible_orders([order], VICTOR) == []

    def test_driver_sees_delivery_orders_ready_to_go(self, universe):
        # 1 has an item in production, 3 is a pickup, 4 is empty
        assert [o.id for o in visible_orders(universe, DRIVER)] == [2]

    def test_visible_is_subset(self, universe):
        for actor in (MANAGER, VICTOR, DRIVER):
            assert set(map(id, visible_orders(universe, actor))) <= set(map(id, universe))

    def test_does_not_mutate_input(self, universe):
        before = [len(o.items) for o in universe]
        visible_orders(universe, VICTOR)
        scoped_items(universe[0], VICTOR)
        assert [len(o.items) for o in universe] == before


class TestItemVisibility:

    def test_printshop_manager_sees_own_items(self, universe):
        items = visible_items(_all_items(universe), VICTOR)
        assert [(i.order_id, i.assigned_printshop_id) for i in items] == [(1, "victor"), (3, "victor")]

    def test_driver_sees_items_by_status(self, universe):
        items = visible_items(_all_items(universe), DRIVER)
        assert {i.status for i in items} <= {"ready", "out_for_delivery", "delivered"}
        assert len(items) == 4

    def test_scoped_items_slice(self, universe):
        assert [i.assigned_printshop_id for i in scoped_items(universe[0], VICTOR)] == ["victor"]
        assert len(scoped_items(universe[0], MANAGER)) == 2


class TestNoteVisibility:

    @pytest.fixture
    def notes(self):
        return [
            Note(id=1, entity_type="order", entity_id=1, content="Rush", departments=["everyone"]),
            Note(id=2, entity_type="order", entity_id=1, content="Invoice", departments=["billing"]),
            Note(id=3, entity_type="order", entity_id=2, content="Side door", departments=["delivery"]),
            Note(id=4, entity_type="order_item", entity_id=10, content="Matte", departments=["billing"]),
            Note(id=5, entity_type="order_item", entity_id=11, content="Proof", departments=["printshop"]),
        ]

    def test_manager_sees_all(self, notes):
        assert visible_notes(notes, MANAGER) == notes

    def test_printshop_manager(self, universe, notes):
        visible = visible_notes(notes, VICTOR, items=_all_items(universe), orders=universe)
        # order 1 is visible: note 1 (everyone) yes, note 2 (billing) no;
        # order 2 is not visible; item 10 is victor's, item 11 is studio-c's
        assert [n.id for n in visible] == [1, 4]

    def test_driver_by_department(self, notes):
        assert [n.id for n in visible_notes(notes, DRIVER)] == [1, 3, 5]


class TestFileVisibility:

    @pytest.fixture
    def files(self):
        return [
            OrderFile(id=1, order_item_id=10, file_name="art.pdf", file_url="s3://a"),
            OrderFile(id=2, order_item_id=11, file_name="proof.pdf", file_url="s3://b"),
            OrderFile(id=3, order_item_id=21, file_name="photo.jpg", file_url="s3://c"),
        ]

    def test_manager_sees_all(self, files):
        assert visible_files(files, MANAGER) == files

    def test_printshop_manager_follows_items(self, universe, files):
        assert [f.id for f in visible_files(files, VICTOR, items=_all_items(universe))] == [1]

    def test_driver_follows_items(self, universe, files):
        # item 10 is in production; 11 and 21 are ready / out for delivery
        assert [f.id for f in visible_files(files, DRIVER, items=_all_items(universe))] == [2, 3]


class TestActivityVisibility:

    @pytest.fixture
    def activities(self):
        return [
            Activity(id=1, type="assignment", entity_type="order_item", entity_id=10, order_id=1, printshop_id="victor"),
            Activity(id=2, type="delivery", entity_type="order_item", entity_id=11, order_id=1, printshop_id="studio-c"),
            Activity(id=3, type="status_change", entity_type="order", entity_id=1, order_id=1, printshop_id=None),
            Activity(id=4, type="pickup", entity_type="order_item", entity_id=21, order_id=2, printshop_id="victor"),
        ]

    def test_manager_sees_all(self, activities):
        assert visible_activities(activities, MANAGER) == activities

    def test_printshop_manager_sees_own_shops(self, activities):
        assert [a.id for a in visible_activities(activities, VICTOR)] == [1, 4]

    def test_order_level_entries_hidden_from_printshop_manager(self, activities):
        both = ActorScope.printshop_manager({"victor", "studio-c"})
        assert 3 not in [a.id for a in visible_activities(activities, both)]

    def test_driver_sees_delivery_and_pickup(self, activities):
        assert [a.id for a in visible_activities(activities, DRIVER)] == [2, 4]


def test_role_constants_match_actor_roles():
    assert {MANAGER.role, VICTOR.role, DRIVER.role} == {Role.MANAGER, Role.PRINTSHOP_MANAGER, Role.DRIVER}
