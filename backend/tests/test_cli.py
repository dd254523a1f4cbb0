# Overview: Pytest coverage for the Flask CLI command groups.

import pytest

from fulfillment.models import Order, OrderItem, Printshop


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestSystemCommands:

    def test_init_creates_printshops_once(self, db_session, runner):
        result = runner.invoke(args=["system", "init"])
        assert "PASS Printshops created: 3" in result.output

        result = runner.invoke(args=["system", "init"])
        assert "PASS Printshops created: 0" in result.output
        assert db_session.query(Printshop).count() == 3

    def test_seed_demo(self, db_session, runner):
        result = runner.invoke(args=["system", "seed-demo"])
        assert result.exit_code == 0
        assert "PASS Seeded" in result.output

        cards = db_session.query(OrderItem).filter_by(product_name="Business Cards").one()
        assert cards.status == "delivered"
        assert cards.delivery_date is not None
        assert [e.to_status for e in cards.status_history] == [
            "assigned", "in_production", "ready", "out_for_delivery", "delivered",
        ]

        result = runner.invoke(args=["system", "seed-demo"])
        assert "demo data skipped" in result.output


class TestOrderAndItemCommands:

    def test_orders_list_for_driver(self, db_session, runner, make_order):
        make_order([("ready", "victor")], external_id="#2001")
        make_order([("new", None)], external_id="#2002")

        result = runner.invoke(args=["orders", "list", "--role", "driver"])

        assert "#2001" in result.output
        assert "#2002" not in result.output

    def test_orders_show_scoped(self, db_session, runner, make_order):
        order = make_order([("in_production", "victor"), ("ready", "studio-c")])

        result = runner.invoke(args=["orders", "show", str(order.id), "--role", "printshop_manager", "--shop", "victor"])

        assert "In Production" in result.output
        assert "studio-c" not in result.output

    def test_set_status_forbidden(self, db_session, runner, make_order):
        order = make_order([("ready", "victor")])
        item_id = order.items[0].id

        result = runner.invoke(args=["items", "set-status", str(item_id), "in_production", "--role", "driver"])

        assert "FAIL" in result.output
        assert "FORBIDDEN" in result.output

    def test_assign_and_cancel(self, db_session, runner, make_order, printshops):
        order = make_order([("new", None), ("delivered", "victor")])
        new_id, done_id = (item.id for item in order.items)

        result = runner.invoke(args=["items", "assign", str(new_id), "victor"])
        assert f"PASS Item {new_id} -> victor" in result.output
        assert db_session.get(OrderItem, new_id).status == "assigned"

        result = runner.invoke(args=["items", "cancel", str(new_id), str(done_id), "--role", "manager"])
        assert f"PASS Item {new_id} -> canceled" in result.output
        assert "TERMINAL_STATE" in result.output
        assert db_session.get(Order, order.id).items[0].status == "canceled"


class TestAccessCommands:

    def test_grant_and_revoke(self, db_session, runner, victor_user):
        result = runner.invoke(args=["access", "grant", str(victor_user.id), "studio-c"])
        assert "PASS Victor can now see printshop 'studio-c'" in result.output

        result = runner.invoke(args=["access", "revoke", str(victor_user.id), "studio-c"])
        assert "PASS Revoked" in result.output

    def test_grant_to_driver_fails(self, db_session, runner, driver_user, printshops):
        result = runner.invoke(args=["access", "grant", str(driver_user.id), "victor"])
        assert "FAIL" in result.output


class TestActivityCommand:

    def test_activity_feed_for_order(self, db_session, runner, make_order):
        order = make_order([("ready", "victor")])
        runner.invoke(args=["items", "set-status", str(order.items[0].id), "out_for_delivery", "--role", "driver"])

        result = runner.invoke(args=["orders", "activity", str(order.id), "--role", "driver"])

        assert "Out for delivery (Ready -> Out for Delivery)" in result.output
        assert "by System" in result.output

    def test_empty_feed(self, db_session, runner):
        result = runner.invoke(args=["orders", "activity"])
        assert "No activity found." in result.output

    def test_non_decimal_item_id_fails_cleanly(self, db_session, runner):
        result = runner.invoke(args=["items", "set-status", "²", "ready", "--role", "manager"])

        assert result.exit_code == 0
        assert "FAIL item_id must be an integer" in result.output
