# Overview: Pytest coverage for the order status rollup.

from itertools import permutations

import pytest

from fulfillment.models import OrderItem
from fulfillment.services.rollup_service import compute_order_status, status_counts
from fulfillment.validation import ValidationError


class TestComputeOrderStatus:

    def test_empty_order_is_new(self):
        assert compute_order_status([]) == "new"

    def test_all_canceled(self):
        assert compute_order_status(["canceled", "canceled"]) == "canceled"

    def test_canceled_items_are_ignored(self):
        assert compute_order_status(["canceled", "ready"]) == "ready"
        assert compute_order_status(["canceled", "delivered", "delivered"]) == "delivered"

    def test_uniform_status(self):
        assert compute_order_status(["on_hold", "on_hold"]) == "on_hold"
        assert compute_order_status(["assigned"]) == "assigned"

    def test_any_new_wins(self):
        assert compute_order_status(["new", "delivered", "in_production"]) == "new"

    def test_in_progress_collapses_to_in_production(self):
        assert compute_order_status(["assigned", "ready"]) == "in_production"
        assert compute_order_status(["on_hold", "delivered"]) == "in_production"

    def test_out_for_delivery_with_delivered(self):
        assert compute_order_status(["out_for_delivery", "delivered"]) == "out_for_delivery"
        assert compute_order_status(["out_for_delivery", "out_for_delivery", "delivered"]) == "out_for_delivery"

    def test_delivered_and_picked_up_is_mixed(self):
        assert compute_order_status(["delivered", "picked_up"]) == "mixed"

    def test_ready_with_handed_off_is_mixed(self):
        assert compute_order_status(["ready", "delivered"]) == "mixed"

    def test_adding_new_item_resets_rollup(self):
        statuses = ["ready", "ready"]
        assert compute_order_status(statuses) == "ready"
        assert compute_order_status(statuses + ["new"]) == "new"

    def test_accepts_item_records(self):
        items = [OrderItem(status="ready"), OrderItem(status="in_production")]
        assert compute_order_status(items) == "in_production"

    def test_order_independent(self):
        samples = [
            ["new", "ready", "canceled"],
            ["delivered", "picked_up", "out_for_delivery"],
            ["assigned", "ready", "delivered"],
            ["ready", "delivered", "canceled"],
        ]
        for statuses in samples:
            results = {compute_order_status(list(p)) for p in permutations(statuses)}
            assert len(results) == 1

    def test_idempotent(self):
        statuses = ["out_for_delivery", "delivered", "canceled"]
        assert compute_order_status(statuses) == compute_order_status(statuses)

    def test_unknown_status_raises(self):
        with pytest.raises(ValidationError):
            compute_order_status(["ready", "lost"])


class TestStatusCounts:

    def test_counts(self):
        assert status_counts(["ready", "ready", "canceled"]) == {"ready": 2, "canceled": 1}

    def test_empty(self):
        assert status_counts([]) == {}
