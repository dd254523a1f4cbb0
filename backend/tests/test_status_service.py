# Overview: Pytest coverage for the item status model and role permissions.

import pytest

from fulfillment.permissions import Role
from fulfillment.services.results import FailureKind
from fulfillment.services.status_service import (
    ITEM_STATUSES,
    TERMINAL_STATUSES,
    can_set_status,
    get_allowed_statuses,
    is_terminal,
    status_label,
    status_options,
    status_rank,
    validate_status,
    validate_transition,
)
from fulfillment.validation import ValidationError


ROLES = (Role.MANAGER, Role.PRINTSHOP_MANAGER, Role.DRIVER)


# =============================================================================
# CATALOGUE
# =============================================================================

class TestStatusCatalogue:

    def test_statuses_in_fulfillment_order(self):
        assert ITEM_STATUSES == (
            "new", "assigned", "in_production", "on_hold", "ready",
            "out_for_delivery", "delivered", "picked_up", "canceled",
        )

    def test_terminal_set(self):
        assert TERMINAL_STATUSES == {"delivered", "picked_up", "canceled"}
        assert is_terminal("picked_up")
        assert not is_terminal("on_hold")

    def test_labels(self):
        assert status_label("out_for_delivery") == "Out for Delivery"
        assert status_label("in_production") == "In Production"
        assert status_label("mixed") == "Mixed"

    def test_rank_follows_fulfillment_order(self):
        ranks = [status_rank(s) for s in ITEM_STATUSES]
        assert ranks == sorted(ranks)
        assert status_rank("mixed") > status_rank("canceled")

    def test_options(self):
        options = status_options()
        assert [o["value"] for o in options] == list(ITEM_STATUSES)
        assert options[0] == {"value": "new", "label": "New"}
        assert status_options(include_mixed=True)[-1]["value"] == "mixed"

    def test_unknown_status_raises(self):
        with pytest.raises(ValidationError):
            validate_status("shipped")
        with pytest.raises(ValidationError):
            status_label("shipped")


# =============================================================================
# ROLE PERMISSIONS
# =============================================================================

class TestRolePermissions:

    def test_manager_may_set_every_status(self):
        assert get_allowed_statuses(Role.MANAGER) == set(ITEM_STATUSES)

    def test_printshop_manager_set(self):
        assert get_allowed_statuses(Role.PRINTSHOP_MANAGER) == {
            "in_production", "on_hold", "ready", "picked_up", "canceled",
        }

    def test_driver_set(self):
        assert get_allowed_statuses(Role.DRIVER) == {
            "out_for_delivery", "delivered", "on_hold", "canceled",
        }

    def test_can_set_status(self):
        assert can_set_status(Role.DRIVER, "delivered")
        assert not can_set_status(Role.DRIVER, "in_production")
        assert not can_set_status(Role.PRINTSHOP_MANAGER, "assigned")

    def test_unknown_role_raises(self):
        with pytest.raises(ValidationError):
            can_set_status("admin", "new")


# =============================================================================
# TRANSITIONS
# =============================================================================

class TestValidateTransition:

    def test_same_status_is_noop_for_every_role(self):
        for role in ROLES:
            for status in ITEM_STATUSES:
                check = validate_transition(status, status, role)
                assert check.allowed and check.noop

    def test_terminal_rejects_everything_else(self):
        for role in ROLES:
            for current in TERMINAL_STATUSES:
                for requested in ITEM_STATUSES:
                    if requested == current:
                        continue
                    check = validate_transition(current, requested, role)
                    assert not check.allowed
                    assert check.error == FailureKind.TERMINAL_STATE

    def test_terminal_checked_before_role(self):
        # driver may not set "new", but the terminal lock is reported first
        check = validate_transition("delivered", "new", Role.DRIVER)
        assert check.error == FailureKind.TERMINAL_STATE

    def test_role_set_is_not_a_transition_graph(self):
        check = validate_transition("ready", "new", Role.MANAGER)
        assert check.allowed and not check.noop

    def test_forbidden_message_names_role_and_status(self):
        check = validate_transition("ready", "in_production", Role.DRIVER)
        assert check.error == FailureKind.FORBIDDEN
        assert "driver" in check.message
        assert "in_production" in check.message

    def test_allowed_iff_in_role_set_for_non_terminal(self):
        for role in ROLES:
            allowed = get_allowed_statuses(role)
            for current in set(ITEM_STATUSES) - TERMINAL_STATUSES:
                for requested in ITEM_STATUSES:
                    if requested == current:
                        continue
                    check = validate_transition(current, requested, role)
                    assert check.allowed == (requested in allowed)

    def test_unknown_values_raise(self):
        with pytest.raises(ValidationError):
            validate_transition("new", "bogus", Role.MANAGER)
        with pytest.raises(ValidationError):
            validate_transition("bogus", "new", Role.MANAGER)
        with pytest.raises(ValidationError):
            validate_transition("new", "ready", "cashier")
