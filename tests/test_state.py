"""Tests for hubgen.state: initial_state, apply_update field rules."""

import pytest

from hubgen.state import FIELD_RULES, WorkflowState, apply_update, initial_state


class TestInitialState:
    def test_identity_fields_set(self):
        state = initial_state("github", "create-issue", "Create")
        assert state["integration"] == "github"
        assert state["task"] == "create-issue"
        assert state["task_type"] == "Create"

    def test_starts_without_sender_or_content(self, base_state):
        assert base_state["sender"] is None
        assert base_state["artifact"] is None
        assert base_state["accepted"] is False
        assert base_state["reviewed"] is False

    def test_covers_every_declared_field(self, base_state):
        assert set(base_state) == set(WorkflowState.__annotations__)


class TestApplyUpdate:
    def test_rules_cover_every_state_field(self):
        assert set(FIELD_RULES) == set(WorkflowState.__annotations__)

    def test_returns_copy(self, base_state):
        new = apply_update(base_state, {"artifact": "code", "sender": "Generation"})
        assert new["artifact"] == "code"
        assert base_state["artifact"] is None

    def test_absent_fields_untouched(self, generated_state):
        new = apply_update(generated_state, {"sender": "Verification"})
        assert new["artifact"] == generated_state["artifact"]
        assert new["resource_schema"] == generated_state["resource_schema"]

    def test_content_fields_replaced_not_merged(self, generated_state):
        new = apply_update(generated_state, {"artifact": "other"})
        assert new["artifact"] == "other"

    def test_explicit_none_clears(self, generated_state):
        new = apply_update(generated_state, {"artifact": None, "resource_schema": None})
        assert new["artifact"] is None
        assert new["resource_schema"] is None

    def test_identity_change_raises(self, base_state):
        with pytest.raises(ValueError, match="immutable"):
            apply_update(base_state, {"task": "other-task"})

    def test_identity_same_value_allowed(self, base_state):
        new = apply_update(base_state, {"integration": "demo"})
        assert new["integration"] == "demo"

    def test_unknown_field_raises(self, base_state):
        with pytest.raises(KeyError, match="Unknown"):
            apply_update(base_state, {"code": "x"})

    def test_accepted_is_latched(self, base_state):
        accepted = apply_update(base_state, {"accepted": True, "sender": "Review"})
        again = apply_update(accepted, {"accepted": False})
        assert again["accepted"] is True

    def test_accept_outside_review_raises(self, base_state):
        with pytest.raises(ValueError, match="Review"):
            apply_update(base_state, {"accepted": True, "sender": "Generation"})
