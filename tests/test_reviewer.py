"""Tests for the Review Gate."""

from unittest.mock import MagicMock

import pytest

from hubgen.agents.reviewer import ReviewGate


@pytest.fixture
def search():
    s = MagicMock()
    s.search.return_value = "Endpoints found:\nGET /v2/items"
    return s


@pytest.fixture
def verified_state(generated_state):
    generated_state.update({
        "verification_artifact": "check();",
        "verification_outcome": "verified",
        "verification_report": "Self-sufficient tests generated and executed successfully.",
        "sender": "Verification",
    })
    return generated_state


class TestReviewGate:
    def test_validated_submits_and_accepts(self, verified_state, make_llm, search, hub):
        update = ReviewGate(make_llm("Looks right. VALIDATED"), search, hub)(verified_state)

        assert update["accepted"] is True
        assert update["reviewed"] is True
        assert update["sender"] == "Review"
        hub.submit.assert_called_once_with(
            "demo",
            "fetch-item",
            verified_state["artifact"],
            "check();",
            verified_state["resource_schema"],
        )
        search.search.assert_not_called()

    def test_needs_work_searches_and_clears(self, verified_state, make_llm, search, hub):
        update = ReviewGate(make_llm("NEEDS_WORK: test never asserts"), search, hub)(verified_state)

        assert "accepted" not in update
        assert update["artifact"] is None
        assert update["verification_artifact"] is None
        assert update["resource_schema"] is None
        assert update["supplemental_context"] == "Endpoints found:\nGET /v2/items"
        search.search.assert_called_once_with("demo fetch-item API endpoints")
        hub.submit.assert_not_called()

    def test_no_marker_only_marks_reviewed(self, verified_state, make_llm, search, hub):
        update = ReviewGate(make_llm("Hard to say."), search, hub)(verified_state)

        assert update == {"reviewed": True, "sender": "Review"}
        hub.submit.assert_not_called()
        search.search.assert_not_called()

    def test_report_included_in_prompt(self, verified_state, make_llm, search, hub):
        llm = make_llm("VALIDATED")
        ReviewGate(llm, search, hub)(verified_state)
        assert "executed successfully" in llm.invoke.call_args[0][1]
