"""Shared fixtures for the hubgen test suite."""

from unittest.mock import MagicMock, patch

import pytest

from hubgen.state import initial_state


@pytest.fixture
def base_state():
    """Fresh WorkflowState for the demo/fetch-item task."""
    return initial_state("demo", "fetch-item", "Read")


@pytest.fixture
def generated_state(base_state):
    """State right after a Generation pass."""
    base_state.update({
        "artifact": "export async function main() { return 1; }",
        "resource_schema": '{"type": "object"}',
        "sender": "Generation",
    })
    return base_state


@pytest.fixture
def make_llm():
    """Factory for an LLM mock that answers with the given responses in order."""
    def _make(*responses):
        llm = MagicMock()
        llm.invoke.side_effect = list(responses)
        return llm
    return _make


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.fetch_reference_material.return_value = "demo fetch-item.ts script:\n\nexport const fetchItem = {};"
    repo.list_available_tasks.return_value = []
    return repo


@pytest.fixture
def store():
    s = MagicMock()
    s.write.side_effect = lambda path, content: path
    return s


@pytest.fixture
def hub():
    h = MagicMock()
    h.contains.return_value = False
    h.integration_schema.return_value = None
    return h


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "provider": "anthropic",
        "model": "test-model",
        "max_cycles": 3,
        "max_attempts": 5,
        "rate_limit_backoff_seconds": 0,
        "skip_tasks": [],
        "http_max_retries": 0,
    }
    with patch("hubgen.config._config", test_config):
        yield test_config
