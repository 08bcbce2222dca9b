"""
Pytest configuration and fixtures for backend API tests.
"""

import pytest
from unittest.mock import Mock, patch


@pytest.fixture(autouse=True)
def reset_provider():
    """Reset the global embedding provider between tests."""
    import tab_grouper.server.app as app_module

    app_module._provider = None
    yield
    app_module._provider = None


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings to avoid requiring .env file in tests."""
    with patch("tab_grouper.server.app.get_settings") as mock_app_settings, \
         patch("tab_grouper.grouping.embedding_provider.get_settings") as mock_provider_settings:
        settings = Mock()
        settings.openai_api_key = "test-api-key"
        settings.openai_embedding_model = "text-embedding-3-small"
        settings.default_mode = "hybrid"
        settings.anchor_labels = ["Coding", "Travel"]
        settings.max_tabs_per_request = 500
        settings.log_level = "INFO"
        mock_app_settings.return_value = settings
        mock_provider_settings.return_value = settings
        yield settings


@pytest.fixture(autouse=True)
def mock_openai():
    """Mock OpenAI client to avoid real API calls in tests."""
    with patch("tab_grouper.grouping.embedding_provider.OpenAI") as mock:
        mock_client = Mock()

        def mock_embeddings_create(model, input):
            """Mock embeddings.create returning one identical vector per input."""
            mock_response = Mock()
            mock_response.data = [Mock(embedding=[0.1] * 1536) for _ in input]
            return mock_response

        mock_client.embeddings.create.side_effect = mock_embeddings_create
        mock.return_value = mock_client
        yield mock_client


@pytest.fixture
def sample_tabs_data():
    """Sample tab data for testing API endpoints."""
    return {
        "tabs": [
            {
                "id": 1,
                "url": "https://en.wikipedia.org/wiki/Graph_theory",
                "title": "Graph theory - Wikipedia",
                "openTime": 1_700_000_000_000,
            },
            {
                "id": 2,
                "url": "https://github.com/networkx/networkx",
                "title": "networkx/networkx: Network Analysis in Python",
                "openTime": 1_700_000_060_000,
            },
            {
                "id": 3,
                "url": "https://en.wikipedia.org/wiki/Connected_component",
                "title": "Connected component (graph theory) - Wikipedia",
                "openTime": 1_700_000_120_000,
            },
        ],
    }
