from pathlib import Path

import pytest

from api_doc_dsl.config import Settings
from api_doc_dsl.registry import Registry, app

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def settings():
    return Settings(
        app_name="Test API",
        app_info={"v1": "Version one"},
        copyright="ACME",
        default_version="v1",
        api_base_url={"v1": "/api/v1", "v2": "/api/v2"},
    )


@pytest.fixture
def registry(settings):
    return Registry(settings)


@pytest.fixture
def default_app(settings):
    """The process-wide registry, configured for the test and emptied afterwards."""
    previous = app.settings
    app.configure(settings)
    app.reset()
    yield app
    app.reset()
    app.configure(previous)
