import pytest

from reader.core import config
from reader.main import app

@pytest.fixture
def anyio_backend():
    return "asyncio"

@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Every test starts with the real dependencies"""
    yield
    app.dependency_overrides.clear()

@pytest.fixture
def restore_settings():
    """Snapshot the mutable settings and put them back after the test"""
    names = ["REQUEST_TIMEOUT", "DIAL_TIMEOUT", "MAX_REDIRECTS", "MAX_BODY_BYTES"]
    original = {name: getattr(config.settings, name) for name in names}
    yield config.settings
    for name, value in original.items():
        setattr(config.settings, name, value)
