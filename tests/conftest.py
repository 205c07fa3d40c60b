"""
Pytest configuration for pressmodel tests.

Enables multi-backend testing infrastructure and isolates the process-wide
registry and settings between tests.
"""

import pytest

from pressmodel import configure, registry, reset_settings
from pressmodel.content import Admin, Comment, Page, Post, Term, User
from pressmodel.testing import MultiBackendTestBase, RecordingBackend

CONTENT_MODELS = [Post, Page, Term, Comment, User, Admin]


def pytest_generate_tests(metafunc):
    """
    Generate tests for each enabled backend.

    This hook allows MultiBackendTestBase classes to parametrize their tests
    across multiple backends.
    """
    # Check if this is a MultiBackendTestBase subclass
    if metafunc.cls and issubclass(metafunc.cls, MultiBackendTestBase):
        if "orm" in metafunc.fixturenames:
            backends = metafunc.cls.get_available_backends()
            metafunc.parametrize("orm", backends, indirect=True, ids=backends)


@pytest.fixture(autouse=True)
def isolated_registry():
    """Start every test with no callbacks, scopes or settings registered."""
    registry.reset()
    reset_settings()
    yield
    registry.reset()
    reset_settings()


@pytest.fixture
def backend():
    """Recording backend used by every content type and as the default."""
    backend = RecordingBackend()
    configure(default_backend=backend)
    for model in CONTENT_MODELS:
        model.model_backend = backend
    yield backend
    for model in CONTENT_MODELS:
        model.model_backend = None
