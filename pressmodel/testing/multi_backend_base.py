"""
Run one test class against every registered backend driver.

A test class lists the models it uses. For each backend the orm fixture builds
a fresh driver, points those models and the default backend at the driver's
storage, and puts the previous backends back once the test is done.

Example:
    >>> class TestStories(MultiBackendTestBase):
    ...     def get_test_models(self):
    ...         return [Story]
    ...
    ...     def test_create(self, orm):
    ...         orm_client, backend_name = orm
    ...         orm_client.create_and_verify(Story, title="Hello")
"""

import pytest
from typing import Callable, Dict, List, Optional, Type
from abc import ABC, abstractmethod

from pressmodel.config import configure, get_settings

from .dsl import OrmDsl
from .drivers import DriverInterface, InMemoryDriver, RecordingDriver

# Backend name -> driver factory, in the order tests run
DRIVERS: Dict[str, Callable[[], DriverInterface]] = {
    'memory': InMemoryDriver,
    'recording': RecordingDriver,
}


def register_driver(name: str, factory: Callable[[], DriverInterface]) -> None:
    """
    Add a backend to the matrix that every MultiBackendTestBase runs against.

    Example:
        >>> register_driver('sqlite', SqliteDriver)
    """
    DRIVERS[name] = factory


class MultiBackendTestBase(ABC):
    """
    Base class for multi-backend tests.

    Every test method taking the orm fixture runs once per backend returned
    by get_available_backends(). tests/conftest.py does the parametrisation.
    """

    # None runs every registered driver
    ENABLED_BACKENDS: Optional[List[str]] = None

    EXCLUDED_BACKENDS: List[str] = []

    @abstractmethod
    def get_test_models(self) -> List[Type]:
        """
        Model classes whose storage the orm fixture swaps per backend.

        Returns:
            List of Model classes
        """
        pass

    @classmethod
    def get_available_backends(cls) -> List[str]:
        """Backend names this class runs against, in registration order."""
        names = list(DRIVERS) if cls.ENABLED_BACKENDS is None else cls.ENABLED_BACKENDS
        return [name for name in names if name not in cls.EXCLUDED_BACKENDS]

    @classmethod
    def create_driver(cls, backend_name: str) -> DriverInterface:
        """Build a fresh driver, skipping the test for unregistered backends."""
        if backend_name not in DRIVERS:
            pytest.skip(f"No driver registered for backend '{backend_name}'. Registered: {list(DRIVERS)}")
        return DRIVERS[backend_name]()

    @pytest.fixture
    def orm(self, request):
        """
        Parametrized fixture yielding (OrmDsl, backend name).

        Related models that declare no backend of their own (a term_model,
        say) reach the same storage through the default backend.
        """
        backend_name = request.param
        driver = self.create_driver(backend_name)

        models = self.get_test_models()
        previous_backends = [(model, model.model_backend) for model in models]
        previous_default = get_settings().default_backend

        for model in models:
            driver.setup_backend(model)
        configure(default_backend=driver.backend)
        driver.clear()

        yield OrmDsl(driver), backend_name

        driver.clear()
        configure(default_backend=previous_default)
        for model, backend in previous_backends:
            model.model_backend = backend


def only_backends(*backend_names: str):
    """
    Decorator to run a test only on specific backends.

    Usage:
        @only_backends('recording')
        def test_storage_calls(self, orm):
            orm_client, backend_name = orm
            calls = orm_client.driver.backend.calls
    """
    def decorator(func):
        def wrapper(self, orm, *args, **kwargs):
            orm_client, current_backend = orm
            if current_backend not in backend_names:
                pytest.skip(f"Test only runs on backends: {backend_names}")
            return func(self, orm, *args, **kwargs)
        return wrapper
    return decorator
