"""
Testing framework for pressmodel.

Provides DSL and drivers for backend-agnostic ORM testing.
"""

from .dsl import (
    ModelOperation,
    OrmDsl,
    CreateOperation,
    GetOperation,
    UpdateOperation,
    DeleteOperation,
    RestoreOperation,
    QueryOperation,
    OperationResult,
)
from .drivers import (
    DriverInterface,
    InMemoryDriver,
    RecordingDriver,
)
from .multi_backend_base import (
    DRIVERS,
    MultiBackendTestBase,
    only_backends,
    register_driver,
)
from .recording import Call, RecordingBackend

__all__ = [
    # DSL
    "ModelOperation",
    "OrmDsl",
    "CreateOperation",
    "GetOperation",
    "UpdateOperation",
    "DeleteOperation",
    "RestoreOperation",
    "QueryOperation",
    "OperationResult",
    # Drivers
    "DriverInterface",
    "InMemoryDriver",
    "RecordingDriver",
    # Test base
    "DRIVERS",
    "MultiBackendTestBase",
    "only_backends",
    "register_driver",
    # Backends
    "Call",
    "RecordingBackend",
]
