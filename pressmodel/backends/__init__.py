"""Backend implementations for pressmodel."""

from pressmodel.backends.base import Backend, Record
from pressmodel.backends.memory import InMemoryBackend

__all__ = [
    "Backend",
    "Record",
    "InMemoryBackend",
]
