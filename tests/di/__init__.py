"""Mock providers for testing."""

from .buffer import MockBufferProvider
from .persistence import MockPersistenceProvider
from .container import build_test_container

__all__ = [
    "MockBufferProvider",
    "MockPersistenceProvider",
    "build_test_container",
]
