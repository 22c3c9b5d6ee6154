"""Infrastructure providers."""

# Import bases
from .buffer import BufferProvider
from .persistence import PersistenceProvider

# Import implementations (needed for __subclasses__())
from .buffer import ProdBufferProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401

__all__ = [
    "BufferProvider",
    "PersistenceProvider",
    "ProdBufferProvider",
    "ProdPersistenceProvider",
]
