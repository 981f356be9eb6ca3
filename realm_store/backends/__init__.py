"""
Backend strategies.

Provides the MongoDB and CouchDB implementations of ``Backend`` and a
factory that picks one by name.
"""

from ..constants import BACKEND_COUCHDB, BACKEND_MONGODB, DEFAULT_TIMEOUT_MS
from ..exceptions import ConfigurationError
from .base import Backend
from .couch import CouchBackend
from .mongo import MongoBackend

_BACKENDS = {
    BACKEND_MONGODB: MongoBackend,
    BACKEND_COUCHDB: CouchBackend,
}


def create_backend(
    name: str, connection_string: str, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> Backend:
    """
    Construct the backend registered under ``name``.

    Raises:
        ConfigurationError: If no backend has that name
        InitializationError: If the backend client cannot be constructed
    """
    try:
        backend_cls = _BACKENDS[name.lower()]
    except KeyError as e:
        raise ConfigurationError(
            f"Unknown backend '{name}'", config_key="backend", config_value=name
        ) from e
    return backend_cls(connection_string, timeout_ms=timeout_ms)


__all__ = [
    "Backend",
    "MongoBackend",
    "CouchBackend",
    "create_backend",
]
