"""
REALM_STORE - realm-scoped message persistence

Maps structured messages to documents in MongoDB or CouchDB, one database
per realm (tenant), bound per request to the caller's identity.
"""

from .backends import Backend, CouchBackend, MongoBackend, create_backend
from .config import StoreConfig
from .exceptions import (BackendError, ConfigurationError,
                         DuplicateIdentifierError, InitializationError,
                         InvalidIdentifierError, OperationTimeoutError,
                         RealmStoreError, RevisionConflictError,
                         SerializationError)
from .identity import Identity, RequestContext, background
from .messages import Document, DocumentKey, MessageDescriptor
from .query import Eq, Predicate
from .store import BoundStore, Store

__version__ = "0.1.0"

__all__ = [
    # Core
    "Store",
    "BoundStore",
    "StoreConfig",
    "Identity",
    "RequestContext",
    "background",
    # Messages
    "MessageDescriptor",
    "DocumentKey",
    "Document",
    "Eq",
    "Predicate",
    # Backends
    "Backend",
    "MongoBackend",
    "CouchBackend",
    "create_backend",
    # Errors
    "RealmStoreError",
    "InitializationError",
    "ConfigurationError",
    "SerializationError",
    "InvalidIdentifierError",
    "BackendError",
    "OperationTimeoutError",
    "RevisionConflictError",
    "DuplicateIdentifierError",
]
