"""
Constants for REALM_STORE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# DOCUMENT FIELD CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "id"
"""Message-level identifier field."""

TYPE_FIELD: Final[str] = "type"
"""Field holding the versioned message type name."""

CREATED_BY_FIELD: Final[str] = "createdBy"
"""Field holding the id of the identity that wrote the document."""

NATIVE_ID_FIELD: Final[str] = "_id"
"""Backend-native primary key field (MongoDB and CouchDB)."""

NATIVE_REV_FIELD: Final[str] = "_rev"
"""CouchDB revision field."""

SCHEMA_VERSION: Final[int] = 1
"""Schema version stamped into the type field."""

KEY_SEPARATOR: Final[str] = ":"
"""Separator between a bare id and its revision token."""

REVISION_PATTERN: Final[str] = r"^\d+-[0-9a-f]+$"
"""Shape of a CouchDB revision token, e.g. ``3-917fa23...``."""

# ============================================================================
# BACKEND CONSTANTS
# ============================================================================

BACKEND_MONGODB: Final[str] = "mongodb"
BACKEND_COUCHDB: Final[str] = "couchdb"

SUPPORTED_BACKENDS: Final[tuple] = (BACKEND_MONGODB, BACKEND_COUCHDB)

DEFAULT_BACKEND: Final[str] = BACKEND_MONGODB
"""Backend used when DB_BACKEND is not set."""

DEFAULT_TIMEOUT_MS: Final[int] = 5000
"""Default server selection (MongoDB) / HTTP (CouchDB) timeout in milliseconds."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 0
"""Default minimum MongoDB connection pool size."""

COUCH_FIND_PAGE_SIZE: Final[int] = 1000
"""Rows requested per CouchDB _find page; all pages are read."""

APP_NAME: Final[str] = "REALM_STORE"
"""Application name reported to MongoDB."""

# ============================================================================
# ENVIRONMENT VARIABLE NAMES
# ============================================================================

ENV_HOST: Final[str] = "DB_HOST"
ENV_PORT: Final[str] = "DB_PORT"
ENV_PROTOCOL: Final[str] = "DB_PROTOCOL"
ENV_USER: Final[str] = "DB_USER"
ENV_PASSWORD: Final[str] = "DB_PASSWORD"
ENV_BACKEND: Final[str] = "DB_BACKEND"
ENV_URI: Final[str] = "DB_URI"
ENV_TIMEOUT_MS: Final[str] = "DB_TIMEOUT_MS"
