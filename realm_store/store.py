"""
Realm Store

``Store`` is the process-wide gateway to one database backend. Which
database to use depends on the caller's realm, and every call should obey
the caller's request context, so ``Store`` exposes no document operations
itself. Bind it to a request instead:

    store = Store.from_env()                      # once, at startup
    bound = store.bind(RequestContext(), user)    # once per request
    person_id = await bound.store(PERSON, Person(name="Tom22"))
    people = await bound.filter(PERSON, Eq("name", "Tom22"))

The two objects have different lifecycles: ``Store`` lives as long as the
application, ``BoundStore`` as long as one request.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, List, Mapping, Optional, TypeVar

from .backends import Backend, create_backend
from .config import StoreConfig
from .constants import (CREATED_BY_FIELD, DEFAULT_BACKEND, DEFAULT_TIMEOUT_MS,
                        ID_FIELD, TYPE_FIELD)
from .exceptions import DuplicateIdentifierError, OperationTimeoutError
from .identity import Identity, RequestContext, background
from .messages import MessageDescriptor
from .observability import get_logger, operation_context, record_operation
from .query import Predicate

logger = logging.getLogger(__name__)
contextual_logger = get_logger(__name__)

M = TypeVar("M")
T = TypeVar("T")


class Store:
    """
    Owns one backend client for the lifetime of the process.

    Safe to share between concurrent requests; the only shared state is
    the backend client.
    """

    __slots__ = ("_backend",)

    def __init__(self, backend: Backend):
        self._backend = backend

    @classmethod
    def connect(
        cls,
        connection_string: str,
        backend: str = DEFAULT_BACKEND,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> "Store":
        """
        Build a store from a literal connection string.

        Raises:
            InitializationError: If the backend client cannot be constructed
            ConfigurationError: If ``backend`` is unknown
        """
        contextual_logger.info(
            "Creating realm store", extra={"backend": backend, "timeout_ms": timeout_ms}
        )
        return cls(create_backend(backend, connection_string, timeout_ms=timeout_ms))

    @classmethod
    def from_config(cls, config: StoreConfig) -> "Store":
        """Build a store from a validated ``StoreConfig``."""
        config.validate()
        return cls.connect(
            config.connection_string, backend=config.backend, timeout_ms=config.timeout_ms
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Store":
        """
        Build a store from DB_HOST, DB_PORT, DB_PROTOCOL, DB_USER and
        DB_PASSWORD (or DB_URI), using DB_BACKEND to pick the backend.
        """
        return cls.from_config(StoreConfig(environ=environ))

    @property
    def backend(self) -> Backend:
        return self._backend

    def bind(
        self, context: Optional[RequestContext], identity: Identity
    ) -> "BoundStore":
        """
        Bind the store to one request. Pure and cheap; call it per request.
        """
        return BoundStore(self, context or background(), identity)

    async def ping(self) -> None:
        """
        Verify the backend answers.

        Raises:
            InitializationError: If it does not
        """
        await self._backend.ping()

    async def close(self) -> None:
        await self._backend.close()
        contextual_logger.info("Realm store closed", extra={"backend": self._backend.name})

    async def __aenter__(self) -> "Store":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class BoundStore:
    """
    A ``Store`` bound to one identity and one request context.

    All document operations live here. Each one runs a single backend
    round trip (``filter`` reads the whole result set) against the
    database of ``identity.realm``.
    """

    __slots__ = ("_store", "_context", "_identity")

    def __init__(self, store: Store, context: RequestContext, identity: Identity):
        self._store = store
        self._context = context
        self._identity = identity

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def context(self) -> RequestContext:
        return self._context

    @property
    def _backend(self) -> Backend:
        return self._store.backend

    async def store(self, descriptor: MessageDescriptor[M], message: M) -> str:
        """
        Insert or update ``message`` and return its identifier.

        An ``id`` already present on the message is reused, otherwise a new
        one is generated. ``type`` and ``createdBy`` are overwritten. On
        CouchDB the returned identifier embeds the new revision and must be
        set on the message before the next update.

        Raises:
            SerializationError: If the message cannot be encoded
            InvalidIdentifierError: If the message's id is malformed
            BackendError: If the database rejects the write
        """
        doc = descriptor.to_document(message)
        raw_id = doc.get(ID_FIELD)
        key = self._backend.resolve_key(raw_id) if raw_id else self._backend.new_key()

        doc[TYPE_FIELD] = descriptor.type_name
        doc[CREATED_BY_FIELD] = str(self._identity.id)

        written = await self._call(
            "store",
            descriptor,
            self._backend.upsert(self._identity.realm, descriptor.full_name, key, doc),
        )
        return str(written)

    async def filter(
        self, descriptor: MessageDescriptor[M], *predicates: Predicate
    ) -> List[M]:
        """
        Messages of ``descriptor``'s type matching all ``predicates``.

        The full result set is read into memory. Unknown document fields
        are ignored when decoding.
        """
        selector = self._backend.build_selector(descriptor.type_name, predicates)
        logger.debug(f"Filtering {descriptor.full_name} with selector {selector}")

        rows = await self._call(
            "filter",
            descriptor,
            self._backend.find(self._identity.realm, descriptor.full_name, selector),
        )
        return [descriptor.from_document(row) for row in rows]

    async def all(self, descriptor: MessageDescriptor[M]) -> List[M]:
        """Every message of ``descriptor``'s type in the realm."""
        return await self.filter(descriptor)

    async def get(self, descriptor: MessageDescriptor[M], identifier: str) -> Optional[M]:
        """
        Look a message up by identifier; any embedded revision is ignored.

        Returns:
            The message, or None when nothing matches

        Raises:
            InvalidIdentifierError: If the identifier is malformed
            DuplicateIdentifierError: If more than one document matches
        """
        key = self._backend.resolve_key(identifier)
        found = await self.filter(descriptor, self._backend.id_predicate(key))
        if not found:
            return None
        if len(found) > 1:
            contextual_logger.critical(
                "Identifier is not unique",
                extra={
                    "identifier": key.id,
                    "count": len(found),
                    "type": descriptor.full_name,
                    "realm": self._identity.realm,
                    "correlation_id": self._context.correlation_id,
                },
            )
            raise DuplicateIdentifierError(
                f"Found {len(found)} entries for unique id {key.id}",
                identifier=key.id,
                count=len(found),
                context={"realm": self._identity.realm, "type": descriptor.full_name},
            )
        return found[0]

    async def _call(
        self, operation: str, descriptor: MessageDescriptor[Any], awaitable: Awaitable[T]
    ) -> T:
        """
        Await one backend call under this request's context.

        Exposes the logging context, applies the timeout and records metrics.
        Cancellation of the calling task propagates unchanged.
        """
        tags: Dict[str, Any] = {
            "backend": self._backend.name,
            "realm": self._identity.realm,
            "table": descriptor.full_name,
        }

        start_time = time.time()
        success = False
        with operation_context(
            self._context.correlation_id,
            realm=self._identity.realm,
            user_id=str(self._identity.id),
            backend=self._backend.name,
        ):
            try:
                if self._context.timeout is None:
                    result = await awaitable
                else:
                    result = await asyncio.wait_for(awaitable, timeout=self._context.timeout)
                success = True
                return result
            except asyncio.TimeoutError as e:
                contextual_logger.warning(
                    f"Operation {operation} timed out",
                    extra={"timeout": self._context.timeout, **tags},
                )
                raise OperationTimeoutError(
                    f"Operation {operation} exceeded {self._context.timeout}s",
                    operation=operation,
                    context=tags,
                ) from e
            finally:
                duration_ms = (time.time() - start_time) * 1000
                record_operation(f"store.{operation}", duration_ms, success=success, **tags)
