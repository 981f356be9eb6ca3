"""
Abstract Backend Strategy

Defines the small capability set the realm store needs from a database:
key handling, selector translation, upsert and find. ``MongoBackend`` and
``CouchBackend`` implement it; a ``Store`` picks one at construction time
and never branches on the backend afterwards.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Sequence

from ..constants import ID_FIELD, NATIVE_ID_FIELD
from ..messages import Document, DocumentKey
from ..query import Eq, Predicate, and_selector


class Backend(ABC):
    """
    Backend interface for realm-scoped document storage.

    ``realm`` selects the tenant database and ``table`` is the
    fully-qualified message type name. How the two map onto databases and
    collections is up to the implementation.
    """

    name: ClassVar[str] = ""

    @abstractmethod
    def new_key(self) -> DocumentKey:
        """Generate an identifier for a message that has none yet."""

    @abstractmethod
    def resolve_key(self, value: Any) -> DocumentKey:
        """
        Parse an identifier supplied by a caller or found in a document.

        Raises:
            InvalidIdentifierError: If the value is not a valid identifier
                for this backend
        """

    @abstractmethod
    def native_id(self, key: DocumentKey) -> Any:
        """Value of the backend's primary key field for ``key``."""

    @abstractmethod
    async def upsert(
        self, realm: str, table: str, key: DocumentKey, doc: Document
    ) -> DocumentKey:
        """
        Insert ``doc`` under ``key`` or replace the existing document.

        Returns:
            The key the document is now stored under (with a fresh
            revision on backends that track revisions)

        Raises:
            BackendError: If the database rejects the write
        """

    @abstractmethod
    async def find(
        self, realm: str, table: str, selector: Dict[str, Any]
    ) -> List[Document]:
        """
        Run a selector and return every matching document.

        Returned documents carry the identifier in the ``id`` field and no
        backend metadata.

        Raises:
            BackendError: If the query fails
        """

    @abstractmethod
    async def ping(self) -> None:
        """
        Check that the database answers.

        Raises:
            InitializationError: If it does not
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying client."""

    def id_predicate(self, key: DocumentKey) -> Predicate:
        """Equality predicate on the primary key, revision ignored."""
        return Eq(NATIVE_ID_FIELD, self.native_id(key))

    def translate(self, predicate: Predicate) -> Predicate:
        """Map the message-level ``id`` field onto the primary key."""
        if predicate.field == ID_FIELD:
            key = self.resolve_key(predicate.value)
            return Predicate(NATIVE_ID_FIELD, predicate.op, self.native_id(key))
        return predicate

    def build_selector(
        self, type_name: str, predicates: Sequence[Predicate]
    ) -> Dict[str, Any]:
        """Selector constrained on ``type_name`` and AND-ed with ``predicates``."""
        return and_selector(type_name, [self.translate(p) for p in predicates])
