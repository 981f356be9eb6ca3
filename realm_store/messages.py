"""
Message descriptors and document keys.

A message type is made storable by describing it explicitly: a stable
fully-qualified name plus a pair of encode/decode functions between the
message and a plain document (``dict``). Nothing is discovered by
inspecting arbitrary objects at runtime.

``MessageDescriptor.for_model`` builds such a descriptor for a pydantic
model class, which is how the bundled examples and tests define messages.

``DocumentKey`` is the structured form of an identifier. Backends that
track revisions (CouchDB) round-trip the revision inside the identifier
string handed to callers, as ``"<id>:<rev>"``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Set, Type, TypeVar

from pydantic import BaseModel

from .constants import KEY_SEPARATOR, REVISION_PATTERN, SCHEMA_VERSION
from .exceptions import InvalidIdentifierError, SerializationError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

M = TypeVar("M")
ModelT = TypeVar("ModelT", bound=BaseModel)

_REVISION = re.compile(REVISION_PATTERN)


@dataclass(frozen=True)
class DocumentKey:
    """
    Identifier of one stored message, with an optional revision token.

    String form is the bare id, or ``id:rev`` when a revision is known.
    Ids may themselves contain the separator, so parsing splits on its
    last occurrence and only when the tail has the shape of a revision
    (``<generation>-<hex digest>``). Anything else is a bare id.
    """

    id: str
    rev: Optional[str] = None

    @classmethod
    def parse(cls, value: Any) -> "DocumentKey":
        """
        Parse an identifier string.

        Raises:
            InvalidIdentifierError: If the value is not a non-empty string,
                or is a revision without an id
        """
        if not isinstance(value, str) or not value:
            raise InvalidIdentifierError(
                "Identifier must be a non-empty string", identifier=value
            )
        bare, separator, rev = value.rpartition(KEY_SEPARATOR)
        if not separator or not _REVISION.match(rev):
            return cls(id=value)
        if not bare:
            raise InvalidIdentifierError("Identifier has an empty id part", identifier=value)
        return cls(id=bare, rev=rev)

    def __str__(self) -> str:
        if self.rev:
            return f"{self.id}{KEY_SEPARATOR}{self.rev}"
        return self.id


@dataclass(frozen=True)
class MessageDescriptor(Generic[M]):
    """
    Explicit description of a storable message type.

    Attributes:
        full_name: Stable fully-qualified type name, e.g. "example.Person".
            Used as the MongoDB collection name and in the ``type`` field.
        encode: Converts a message to a plain document
        decode: Builds a fresh message from a plain document; must ignore
            unknown fields
        schema_version: Version stamped next to the type name
    """

    full_name: str
    encode: Callable[[M], Document]
    decode: Callable[[Document], M]
    schema_version: int = SCHEMA_VERSION

    @property
    def type_name(self) -> str:
        """Value of the ``type`` field, e.g. ``"example.Person:1"``."""
        return f"{self.full_name}:{self.schema_version}"

    def to_document(self, message: M) -> Document:
        """
        Encode a message, wrapping failures in SerializationError.
        """
        try:
            doc = self.encode(message)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            logger.exception(f"Could not encode message of type {self.full_name}")
            raise SerializationError(
                f"Could not encode message: {e}", message_type=self.full_name
            ) from e
        if not isinstance(doc, dict):
            raise SerializationError(
                f"Encoder returned {type(doc).__name__}, expected dict",
                message_type=self.full_name,
            )
        return dict(doc)

    def from_document(self, doc: Document) -> M:
        """
        Decode a document, wrapping failures in SerializationError.
        """
        try:
            return self.decode(doc)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            logger.exception(f"Could not decode document of type {self.full_name}")
            raise SerializationError(
                f"Could not decode document: {e}", message_type=self.full_name
            ) from e

    @classmethod
    def for_model(
        cls,
        model_cls: Type[ModelT],
        full_name: str,
        schema_version: int = SCHEMA_VERSION,
    ) -> "MessageDescriptor[ModelT]":
        """
        Build a descriptor for a pydantic model.

        Encoding uses the JSON form with aliases and without ``None`` values.
        Decoding keeps only keys that name a field (or its alias), so extra
        document fields such as ``type`` and ``createdBy`` are dropped.

        Example:
            class Person(BaseModel):
                id: str = ""
                name: str = ""

            PERSON = MessageDescriptor.for_model(Person, "example.Person")
        """
        known = _model_keys(model_cls)

        def encode(message: ModelT) -> Document:
            if not isinstance(message, model_cls):
                raise TypeError(
                    f"Expected {model_cls.__name__}, got {type(message).__name__}"
                )
            return message.model_dump(mode="json", by_alias=True, exclude_none=True)

        def decode(doc: Document) -> ModelT:
            return model_cls.model_validate({k: v for k, v in doc.items() if k in known})

        return cls(
            full_name=full_name,
            encode=encode,
            decode=decode,
            schema_version=schema_version,
        )


def _model_keys(model_cls: Type[BaseModel]) -> Set[str]:
    """Field names and string aliases accepted by a pydantic model."""
    keys: Set[str] = set()
    for name, info in model_cls.model_fields.items():
        keys.add(name)
        if isinstance(info.alias, str):
            keys.add(info.alias)
        if isinstance(info.validation_alias, str):
            keys.add(info.validation_alias)
    return keys
