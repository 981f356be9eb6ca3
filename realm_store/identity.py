"""
Per-request identity and context.

An ``Identity`` names the caller and the realm (tenant database) it works
in. A ``RequestContext`` carries what the caller wants applied to every
backend call of one request: an optional timeout and a correlation id for
logging.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Identity:
    """
    The caller of a request.

    Attributes:
        id: Opaque unique identifier of the user (UUID by default)
        realm: Tenant name; selects the database operations run against
    """

    id: Any
    realm: str

    def __post_init__(self) -> None:
        if not isinstance(self.realm, str) or not self.realm:
            raise ValueError("Identity.realm must be a non-empty string")

    @classmethod
    def new(cls, realm: str) -> "Identity":
        """Create an identity with a fresh UUID4 user id."""
        return cls(id=uuid.uuid4(), realm=realm)


@dataclass(frozen=True)
class RequestContext:
    """
    Context of one logical request.

    Cancelling the task that awaits a store operation aborts the backend
    call; ``timeout`` additionally bounds every single operation.

    Attributes:
        timeout: Seconds each operation may take (None = unbounded)
        correlation_id: Id attached to log records (generated when omitted)
    """

    timeout: Optional[float] = None
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("RequestContext.timeout must be positive")


def background() -> RequestContext:
    """Return an unbounded context, for scripts and startup code."""
    return RequestContext()
