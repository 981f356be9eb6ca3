"""
Contextual logging for REALM_STORE.

While a ``BoundStore`` operation runs, the correlation id of its
``RequestContext`` and the realm/user of its ``Identity`` live in context
variables. Records logged through ``get_logger`` carry them as ``extra``
fields. The variables are restored when the operation returns, so nothing
leaks into the caller's task.
"""

import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Iterator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "realm_store_correlation_id", default=None
)

_operation_fields: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "realm_store_operation_fields", default={}
)


def get_correlation_id() -> str | None:
    """Correlation id of the operation running in this context, if any."""
    return _correlation_id.get()


@contextmanager
def operation_context(correlation_id: str, **fields: Any) -> Iterator[None]:
    """
    Expose ``correlation_id`` and ``fields`` to loggers for the block.

    Example:
        with operation_context(ctx.correlation_id, realm="skytala", user_id="u1"):
            logger.info("Storing")   # record carries realm and user_id
    """
    id_token = _correlation_id.set(correlation_id)
    fields_token = _operation_fields.set({**_operation_fields.get(), **fields})
    try:
        yield
    finally:
        _operation_fields.reset(fields_token)
        _correlation_id.reset(id_token)


def get_logging_context() -> dict[str, Any]:
    """Correlation id and operation fields as one dictionary."""
    context = dict(_operation_fields.get())
    correlation_id = _correlation_id.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Adds the logging context to each record; explicit ``extra`` wins."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    return ContextualLoggerAdapter(logging.getLogger(name), {})
