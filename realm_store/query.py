"""
Backend-neutral query predicates.

Predicates are plain values; each backend translates them into its own
selector syntax (see ``Backend.build_selector``). Multiple predicates are
combined with logical AND.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from .constants import TYPE_FIELD

EQ = "$eq"


@dataclass(frozen=True)
class Predicate:
    """A single ``field <op> value`` condition."""

    field: str
    op: str
    value: Any

    def to_selector(self) -> Dict[str, Any]:
        """Mongo-style selector fragment, shared by MongoDB and CouchDB Mango."""
        return {self.field: {self.op: self.value}}


def Eq(field: str, value: Any) -> Predicate:  # noqa: N802
    """Equality predicate: ``field == value``."""
    return Predicate(field=field, op=EQ, value=value)


def and_selector(type_name: str, predicates: Sequence[Predicate]) -> Dict[str, Any]:
    """
    Combine the mandatory type constraint with caller predicates.

    The result is always an ``$and`` with the type clause first, so it
    never degenerates into an empty ``$and`` (which matches nothing).
    """
    clauses: List[Dict[str, Any]] = [Eq(TYPE_FIELD, type_name).to_selector()]
    clauses.extend(p.to_selector() for p in predicates)
    return {"$and": clauses}
