"""
Binding Resolver for the Fact record layer.

Turns the stored Bindings of a Fact into resolved endpoints (source,
destination, bidirectional) and back.

Design principles:
- Stored direction markers name the Fact's role, not the Object's role.
  A FACT_IS_DESTINATION binding is the Fact's source Object.
- Nothing outside this module inspects raw Direction values.
- Corrupt cardinality is reported, never guessed and never raised.
  One corrupt Fact must not abort a batch.
- Missing Objects are never replaced by placeholders.

Trust boundary: if the stored bindings do not describe a legal Fact, the
result carries no Objects at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional
from uuid import UUID

from ..domain import Binding, Direction, ObjectRecord

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

# A Fact binds at most a source and a destination Object
MAX_BINDINGS = 2


# =============================================================================
# ERRORS & DIAGNOSTICS
# =============================================================================

class ObjectLookupError(Exception):
    """Raised when a bound Object cannot be materialized."""

    def __init__(self, object_id: UUID, fact_id: Optional[UUID] = None):
        self.object_id = object_id
        self.fact_id = fact_id
        super().__init__(f"Object {object_id} bound to Fact {fact_id} could not be found")


class BindingProblem(Enum):
    """Ways stored bindings can violate the cardinality invariant."""
    TOO_MANY_BINDINGS = "too_many_bindings"
    SAME_DIRECTION = "same_direction"


_PROBLEM_MESSAGES = {
    BindingProblem.TOO_MANY_BINDINGS: "Fact is bound to more than two Objects",
    BindingProblem.SAME_DIRECTION: "Fact is bound to two Objects with the same direction",
}


@dataclass(frozen=True)
class BindingDiagnostic:
    """Non-fatal report about a Fact whose bindings were ignored."""
    fact_id: Optional[UUID]
    problem: BindingProblem
    binding_count: int

    @property
    def message(self) -> str:
        return (
            f"{_PROBLEM_MESSAGES[self.problem]} (id = {self.fact_id}). "
            "Ignoring Objects in result."
        )


ObjectLookup = Callable[[UUID], Optional[ObjectRecord]]
DiagnosticSink = Callable[[BindingDiagnostic], None]


def log_diagnostic(diagnostic: BindingDiagnostic) -> None:
    """Default sink: emit the diagnostic as a warning."""
    logger.warning(diagnostic.message)


# =============================================================================
# RESOLVED ENDPOINTS
# =============================================================================

class EndpointKind(Enum):
    """
    Shapes a resolved Fact can take.

    REFLEXIVE is the single bidirectional binding: one Object plays both
    roles. CORRUPT looks like EMPTY from the outside but keeps the
    diagnostic that explains why.
    """
    EMPTY = "empty"
    SOURCE_ONLY = "source_only"
    DESTINATION_ONLY = "destination_only"
    REFLEXIVE = "reflexive"
    ASYMMETRIC = "asymmetric"
    BIDIRECTIONAL = "bidirectional"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class ResolvedEndpoints:
    """
    Resolved source/destination of a Fact.

    Use the classmethod constructors. Illegal combinations raise ValueError
    at construction time.
    """
    kind: EndpointKind
    source: Optional[ObjectRecord] = None
    destination: Optional[ObjectRecord] = None
    diagnostic: Optional[BindingDiagnostic] = None

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        has_source = self.source is not None
        has_destination = self.destination is not None

        expected = {
            EndpointKind.EMPTY: (False, False),
            EndpointKind.CORRUPT: (False, False),
            EndpointKind.SOURCE_ONLY: (True, False),
            EndpointKind.DESTINATION_ONLY: (False, True),
            EndpointKind.REFLEXIVE: (True, True),
            EndpointKind.ASYMMETRIC: (True, True),
            EndpointKind.BIDIRECTIONAL: (True, True),
        }[self.kind]
        if (has_source, has_destination) != expected:
            raise ValueError(
                f"{self.kind.value} endpoints require source={expected[0]}, "
                f"destination={expected[1]}"
            )

        if self.kind == EndpointKind.REFLEXIVE and self.source != self.destination:
            raise ValueError("reflexive endpoints must reference the same Object")

        if (self.kind == EndpointKind.CORRUPT) != (self.diagnostic is not None):
            raise ValueError("only corrupt endpoints carry a diagnostic")

    @classmethod
    def empty(cls) -> ResolvedEndpoints:
        return cls(EndpointKind.EMPTY)

    @classmethod
    def corrupt(cls, diagnostic: BindingDiagnostic) -> ResolvedEndpoints:
        return cls(EndpointKind.CORRUPT, diagnostic=diagnostic)

    @classmethod
    def source_only(cls, source: ObjectRecord) -> ResolvedEndpoints:
        return cls(EndpointKind.SOURCE_ONLY, source=source)

    @classmethod
    def destination_only(cls, destination: ObjectRecord) -> ResolvedEndpoints:
        return cls(EndpointKind.DESTINATION_ONLY, destination=destination)

    @classmethod
    def reflexive(cls, obj: ObjectRecord) -> ResolvedEndpoints:
        return cls(EndpointKind.REFLEXIVE, source=obj, destination=obj)

    @classmethod
    def asymmetric(cls, source: ObjectRecord, destination: ObjectRecord) -> ResolvedEndpoints:
        return cls(EndpointKind.ASYMMETRIC, source=source, destination=destination)

    @classmethod
    def bidirectional_pair(cls, source: ObjectRecord, destination: ObjectRecord) -> ResolvedEndpoints:
        return cls(EndpointKind.BIDIRECTIONAL, source=source, destination=destination)

    @property
    def bidirectional(self) -> bool:
        return self.kind in (EndpointKind.REFLEXIVE, EndpointKind.BIDIRECTIONAL)

    @property
    def is_corrupt(self) -> bool:
        return self.kind == EndpointKind.CORRUPT


def endpoints_of(
    source: Optional[ObjectRecord],
    destination: Optional[ObjectRecord],
    bidirectional: bool,
) -> ResolvedEndpoints:
    """
    Build endpoints from the fields of a FactRecord.

    A bidirectional Fact with a single Object, or with the same Object on
    both sides, is reflexive and encodes as one binding.
    """
    if source is None and destination is None:
        return ResolvedEndpoints.empty()

    if bidirectional:
        if source is None or destination is None:
            return ResolvedEndpoints.reflexive(source or destination)
        if source.id == destination.id:
            return ResolvedEndpoints.reflexive(source)
        return ResolvedEndpoints.bidirectional_pair(source, destination)

    if destination is None:
        return ResolvedEndpoints.source_only(source)
    if source is None:
        return ResolvedEndpoints.destination_only(destination)
    return ResolvedEndpoints.asymmetric(source, destination)


# =============================================================================
# DECODE: BINDINGS -> ENDPOINTS
# =============================================================================

def _fetch(lookup: ObjectLookup, object_id: UUID, fact_id: Optional[UUID]) -> ObjectRecord:
    obj = lookup(object_id)
    if obj is None:
        raise ObjectLookupError(object_id, fact_id)
    return obj


def _report(
    sink: DiagnosticSink,
    fact_id: Optional[UUID],
    problem: BindingProblem,
    binding_count: int,
) -> ResolvedEndpoints:
    diagnostic = BindingDiagnostic(fact_id, problem, binding_count)
    sink(diagnostic)
    return ResolvedEndpoints.corrupt(diagnostic)


def _resolve_single(
    fact_id: Optional[UUID],
    binding: Binding,
    lookup: ObjectLookup,
) -> ResolvedEndpoints:
    obj = _fetch(lookup, binding.object_id, fact_id)

    if binding.direction == Direction.FACT_IS_DESTINATION:
        return ResolvedEndpoints.source_only(obj)
    if binding.direction == Direction.FACT_IS_SOURCE:
        return ResolvedEndpoints.destination_only(obj)
    # Single bidirectional binding: the same Object fills both roles
    return ResolvedEndpoints.reflexive(obj)


def _resolve_pair(
    fact_id: Optional[UUID],
    first: Binding,
    second: Binding,
    lookup: ObjectLookup,
    sink: DiagnosticSink,
) -> ResolvedEndpoints:
    if first.direction == second.direction and first.direction != Direction.BI_DIRECTIONAL:
        return _report(sink, fact_id, BindingProblem.SAME_DIRECTION, 2)

    if first.direction == Direction.FACT_IS_DESTINATION:
        return ResolvedEndpoints.asymmetric(
            _fetch(lookup, first.object_id, fact_id),
            _fetch(lookup, second.object_id, fact_id),
        )
    if second.direction == Direction.FACT_IS_DESTINATION:
        return ResolvedEndpoints.asymmetric(
            _fetch(lookup, second.object_id, fact_id),
            _fetch(lookup, first.object_id, fact_id),
        )

    # Same Object twice is the reflexive case, as in endpoints_of()
    if first.object_id == second.object_id:
        return ResolvedEndpoints.reflexive(_fetch(lookup, first.object_id, fact_id))

    # Role assignment is symmetric here; stored order decides
    return ResolvedEndpoints.bidirectional_pair(
        _fetch(lookup, first.object_id, fact_id),
        _fetch(lookup, second.object_id, fact_id),
    )


def resolve(
    fact_id: Optional[UUID],
    bindings: Optional[Iterable[Binding]],
    lookup: ObjectLookup,
    sink: Optional[DiagnosticSink] = None,
) -> ResolvedEndpoints:
    """
    Resolve the stored bindings of a Fact into endpoints.

    Args:
        fact_id: Identity of the Fact, used in diagnostics and errors
        bindings: Stored bindings in insertion order
        lookup: Materializes an Object by id; None means absent
        sink: Receives diagnostics for corrupt bindings (default: log)

    Returns:
        ResolvedEndpoints. CORRUPT when there are more than two bindings
        or two bindings with the same one-way direction.

    Raises:
        ObjectLookupError: If the lookup returns None for a bound Object
    """
    if sink is None:
        sink = log_diagnostic

    bindings = list(bindings or ())

    if not bindings:
        return ResolvedEndpoints.empty()
    if len(bindings) == 1:
        return _resolve_single(fact_id, bindings[0], lookup)
    if len(bindings) == MAX_BINDINGS:
        return _resolve_pair(fact_id, bindings[0], bindings[1], lookup, sink)

    return _report(sink, fact_id, BindingProblem.TOO_MANY_BINDINGS, len(bindings))


# =============================================================================
# ENCODE: ENDPOINTS -> BINDINGS
# =============================================================================

def derive_object_directions(
    endpoints: ResolvedEndpoints,
) -> tuple[tuple[ObjectRecord, Direction], ...]:
    """
    Pair each resolved Object with the direction it is stored under.

    Source comes first, destination second. Search documents and existence
    criteria are built from this so they share the storage encoding.
    """
    kind = endpoints.kind

    if kind in (EndpointKind.EMPTY, EndpointKind.CORRUPT):
        return ()
    if kind == EndpointKind.SOURCE_ONLY:
        return ((endpoints.source, Direction.FACT_IS_DESTINATION),)
    if kind == EndpointKind.DESTINATION_ONLY:
        return ((endpoints.destination, Direction.FACT_IS_SOURCE),)
    if kind == EndpointKind.REFLEXIVE:
        return ((endpoints.source, Direction.BI_DIRECTIONAL),)
    if kind == EndpointKind.ASYMMETRIC:
        return (
            (endpoints.source, Direction.FACT_IS_DESTINATION),
            (endpoints.destination, Direction.FACT_IS_SOURCE),
        )
    return (
        (endpoints.source, Direction.BI_DIRECTIONAL),
        (endpoints.destination, Direction.BI_DIRECTIONAL),
    )


def derive_bindings(endpoints: ResolvedEndpoints) -> tuple[Binding, ...]:
    """
    Inverse of resolve().

    resolve() applied to the result gives back endpoints equal to the input
    (given a lookup that returns the same Objects).
    """
    return tuple(
        Binding(object_id=obj.id, direction=direction)
        for obj, direction in derive_object_directions(endpoints)
    )
