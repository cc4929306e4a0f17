"""
Core Domain Objects for the Fact record layer.

A Fact is an assertion in the knowledge graph, optionally bound to one or
two Objects. The same Fact exists in three shapes:

    FactEntity      — persisted form, Objects stored as Bindings
    FactDocument    — search index form, Objects embedded as ObjectDocuments
    FactRecord      — reconciled form, Objects resolved to source/destination

Only the Binding Resolver is allowed to interpret raw Direction values.
Everything else works on resolved endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID


# =============================================================================
# ENUMS
# =============================================================================

class Direction(Enum):
    """
    Stored direction of a Binding.

    The marker names the role of the Fact relative to the Object, so a
    binding marked FACT_IS_DESTINATION points at the Fact's *source* Object
    and FACT_IS_SOURCE at its *destination* Object.
    """
    FACT_IS_SOURCE = "FactIsSource"
    FACT_IS_DESTINATION = "FactIsDestination"
    BI_DIRECTIONAL = "BiDirectional"


class AccessMode(Enum):
    """Who may see a Fact."""
    PUBLIC = "Public"
    ROLE_BASED = "RoleBased"
    EXPLICIT = "Explicit"


class Flag(Enum):
    """Hints attached to a FactRecord during reconstruction."""
    RETRACTED_HINT = "RetractedHint"


# =============================================================================
# STORAGE ENTITIES
# =============================================================================

@dataclass(frozen=True)
class Binding:
    """One stored edge endpoint: an Object id plus its Direction."""
    object_id: UUID
    direction: Direction


@dataclass
class ObjectEntity:
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None


@dataclass
class FactAclEntity:
    id: UUID
    fact_id: UUID
    subject_id: UUID
    origin_id: Optional[UUID] = None
    timestamp: int = 0


@dataclass
class FactCommentEntity:
    id: UUID
    fact_id: UUID
    comment: str
    reply_to_id: Optional[UUID] = None
    origin_id: Optional[UUID] = None
    timestamp: int = 0


@dataclass
class FactEntity:
    """
    A Fact as persisted.

    Bindings keep their insertion order. The order matters: for
    bidirectional Facts it decides which Object is reported as source.
    """
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None
    in_reference_to_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    origin_id: Optional[UUID] = None
    added_by_id: Optional[UUID] = None
    access_mode: Optional[AccessMode] = None
    confidence: float = 0.0
    trust: float = 0.0
    timestamp: int = 0
    last_seen_timestamp: int = 0
    bindings: list[Binding] = field(default_factory=list)

    def add_binding(self, binding: Binding) -> FactEntity:
        self.bindings.append(binding)
        return self


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class ObjectRecord:
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class FactAclEntryRecord:
    id: UUID
    subject_id: UUID
    origin_id: Optional[UUID] = None
    timestamp: int = 0


@dataclass(frozen=True)
class FactCommentRecord:
    id: Optional[UUID] = None
    reply_to_id: Optional[UUID] = None
    origin_id: Optional[UUID] = None
    comment: Optional[str] = None
    timestamp: int = 0


@dataclass
class FactRecord:
    """
    The reconciled view of a Fact.

    source_object/destination_object/bidirectional_binding are never stored
    directly. They are rebuilt from the entity's Bindings on every read and
    turned back into Bindings on every write.
    """
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None
    in_reference_to_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    origin_id: Optional[UUID] = None
    added_by_id: Optional[UUID] = None
    access_mode: Optional[AccessMode] = None
    confidence: float = 0.0
    trust: float = 0.0
    timestamp: int = 0
    last_seen_timestamp: int = 0

    source_object: Optional[ObjectRecord] = None
    destination_object: Optional[ObjectRecord] = None
    bidirectional_binding: bool = False

    flags: set[Flag] = field(default_factory=set)
    acl: list[FactAclEntryRecord] = field(default_factory=list)
    comments: list[FactCommentRecord] = field(default_factory=list)

    def add_flag(self, flag: Flag) -> FactRecord:
        self.flags.add(flag)
        return self

    def add_acl_entry(self, entry: FactAclEntryRecord) -> FactRecord:
        self.acl.append(entry)
        return self

    def add_comment(self, comment: FactCommentRecord) -> FactRecord:
        self.comments.append(comment)
        return self

    def is_retracted(self) -> bool:
        return Flag.RETRACTED_HINT in self.flags


# =============================================================================
# SEARCH DOCUMENTS
# =============================================================================

@dataclass(frozen=True)
class ObjectDocument:
    id: UUID
    direction: Direction
    type_id: Optional[UUID] = None
    value: Optional[str] = None


@dataclass
class FactDocument:
    """A Fact as indexed for search."""
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None
    in_reference_to: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    origin_id: Optional[UUID] = None
    added_by_id: Optional[UUID] = None
    access_mode: Optional[AccessMode] = None
    confidence: float = 0.0
    trust: float = 0.0
    timestamp: int = 0
    last_seen_timestamp: int = 0
    retracted: bool = False
    acl: set[UUID] = field(default_factory=set)
    objects: list[ObjectDocument] = field(default_factory=list)

    def add_object(self, document: ObjectDocument) -> FactDocument:
        self.objects.append(document)
        return self


class CriteriaValidationError(Exception):
    """Raised when existence search criteria lack a required field."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field for existence search: {field_name}")


@dataclass(frozen=True)
class FactExistenceSearchCriteria:
    """
    Query form used to check whether an equivalent Fact already exists.

    Objects are kept as (object_id, direction name) pairs in the order
    they were derived.
    """
    fact_type_id: UUID
    origin_id: UUID
    organization_id: UUID
    access_mode: str
    confidence: float
    fact_value: Optional[str] = None
    in_reference_to: Optional[UUID] = None
    objects: tuple[tuple[UUID, str], ...] = ()

    def __post_init__(self):
        for name in ("fact_type_id", "origin_id", "organization_id", "access_mode", "confidence"):
            if getattr(self, name) is None:
                raise CriteriaValidationError(name)
