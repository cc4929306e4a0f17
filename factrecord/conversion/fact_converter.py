"""
Fact Record Converter.

Moves a Fact between its stored form (FactEntity), its search forms
(FactDocument, FactExistenceSearchCriteria) and its reconciled form
(FactRecord).

Object bindings go through the Binding Resolver in both directions:
    FactEntity.bindings  --resolve()-->         source/destination/bidirectional
    FactRecord endpoints --derive_bindings()--> bindings / documents / criteria

Reading a Fact also pulls in data kept outside the Fact row:
    - the retracted flag (only stored in the search index)
    - ACL entries
    - comments
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional
from uuid import UUID

from ..domain import (
    FactDocument,
    FactEntity,
    FactExistenceSearchCriteria,
    FactRecord,
    Flag,
    ObjectDocument,
    ObjectRecord,
)
from ..resolution.binding_resolver import (
    BindingDiagnostic,
    DiagnosticSink,
    ObjectLookupError,
    ResolvedEndpoints,
    derive_bindings,
    derive_object_directions,
    endpoints_of,
    log_diagnostic,
    resolve,
)
from ..storage.managers import FactManager, FactSearchManager, ObjectManager
from .converters import (
    acl_entry_from_entity,
    comment_from_entity,
    object_record_from_entity,
)

logger = logging.getLogger(__name__)


class FactRecordConverter:
    """
    Converts FactRecords to and from their stored and searchable shapes.

    Every public method returns None for None input.
    """

    def __init__(
        self,
        object_manager: ObjectManager,
        fact_manager: FactManager,
        fact_search_manager: FactSearchManager,
        sink: Optional[DiagnosticSink] = None,
    ):
        self.object_manager = object_manager
        self.fact_manager = fact_manager
        self.fact_search_manager = fact_search_manager
        self.sink = sink or log_diagnostic

    # -------------------------------------------------------------------------
    # entity -> record
    # -------------------------------------------------------------------------

    def from_entity(
        self,
        entity: Optional[FactEntity],
        sink: Optional[DiagnosticSink] = None,
    ) -> Optional[FactRecord]:
        """
        Convert a stored FactEntity into a FactRecord.

        Raises:
            ObjectLookupError: If a bound Object no longer exists
        """
        if entity is None:
            return None

        record = FactRecord(
            id=entity.id,
            type_id=entity.type_id,
            value=entity.value,
            in_reference_to_id=entity.in_reference_to_id,
            organization_id=entity.organization_id,
            origin_id=entity.origin_id,
            added_by_id=entity.added_by_id,
            access_mode=entity.access_mode,
            confidence=entity.confidence,
            trust=entity.trust,
            timestamp=entity.timestamp,
            last_seen_timestamp=entity.last_seen_timestamp,
        )

        endpoints = resolve(entity.id, entity.bindings, self._lookup_object, sink or self.sink)
        record.source_object = endpoints.source
        record.destination_object = endpoints.destination
        record.bidirectional_binding = endpoints.bidirectional

        self._populate_flags(record)
        self._populate_acl(record)
        self._populate_comments(record)

        return record

    def _lookup_object(self, object_id: UUID) -> Optional[ObjectRecord]:
        return object_record_from_entity(self.object_manager.get_object(object_id))

    def _populate_flags(self, record: FactRecord) -> None:
        # Retraction is only tracked in the search index
        document = self.fact_search_manager.get_fact(record.id)
        if document is not None and document.retracted:
            record.add_flag(Flag.RETRACTED_HINT)

    def _populate_acl(self, record: FactRecord) -> None:
        for entity in self.fact_manager.fetch_fact_acl(record.id):
            record.add_acl_entry(acl_entry_from_entity(entity))

    def _populate_comments(self, record: FactRecord) -> None:
        for entity in self.fact_manager.fetch_fact_comments(record.id):
            record.add_comment(comment_from_entity(entity))

    # -------------------------------------------------------------------------
    # record -> entity / document / criteria
    # -------------------------------------------------------------------------

    @staticmethod
    def endpoints(record: FactRecord) -> ResolvedEndpoints:
        return endpoints_of(
            record.source_object,
            record.destination_object,
            record.bidirectional_binding,
        )

    def to_entity(self, record: Optional[FactRecord]) -> Optional[FactEntity]:
        """Convert a FactRecord into its storable FactEntity."""
        if record is None:
            return None

        entity = FactEntity(
            id=record.id,
            type_id=record.type_id,
            value=record.value,
            in_reference_to_id=record.in_reference_to_id,
            organization_id=record.organization_id,
            origin_id=record.origin_id,
            added_by_id=record.added_by_id,
            access_mode=record.access_mode,
            confidence=record.confidence,
            trust=record.trust,
            timestamp=record.timestamp,
            last_seen_timestamp=record.last_seen_timestamp,
        )

        for binding in derive_bindings(self.endpoints(record)):
            entity.add_binding(binding)

        return entity

    def to_document(self, record: Optional[FactRecord]) -> Optional[FactDocument]:
        """Convert a FactRecord into the document indexed for search."""
        if record is None:
            return None

        document = FactDocument(
            id=record.id,
            type_id=record.type_id,
            value=record.value,
            in_reference_to=record.in_reference_to_id,
            organization_id=record.organization_id,
            origin_id=record.origin_id,
            added_by_id=record.added_by_id,
            access_mode=record.access_mode,
            confidence=record.confidence,
            trust=record.trust,
            timestamp=record.timestamp,
            last_seen_timestamp=record.last_seen_timestamp,
            retracted=record.is_retracted(),
            acl={entry.subject_id for entry in record.acl},
        )

        for obj, direction in derive_object_directions(self.endpoints(record)):
            document.add_object(ObjectDocument(
                id=obj.id,
                type_id=obj.type_id,
                value=obj.value,
                direction=direction,
            ))

        return document

    def to_criteria(self, record: Optional[FactRecord]) -> Optional[FactExistenceSearchCriteria]:
        """
        Convert a FactRecord into existence search criteria.

        Raises:
            CriteriaValidationError: If a required field is missing
        """
        if record is None:
            return None

        objects = tuple(
            (obj.id, direction.value)
            for obj, direction in derive_object_directions(self.endpoints(record))
        )

        return FactExistenceSearchCriteria(
            fact_value=record.value,
            fact_type_id=record.type_id,
            origin_id=record.origin_id,
            organization_id=record.organization_id,
            access_mode=record.access_mode.value if record.access_mode else None,
            confidence=record.confidence,
            in_reference_to=record.in_reference_to_id,
            objects=objects,
        )


# =============================================================================
# BATCH CONVERSION
# =============================================================================

@dataclass(frozen=True)
class ConversionFailure:
    """A Fact that could not be converted."""
    fact_id: UUID
    reason: str


@dataclass
class BatchConversionResult:
    """Result of converting multiple FactEntities."""
    total: int
    records: list[FactRecord] = field(default_factory=list)
    failures: list[ConversionFailure] = field(default_factory=list)
    corrupt: list[BindingDiagnostic] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.failures and not self.corrupt


def convert_entities(
    converter: FactRecordConverter,
    entities: Iterable[FactEntity],
) -> BatchConversionResult:
    """
    Convert a batch of stored Facts.

    Each Fact is processed independently. Corrupt bindings still yield a
    record (without Objects); missing Objects yield a failure entry.
    None entries are skipped and not counted.
    """
    entities = [entity for entity in entities if entity is not None]
    result = BatchConversionResult(total=len(entities))

    def collect(diagnostic: BindingDiagnostic) -> None:
        converter.sink(diagnostic)
        result.corrupt.append(diagnostic)

    for entity in entities:
        try:
            result.records.append(converter.from_entity(entity, sink=collect))
        except ObjectLookupError as e:
            logger.warning("Skipping Fact %s: %s", entity.id, e)
            result.failures.append(ConversionFailure(fact_id=entity.id, reason=str(e)))

    return result
