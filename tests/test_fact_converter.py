"""
Tests for the Fact record converter.

These tests verify:
1. Scalar fields are copied between entity, record, document and criteria
2. Object bindings go through the resolver in both directions
3. Retraction, ACL and comments are pulled in from their own stores
4. Batch conversion continues past corrupt and unresolvable Facts
"""

import uuid

import pytest

from factrecord.conversion.converters import (
    acl_entry_from_entity,
    comment_from_entity,
    object_record_from_entity,
)
from factrecord.conversion.fact_converter import (
    FactRecordConverter,
    convert_entities,
)
from factrecord.domain import (
    AccessMode,
    Binding,
    CriteriaValidationError,
    Direction,
    FactAclEntity,
    FactAclEntryRecord,
    FactCommentEntity,
    FactDocument,
    FactEntity,
    FactRecord,
    Flag,
    ObjectEntity,
    ObjectRecord,
)
from factrecord.resolution.binding_resolver import (
    BindingProblem,
    ObjectLookupError,
)
from factrecord.storage.memory import (
    InMemoryFactManager,
    InMemoryFactSearchManager,
    InMemoryObjectManager,
)


# =============================================================================
# TEST FIXTURES
# =============================================================================

def make_object_entity(value: str) -> ObjectEntity:
    return ObjectEntity(id=uuid.uuid4(), type_id=uuid.uuid4(), value=value)


def make_fact_entity(*bindings: Binding) -> FactEntity:
    return FactEntity(
        id=uuid.uuid4(),
        type_id=uuid.uuid4(),
        value="resolvesTo",
        in_reference_to_id=uuid.uuid4(),
        organization_id=uuid.uuid4(),
        origin_id=uuid.uuid4(),
        added_by_id=uuid.uuid4(),
        access_mode=AccessMode.ROLE_BASED,
        confidence=0.5,
        trust=0.8,
        timestamp=123456789,
        last_seen_timestamp=987654321,
        bindings=list(bindings),
    )


def make_record(**kwargs) -> FactRecord:
    defaults = dict(
        id=uuid.uuid4(),
        type_id=uuid.uuid4(),
        value="resolvesTo",
        in_reference_to_id=uuid.uuid4(),
        organization_id=uuid.uuid4(),
        origin_id=uuid.uuid4(),
        added_by_id=uuid.uuid4(),
        access_mode=AccessMode.EXPLICIT,
        confidence=0.3,
        trust=0.7,
        timestamp=111,
        last_seen_timestamp=222,
    )
    defaults.update(kwargs)
    return FactRecord(**defaults)


def as_record(entity: ObjectEntity) -> ObjectRecord:
    return object_record_from_entity(entity)


class Stores:
    def __init__(self):
        self.objects = InMemoryObjectManager()
        self.facts = InMemoryFactManager()
        self.search = InMemoryFactSearchManager()
        self.diagnostics = []
        self.converter = FactRecordConverter(
            self.objects,
            self.facts,
            self.search,
            sink=self.diagnostics.append,
        )


@pytest.fixture
def stores():
    return Stores()


@pytest.fixture
def source(stores):
    return stores.objects.save_object(make_object_entity("evil.example.org"))


@pytest.fixture
def destination(stores):
    return stores.objects.save_object(make_object_entity("192.0.2.1"))


# =============================================================================
# ENTITY -> RECORD
# =============================================================================

class TestFromEntity:
    """Stored Facts are reconciled into records."""

    def test_none(self, stores):
        assert stores.converter.from_entity(None) is None

    def test_copies_fields(self, stores):
        entity = make_fact_entity()
        record = stores.converter.from_entity(entity)

        assert record.id == entity.id
        assert record.type_id == entity.type_id
        assert record.value == entity.value
        assert record.in_reference_to_id == entity.in_reference_to_id
        assert record.organization_id == entity.organization_id
        assert record.origin_id == entity.origin_id
        assert record.added_by_id == entity.added_by_id
        assert record.access_mode == entity.access_mode
        assert record.confidence == entity.confidence
        assert record.trust == entity.trust
        assert record.timestamp == entity.timestamp
        assert record.last_seen_timestamp == entity.last_seen_timestamp

    def test_no_bindings(self, stores):
        record = stores.converter.from_entity(make_fact_entity())

        assert record.source_object is None
        assert record.destination_object is None
        assert record.bidirectional_binding is False

    def test_source_and_destination(self, stores, source, destination):
        entity = make_fact_entity(
            Binding(destination.id, Direction.FACT_IS_SOURCE),
            Binding(source.id, Direction.FACT_IS_DESTINATION),
        )
        record = stores.converter.from_entity(entity)

        assert record.source_object == as_record(source)
        assert record.destination_object == as_record(destination)
        assert record.bidirectional_binding is False

    def test_single_bidirectional(self, stores, source):
        entity = make_fact_entity(Binding(source.id, Direction.BI_DIRECTIONAL))
        record = stores.converter.from_entity(entity)

        assert record.source_object == as_record(source)
        assert record.destination_object == as_record(source)
        assert record.bidirectional_binding is True

    def test_corrupt_bindings_keep_record(self, stores, source, destination):
        entity = make_fact_entity(
            Binding(source.id, Direction.FACT_IS_SOURCE),
            Binding(destination.id, Direction.FACT_IS_SOURCE),
        )
        record = stores.converter.from_entity(entity)

        assert record.id == entity.id
        assert record.source_object is None
        assert record.destination_object is None
        assert len(stores.diagnostics) == 1
        assert stores.diagnostics[0].fact_id == entity.id

    def test_missing_object_raises(self, stores):
        entity = make_fact_entity(Binding(uuid.uuid4(), Direction.FACT_IS_SOURCE))
        with pytest.raises(ObjectLookupError):
            stores.converter.from_entity(entity)

    def test_retracted_flag_from_search_index(self, stores):
        entity = make_fact_entity()
        stores.search.index_fact(FactDocument(id=entity.id, retracted=True))

        record = stores.converter.from_entity(entity)
        assert Flag.RETRACTED_HINT in record.flags

    def test_not_retracted(self, stores):
        entity = make_fact_entity()
        stores.search.index_fact(FactDocument(id=entity.id, retracted=False))

        assert stores.converter.from_entity(entity).flags == set()

    def test_acl_and_comments(self, stores):
        entity = make_fact_entity()
        acl = stores.facts.save_fact_acl_entry(FactAclEntity(
            id=uuid.uuid4(), fact_id=entity.id, subject_id=uuid.uuid4(),
            origin_id=uuid.uuid4(), timestamp=5,
        ))
        comment = stores.facts.save_fact_comment(FactCommentEntity(
            id=uuid.uuid4(), fact_id=entity.id, comment="Hello World!",
            reply_to_id=uuid.uuid4(), origin_id=uuid.uuid4(), timestamp=6,
        ))

        record = stores.converter.from_entity(entity)

        assert record.acl == [acl_entry_from_entity(acl)]
        assert record.comments == [comment_from_entity(comment)]
        assert record.comments[0].comment == "Hello World!"


# =============================================================================
# RECORD -> ENTITY
# =============================================================================

class TestToEntity:
    """Records are turned back into stored Facts."""

    def test_none(self, stores):
        assert stores.converter.to_entity(None) is None

    def test_copies_fields(self, stores):
        record = make_record()
        entity = stores.converter.to_entity(record)

        assert entity.id == record.id
        assert entity.type_id == record.type_id
        assert entity.value == record.value
        assert entity.in_reference_to_id == record.in_reference_to_id
        assert entity.organization_id == record.organization_id
        assert entity.origin_id == record.origin_id
        assert entity.added_by_id == record.added_by_id
        assert entity.access_mode == record.access_mode
        assert entity.confidence == record.confidence
        assert entity.trust == record.trust
        assert entity.timestamp == record.timestamp
        assert entity.last_seen_timestamp == record.last_seen_timestamp
        assert entity.bindings == []

    def test_source_only(self, stores, source):
        record = make_record(source_object=as_record(source))
        entity = stores.converter.to_entity(record)

        assert entity.bindings == [Binding(source.id, Direction.FACT_IS_DESTINATION)]

    def test_destination_only(self, stores, destination):
        record = make_record(destination_object=as_record(destination))
        entity = stores.converter.to_entity(record)

        assert entity.bindings == [Binding(destination.id, Direction.FACT_IS_SOURCE)]

    def test_bidirectional(self, stores, source, destination):
        record = make_record(
            source_object=as_record(source),
            destination_object=as_record(destination),
            bidirectional_binding=True,
        )
        entity = stores.converter.to_entity(record)

        assert entity.bindings == [
            Binding(source.id, Direction.BI_DIRECTIONAL),
            Binding(destination.id, Direction.BI_DIRECTIONAL),
        ]

    def test_round_trip_through_storage(self, stores, source, destination):
        entity = make_fact_entity(
            Binding(source.id, Direction.BI_DIRECTIONAL),
            Binding(destination.id, Direction.BI_DIRECTIONAL),
        )
        record = stores.converter.from_entity(entity)

        assert stores.converter.to_entity(record) == entity

    def test_same_object_bidirectional_pair_collapses(self, stores, source):
        entity = make_fact_entity(
            Binding(source.id, Direction.BI_DIRECTIONAL),
            Binding(source.id, Direction.BI_DIRECTIONAL),
        )
        record = stores.converter.from_entity(entity)
        stored = stores.converter.to_entity(record)

        assert stored.bindings == [Binding(source.id, Direction.BI_DIRECTIONAL)]
        assert stores.converter.from_entity(stored).source_object == record.source_object
        assert stores.converter.from_entity(stored).bidirectional_binding is True

    def test_single_bidirectional_round_trip(self, stores, source):
        entity = make_fact_entity(Binding(source.id, Direction.BI_DIRECTIONAL))
        record = stores.converter.from_entity(entity)

        assert stores.converter.to_entity(record).bindings == entity.bindings


# =============================================================================
# RECORD -> DOCUMENT / CRITERIA
# =============================================================================

class TestToDocument:
    """Records are indexed for search."""

    def test_none(self, stores):
        assert stores.converter.to_document(None) is None

    def test_copies_fields(self, stores):
        subject = uuid.uuid4()
        record = make_record()
        record.add_acl_entry(FactAclEntryRecord(id=uuid.uuid4(), subject_id=subject))
        record.add_flag(Flag.RETRACTED_HINT)

        document = stores.converter.to_document(record)

        assert document.id == record.id
        assert document.type_id == record.type_id
        assert document.value == record.value
        assert document.in_reference_to == record.in_reference_to_id
        assert document.organization_id == record.organization_id
        assert document.origin_id == record.origin_id
        assert document.added_by_id == record.added_by_id
        assert document.access_mode == record.access_mode
        assert document.confidence == record.confidence
        assert document.trust == record.trust
        assert document.timestamp == record.timestamp
        assert document.last_seen_timestamp == record.last_seen_timestamp
        assert document.retracted is True
        assert document.acl == {subject}

    def test_objects_with_directions(self, stores, source, destination):
        record = make_record(
            source_object=as_record(source),
            destination_object=as_record(destination),
        )
        document = stores.converter.to_document(record)

        assert [(o.id, o.direction) for o in document.objects] == [
            (source.id, Direction.FACT_IS_DESTINATION),
            (destination.id, Direction.FACT_IS_SOURCE),
        ]
        assert document.objects[0].value == source.value
        assert document.objects[0].type_id == source.type_id

    def test_bidirectional_objects(self, stores, source):
        record = make_record(source_object=as_record(source), bidirectional_binding=True)
        document = stores.converter.to_document(record)

        assert [(o.id, o.direction) for o in document.objects] == [
            (source.id, Direction.BI_DIRECTIONAL),
        ]


class TestToCriteria:
    """Records are turned into existence search criteria."""

    def test_none(self, stores):
        assert stores.converter.to_criteria(None) is None

    def test_copies_fields(self, stores, source, destination):
        record = make_record(
            source_object=as_record(source),
            destination_object=as_record(destination),
        )
        criteria = stores.converter.to_criteria(record)

        assert criteria.fact_value == record.value
        assert criteria.fact_type_id == record.type_id
        assert criteria.origin_id == record.origin_id
        assert criteria.organization_id == record.organization_id
        assert criteria.access_mode == "Explicit"
        assert criteria.confidence == record.confidence
        assert criteria.in_reference_to == record.in_reference_to_id
        assert criteria.objects == (
            (source.id, "FactIsDestination"),
            (destination.id, "FactIsSource"),
        )

    def test_bidirectional_objects(self, stores, source, destination):
        record = make_record(
            source_object=as_record(source),
            destination_object=as_record(destination),
            bidirectional_binding=True,
        )
        criteria = stores.converter.to_criteria(record)

        assert criteria.objects == (
            (source.id, "BiDirectional"),
            (destination.id, "BiDirectional"),
        )

    def test_missing_access_mode_rejected(self, stores):
        with pytest.raises(CriteriaValidationError) as exc_info:
            stores.converter.to_criteria(make_record(access_mode=None))
        assert exc_info.value.field_name == "access_mode"

    def test_missing_type_rejected(self, stores):
        with pytest.raises(CriteriaValidationError):
            stores.converter.to_criteria(make_record(type_id=None))


# =============================================================================
# BATCH CONVERSION
# =============================================================================

class TestBatchConversion:
    """One bad Fact never aborts the batch."""

    def test_clean_batch(self, stores, source, destination):
        entities = [
            make_fact_entity(),
            make_fact_entity(Binding(source.id, Direction.FACT_IS_DESTINATION)),
            make_fact_entity(
                Binding(source.id, Direction.BI_DIRECTIONAL),
                Binding(destination.id, Direction.BI_DIRECTIONAL),
            ),
        ]
        result = convert_entities(stores.converter, entities)

        assert result.total == 3
        assert len(result.records) == 3
        assert result.failures == []
        assert result.corrupt == []
        assert result.is_clean

    def test_continues_past_failures(self, stores, source, destination):
        corrupt = make_fact_entity(
            Binding(source.id, Direction.FACT_IS_DESTINATION),
            Binding(destination.id, Direction.FACT_IS_DESTINATION),
        )
        dangling = make_fact_entity(Binding(uuid.uuid4(), Direction.FACT_IS_SOURCE))
        too_many = make_fact_entity(*[Binding(source.id, Direction.BI_DIRECTIONAL)] * 3)
        good = make_fact_entity(Binding(destination.id, Direction.FACT_IS_SOURCE))

        result = convert_entities(stores.converter, [corrupt, dangling, too_many, good])

        assert result.total == 4
        assert [r.id for r in result.records] == [corrupt.id, too_many.id, good.id]
        assert [f.fact_id for f in result.failures] == [dangling.id]
        assert [d.problem for d in result.corrupt] == [
            BindingProblem.SAME_DIRECTION,
            BindingProblem.TOO_MANY_BINDINGS,
        ]
        assert not result.is_clean

    def test_skips_missing_entities(self, stores, source):
        good = make_fact_entity(Binding(source.id, Direction.FACT_IS_DESTINATION))
        result = convert_entities(stores.converter, [None, good, None])

        assert result.total == 1
        assert [r.id for r in result.records] == [good.id]
        assert None not in result.records
        assert result.is_clean

    def test_forwards_diagnostics_to_converter_sink(self, stores, source, destination):
        corrupt = make_fact_entity(
            Binding(source.id, Direction.FACT_IS_SOURCE),
            Binding(destination.id, Direction.FACT_IS_SOURCE),
        )
        convert_entities(stores.converter, [corrupt])

        assert len(stores.diagnostics) == 1
