"""
FactRecord to API model converters.

Origins are resolved through an injected callable so the converters stay
independent of how Origins are stored. A converter instance is itself
callable: converter(record) -> model.
"""

from __future__ import annotations

from typing import Callable, Optional
from uuid import UUID

from ..domain import FactCommentRecord, FactRecord, ObjectRecord
from .models import Fact, FactComment, ObjectInfo, Origin

OriginConverter = Callable[[UUID], Optional[Origin]]


def _origin(origin_converter: OriginConverter, origin_id: Optional[UUID]) -> Optional[Origin]:
    if origin_id is None:
        return None
    return origin_converter(origin_id)


def object_info(record: Optional[ObjectRecord]) -> Optional[ObjectInfo]:
    if record is None:
        return None
    return ObjectInfo(id=record.id, type_id=record.type_id, value=record.value)


class FactCommentConverter:
    """Converts FactCommentRecords into FactComment models."""

    def __init__(self, origin_converter: OriginConverter):
        self.origin_converter = origin_converter

    def __call__(self, record: Optional[FactCommentRecord]) -> Optional[FactComment]:
        if record is None:
            return None
        return FactComment(
            id=record.id,
            reply_to=record.reply_to_id,
            origin=_origin(self.origin_converter, record.origin_id),
            comment=record.comment,
            timestamp=record.timestamp,
        )


class FactConverter:
    """
    Converts FactRecords into Fact models.

    Source/destination are taken from the record as resolved; a
    bidirectional Fact keeps the source/destination order it was read in.
    """

    def __init__(self, origin_converter: OriginConverter):
        self.origin_converter = origin_converter

    def __call__(self, record: Optional[FactRecord]) -> Optional[Fact]:
        if record is None:
            return None
        return Fact(
            id=record.id,
            type_id=record.type_id,
            value=record.value,
            in_reference_to=record.in_reference_to_id,
            organization_id=record.organization_id,
            origin=_origin(self.origin_converter, record.origin_id),
            access_mode=record.access_mode.value if record.access_mode else None,
            confidence=record.confidence,
            trust=record.trust,
            timestamp=record.timestamp,
            last_seen_timestamp=record.last_seen_timestamp,
            source_object=object_info(record.source_object),
            destination_object=object_info(record.destination_object),
            bidirectional_binding=record.bidirectional_binding,
            flags=frozenset(flag.value for flag in record.flags),
        )
