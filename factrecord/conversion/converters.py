"""
Entity to record converters for the records attached to a Fact.

All converters return None for None input so they can be chained onto
lookups that may come back empty.
"""

from __future__ import annotations

from typing import Optional

from ..domain import (
    FactAclEntity,
    FactAclEntryRecord,
    FactCommentEntity,
    FactCommentRecord,
    ObjectEntity,
    ObjectRecord,
)


def object_record_from_entity(entity: Optional[ObjectEntity]) -> Optional[ObjectRecord]:
    if entity is None:
        return None
    return ObjectRecord(
        id=entity.id,
        type_id=entity.type_id,
        value=entity.value,
    )


def acl_entry_from_entity(entity: Optional[FactAclEntity]) -> Optional[FactAclEntryRecord]:
    if entity is None:
        return None
    return FactAclEntryRecord(
        id=entity.id,
        subject_id=entity.subject_id,
        origin_id=entity.origin_id,
        timestamp=entity.timestamp,
    )


def comment_from_entity(entity: Optional[FactCommentEntity]) -> Optional[FactCommentRecord]:
    if entity is None:
        return None
    return FactCommentRecord(
        id=entity.id,
        reply_to_id=entity.reply_to_id,
        origin_id=entity.origin_id,
        comment=entity.comment,
        timestamp=entity.timestamp,
    )
