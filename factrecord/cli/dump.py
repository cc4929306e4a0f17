"""
Loader for JSON dumps of stored Facts.

Dump layout:
    {
        "objects":   [{"id", "type_id", "value"}],
        "facts":     [{"id", "type_id", "value", ..., "bindings": [{"object_id", "direction"}]}],
        "acl":       [{"id", "fact_id", "subject_id", "origin_id", "timestamp"}],
        "comments":  [{"id", "fact_id", "comment", "reply_to_id", "origin_id", "timestamp"}],
        "retracted": ["<fact id>", ...]
    }

Only "facts" is required. Directions and access modes use their wire
names (e.g. "FactIsDestination", "RoleBased").
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from ..domain import (
    AccessMode,
    Binding,
    Direction,
    FactAclEntity,
    FactCommentEntity,
    FactDocument,
    FactEntity,
    ObjectEntity,
)
from ..storage.memory import (
    InMemoryFactManager,
    InMemoryFactSearchManager,
    InMemoryObjectManager,
)


class DumpFormatError(Exception):
    """Raised when a dump cannot be parsed."""
    pass


@dataclass
class LoadedDump:
    """In-memory stores populated from a dump."""
    object_manager: InMemoryObjectManager
    fact_manager: InMemoryFactManager
    fact_search_manager: InMemoryFactSearchManager


def _uuid(value: Any, where: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        raise DumpFormatError(f"Invalid id in {where}: {value!r}")


def _optional_uuid(value: Any, where: str) -> Optional[UUID]:
    if value is None:
        return None
    return _uuid(value, where)


def _required(item: dict, key: str, where: str) -> Any:
    if key not in item:
        raise DumpFormatError(f"Missing '{key}' in {where}")
    return item[key]


def _number(value: Any, kind: type, where: str):
    """Coerce a JSON value to int or float."""
    try:
        return kind(value)
    except (ValueError, TypeError):
        raise DumpFormatError(f"Invalid {kind.__name__} in {where}: {value!r}")


def _list(container: dict, key: str, where: str, required: bool = False, of_objects: bool = True) -> list:
    """Fetch a list field, checking its shape."""
    value = _required(container, key, where) if required else container.get(key, [])
    if not isinstance(value, list):
        raise DumpFormatError(f"'{key}' in {where} must be a list")
    if of_objects and not all(isinstance(item, dict) for item in value):
        raise DumpFormatError(f"Entries of '{key}' in {where} must be objects")
    return value


def _parse_binding(item: dict, where: str) -> Binding:
    direction = _required(item, "direction", where)
    try:
        direction = Direction(direction)
    except ValueError:
        raise DumpFormatError(f"Invalid direction in {where}: {direction!r}")
    return Binding(
        object_id=_uuid(_required(item, "object_id", where), where),
        direction=direction,
    )


def _parse_fact(item: dict) -> FactEntity:
    fact_id = _uuid(_required(item, "id", "fact"), "fact")
    where = f"fact {fact_id}"

    access_mode = item.get("access_mode")
    if access_mode is not None:
        try:
            access_mode = AccessMode(access_mode)
        except ValueError:
            raise DumpFormatError(f"Invalid access_mode in {where}: {access_mode!r}")

    entity = FactEntity(
        id=fact_id,
        type_id=_optional_uuid(item.get("type_id"), where),
        value=item.get("value"),
        in_reference_to_id=_optional_uuid(item.get("in_reference_to_id"), where),
        organization_id=_optional_uuid(item.get("organization_id"), where),
        origin_id=_optional_uuid(item.get("origin_id"), where),
        added_by_id=_optional_uuid(item.get("added_by_id"), where),
        access_mode=access_mode,
        confidence=_number(item.get("confidence", 0.0), float, where),
        trust=_number(item.get("trust", 0.0), float, where),
        timestamp=_number(item.get("timestamp", 0), int, where),
        last_seen_timestamp=_number(item.get("last_seen_timestamp", 0), int, where),
    )
    for binding in _list(item, "bindings", where):
        entity.add_binding(_parse_binding(binding, f"binding of {where}"))
    return entity


def parse_dump(data: dict) -> LoadedDump:
    """Populate in-memory stores from an already decoded dump."""
    if not isinstance(data, dict):
        raise DumpFormatError("Dump must be a JSON object")

    objects = InMemoryObjectManager()
    facts = InMemoryFactManager()
    search = InMemoryFactSearchManager()

    for item in _list(data, "objects", "dump"):
        where = "object"
        objects.save_object(ObjectEntity(
            id=_uuid(_required(item, "id", where), where),
            type_id=_optional_uuid(item.get("type_id"), where),
            value=item.get("value"),
        ))

    for item in _list(data, "facts", "dump", required=True):
        facts.save_fact(_parse_fact(item))

    for item in _list(data, "acl", "dump"):
        where = "acl entry"
        facts.save_fact_acl_entry(FactAclEntity(
            id=_uuid(_required(item, "id", where), where),
            fact_id=_uuid(_required(item, "fact_id", where), where),
            subject_id=_uuid(_required(item, "subject_id", where), where),
            origin_id=_optional_uuid(item.get("origin_id"), where),
            timestamp=_number(item.get("timestamp", 0), int, where),
        ))

    for item in _list(data, "comments", "dump"):
        where = "comment"
        facts.save_fact_comment(FactCommentEntity(
            id=_uuid(_required(item, "id", where), where),
            fact_id=_uuid(_required(item, "fact_id", where), where),
            comment=_required(item, "comment", where),
            reply_to_id=_optional_uuid(item.get("reply_to_id"), where),
            origin_id=_optional_uuid(item.get("origin_id"), where),
            timestamp=_number(item.get("timestamp", 0), int, where),
        ))

    for fact_id in _list(data, "retracted", "dump", of_objects=False):
        search.index_fact(FactDocument(id=_uuid(fact_id, "retracted"), retracted=True))

    return LoadedDump(
        object_manager=objects,
        fact_manager=facts,
        fact_search_manager=search,
    )


def load_dump(path: str) -> LoadedDump:
    """Read and parse a dump file."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as e:
        raise DumpFormatError(f"Dump is not valid JSON: {e}")
    except UnicodeDecodeError as e:
        raise DumpFormatError(f"Dump is not valid UTF-8: {e}")
    return parse_dump(data)
