"""
In-memory collaborators.

Plain dict-backed stand-ins for the storage and search layers, used by the
CLI and the tests. Not thread-safe.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from ..domain import (
    FactAclEntity,
    FactCommentEntity,
    FactDocument,
    FactEntity,
    ObjectEntity,
)


class InMemoryObjectManager:
    """Objects keyed by id."""

    def __init__(self, objects: Optional[list[ObjectEntity]] = None):
        self._objects: dict[UUID, ObjectEntity] = {}
        for entity in objects or []:
            self.save_object(entity)

    def save_object(self, entity: ObjectEntity) -> ObjectEntity:
        self._objects[entity.id] = entity
        return entity

    def get_object(self, object_id: UUID) -> Optional[ObjectEntity]:
        return self._objects.get(object_id)


class InMemoryFactManager:
    """Facts plus their ACL entries and comments."""

    def __init__(self):
        self._facts: dict[UUID, FactEntity] = {}
        self._acl: dict[UUID, list[FactAclEntity]] = {}
        self._comments: dict[UUID, list[FactCommentEntity]] = {}

    def save_fact(self, entity: FactEntity) -> FactEntity:
        self._facts[entity.id] = entity
        return entity

    def get_fact(self, fact_id: UUID) -> Optional[FactEntity]:
        return self._facts.get(fact_id)

    def list_facts(self) -> list[FactEntity]:
        return list(self._facts.values())

    def save_fact_acl_entry(self, entity: FactAclEntity) -> FactAclEntity:
        self._acl.setdefault(entity.fact_id, []).append(entity)
        return entity

    def fetch_fact_acl(self, fact_id: UUID) -> list[FactAclEntity]:
        return list(self._acl.get(fact_id, []))

    def save_fact_comment(self, entity: FactCommentEntity) -> FactCommentEntity:
        self._comments.setdefault(entity.fact_id, []).append(entity)
        return entity

    def fetch_fact_comments(self, fact_id: UUID) -> list[FactCommentEntity]:
        return list(self._comments.get(fact_id, []))


class InMemoryFactSearchManager:
    """Indexed FactDocuments keyed by Fact id."""

    def __init__(self):
        self._documents: dict[UUID, FactDocument] = {}

    def index_fact(self, document: FactDocument) -> FactDocument:
        self._documents[document.id] = document
        return document

    def get_fact(self, fact_id: UUID) -> Optional[FactDocument]:
        return self._documents.get(fact_id)
