"""
Collaborator interfaces used by the Fact converters.

The real implementations live in the storage and search layers. Anything
with matching methods can be passed in.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol
from uuid import UUID

from ..domain import (
    FactAclEntity,
    FactCommentEntity,
    FactDocument,
    ObjectEntity,
)


class ObjectManager(Protocol):
    def get_object(self, object_id: UUID) -> Optional[ObjectEntity]:
        ...


class FactManager(Protocol):
    def fetch_fact_acl(self, fact_id: UUID) -> Iterable[FactAclEntity]:
        ...

    def fetch_fact_comments(self, fact_id: UUID) -> Iterable[FactCommentEntity]:
        ...


class FactSearchManager(Protocol):
    def get_fact(self, fact_id: UUID) -> Optional[FactDocument]:
        ...
