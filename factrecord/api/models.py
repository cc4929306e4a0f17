"""
API-facing models.

These are what callers of the service see. They reference Objects and
Origins by small info objects instead of raw ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class Origin:
    id: UUID
    name: Optional[str] = None


@dataclass(frozen=True)
class ObjectInfo:
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class FactComment:
    id: Optional[UUID] = None
    reply_to: Optional[UUID] = None
    origin: Optional[Origin] = None
    comment: Optional[str] = None
    timestamp: Optional[int] = None


@dataclass(frozen=True)
class Fact:
    id: UUID
    type_id: Optional[UUID] = None
    value: Optional[str] = None
    in_reference_to: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    origin: Optional[Origin] = None
    access_mode: Optional[str] = None
    confidence: float = 0.0
    trust: float = 0.0
    timestamp: Optional[int] = None
    last_seen_timestamp: Optional[int] = None
    source_object: Optional[ObjectInfo] = None
    destination_object: Optional[ObjectInfo] = None
    bidirectional_binding: bool = False
    flags: frozenset[str] = field(default_factory=frozenset)
