"""
Shared types and enums for Travelogue.

This module contains common types and enums that are used across
the domain, repositories, API, CLI, and other layers.
"""

from __future__ import annotations

from enum import Enum


class PublishStatus(str, Enum):
    """Publication status shared by years and collections."""

    DRAFT = "draft"
    PUBLISHED = "published"


class EntityType(str, Enum):
    """Entity types that can be mutated and audited."""

    YEAR = "year"
    LOCATION = "location"
    COLLECTION = "collection"
    COLLECTION_ASSET = "collection_asset"


class AuditAction(str, Enum):
    """Actions recorded in the audit log."""

    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    SORT = "sort"
    REVALIDATE = "revalidate"


class ActorType(str, Enum):
    """Who performed a mutation."""

    SYSTEM = "system"
    USER = "user"


class BackendKind(str, Enum):
    """Storage backends the catalog can run against."""

    ORM = "orm"
    DIRECT_SQL = "direct_sql"


class MoveDirection(str, Enum):
    """Manual single-step moves within a sibling set."""

    UP = "up"
    DOWN = "down"
