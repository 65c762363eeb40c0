"""
Repository contracts.

Each abstract class here holds the validation and change-detection flow for
one entity; ``travelogue.infra.orm_repositories`` and
``travelogue.infra.sql_repositories`` supply the storage primitives.
"""

from .audit import AuditLogStore
from .base import OrderedEntityRepository, SiblingStore
from .collections import AssetLinkRepository, CollectionRepository
from .locations import LocationRepository
from .years import YearRepository

__all__ = [
    "AssetLinkRepository",
    "AuditLogStore",
    "CollectionRepository",
    "LocationRepository",
    "OrderedEntityRepository",
    "SiblingStore",
    "YearRepository",
]
