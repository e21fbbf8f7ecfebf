"""Application services - relation synchronization and catalog orchestration."""

from musiclt.application.services.artist_service import ArtistService
from musiclt.application.services.catalog_service import CatalogService
from musiclt.application.services.news_service import NewsService

# Hey future me - RelationSynchronizer is the pure core. ArtistService wraps it in a
# unit of work; nothing else should call reconcile() on persisted data directly.
from musiclt.application.services.relation_synchronizer import (
    MEMBERS,
    MEMBERSHIPS,
    RELATED,
    RelationSynchronizer,
    RelationViolation,
    ViolationReason,
)

__all__ = [
    "MEMBERS",
    "MEMBERSHIPS",
    "RELATED",
    "ArtistService",
    "CatalogService",
    "NewsService",
    "RelationSynchronizer",
    "RelationViolation",
    "ViolationReason",
]
