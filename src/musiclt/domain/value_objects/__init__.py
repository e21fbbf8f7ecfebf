"""Domain value objects."""

import uuid
from dataclasses import dataclass

from musiclt.domain.value_objects.slug import slugify, strip_featuring


# Hey future me - ids are opaque strings (UUID4 for rows we create). We never parse them
# as UUIDs on the way in, because imported catalog rows and test fixtures use short ids
# like "g1". Only emptiness is rejected.
@dataclass(frozen=True)
class EntityId:
    """Opaque identifier of a catalog entity."""

    value: str

    def __post_init__(self) -> None:
        """Validate id."""
        if not self.value or not str(self.value).strip():
            raise ValueError("Entity id cannot be empty")

    @classmethod
    def generate(cls) -> "EntityId":
        """Generate a new random id."""
        return cls(str(uuid.uuid4()))

    @classmethod
    def from_string(cls, value: str) -> "EntityId":
        """Create id from its string form."""
        return cls(value.strip())

    def __str__(self) -> str:
        return self.value


class ArtistId(EntityId):
    """Artist identifier."""


class AlbumId(EntityId):
    """Album identifier."""


class TrackId(EntityId):
    """Track identifier."""


class NewsId(EntityId):
    """News item identifier."""


__all__ = [
    "AlbumId",
    "ArtistId",
    "EntityId",
    "NewsId",
    "TrackId",
    "slugify",
    "strip_featuring",
]
