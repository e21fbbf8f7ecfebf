"""Bidirectional artist relation synchronization.

Hey future me - this is the one place in the codebase where getting it wrong silently
corrupts data, so read this before touching it.

Every artist relation is stored TWICE, once on each side:
- solo.memberships  <->  group.members   (solo <-> group, with a year interval)
- a.related         <->  b.related       (any <-> any, with a year interval)

The admin form only ever edits ONE side (the artist being saved). The synchronizer takes
that side as authoritative and rewrites the other side to match:

1. Add/update phase - for every declared counterpart, patch our back-reference on it
   (interval + name) or append one if missing.
2. Prune phase - every artist of the counterpart kind that still holds a back-reference
   to us but is no longer declared loses it.

Prune MUST run after add/update and MUST use the declared ids as they came in.

Everything here is pure: no I/O, no exceptions, no mutation. Input records are never
touched; changed records are replaced by new ones (dataclasses.replace) and unchanged
records come back as the very same objects. Persisting the result atomically is the
caller's job (see ArtistService).
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from musiclt.domain.entities import Artist, ArtistKind, ArtistLink

logger = logging.getLogger(__name__)

MEMBERSHIPS = "memberships"
MEMBERS = "members"
RELATED = "related"


class ViolationReason(str, Enum):
    """Why a relation edge is inconsistent."""

    MISSING_BACK_REFERENCE = "missing_back_reference"
    INTERVAL_MISMATCH = "interval_mismatch"
    KIND_MISMATCH = "kind_mismatch"
    # a solo holding `members` or a group holding `memberships`
    WRONG_FIELD_FOR_KIND = "wrong_field_for_kind"


@dataclass(frozen=True)
class RelationViolation:
    """One broken edge found by an audit."""

    artist_id: str
    counterpart_id: str
    field: str
    reason: ViolationReason

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {
            "artist_id": self.artist_id,
            "counterpart_id": self.counterpart_id,
            "field": self.field,
            "reason": self.reason.value,
        }


# (declared field, back-reference field on the counterpart, required counterpart kind)
_MEMBERSHIP_EDGES: dict[ArtistKind, tuple[str, str, ArtistKind]] = {
    ArtistKind.SOLO: (MEMBERSHIPS, MEMBERS, ArtistKind.GROUP),
    ArtistKind.GROUP: (MEMBERS, MEMBERSHIPS, ArtistKind.SOLO),
}


class RelationSynchronizer:
    """Restores the bidirectional relation invariant after an artist edit."""

    def reconcile(self, entities: Sequence[Artist], edited: Artist) -> list[Artist]:
        """Upsert an edited artist and synchronize all of its relations.

        Args:
            entities: Current snapshot (the edited artist may or may not be in it)
            edited: The artist being saved, carrying its declared relation lists

        Returns:
            New snapshot; the edited artist is replaced in place or appended
        """
        snapshot = self._index(entities, edited)
        normalized = self._sync_memberships(snapshot, edited)
        normalized = self._sync_related(snapshot, normalized)
        snapshot[normalized.id.value] = normalized
        return list(snapshot.values())

    def reconcile_memberships(
        self, entities: Sequence[Artist], edited: Artist
    ) -> list[Artist]:
        """Synchronize only solo <-> group membership for the edited artist.

        A solo's `memberships` may only point at groups and a group's `members` only at
        solos. A declared link to an existing artist of the wrong kind is dropped from
        the edited artist and creates no back-reference. Links to unknown ids are kept
        untouched. Whatever sits in the list that does not fit the edited artist's kind
        (`members` on a solo, `memberships` on a group) is cleared and its
        back-references are pruned.
        """
        snapshot = self._index(entities, edited)
        normalized = self._sync_memberships(snapshot, edited)
        snapshot[normalized.id.value] = normalized
        return list(snapshot.values())

    def reconcile_related(
        self, entities: Sequence[Artist], edited: Artist
    ) -> list[Artist]:
        """Synchronize only the symmetric related-artist links."""
        snapshot = self._index(entities, edited)
        normalized = self._sync_related(snapshot, edited)
        snapshot[normalized.id.value] = normalized
        return list(snapshot.values())

    def detach(self, entities: Sequence[Artist], artist_id: str) -> list[Artist]:
        """Remove an artist and every back-reference pointing at it.

        This is the delete cascade: equivalent to saving the artist with no relations
        and then dropping its row.
        """
        result: list[Artist] = []
        for artist in entities:
            if artist.id.value == artist_id:
                continue
            if artist.references(artist_id):
                artist = replace(
                    artist,
                    memberships=_without(artist.memberships, artist_id),
                    members=_without(artist.members, artist_id),
                    related=_without(artist.related, artist_id),
                )
            result.append(artist)
        return result

    def find_violations(self, entities: Sequence[Artist]) -> list[RelationViolation]:
        """Audit the relation invariant over a full snapshot.

        Dangling references (counterpart not in the snapshot) are tolerated and not
        reported, except in the membership list that does not fit the artist's kind:
        every entry there is a violation whether or not its counterpart exists.
        """
        index = {artist.id.value: artist for artist in entities}
        violations: list[RelationViolation] = []

        for artist in entities:
            off_field = MEMBERS if artist.is_solo else MEMBERSHIPS
            violations.extend(
                RelationViolation(
                    artist_id=artist.id.value,
                    counterpart_id=link.artist_id,
                    field=off_field,
                    reason=ViolationReason.WRONG_FIELD_FOR_KIND,
                )
                for link in artist.links_for(off_field)
            )

            edges: list[tuple[str, str, ArtistKind | None]] = [
                _MEMBERSHIP_EDGES[artist.kind],
                (RELATED, RELATED, None),
            ]
            for declared_field, back_field, kind in edges:
                for link in artist.links_for(declared_field):
                    counterpart = index.get(link.artist_id)
                    if counterpart is None:
                        continue
                    reason = _check_edge(artist, link, counterpart, back_field, kind)
                    if reason is not None:
                        violations.append(
                            RelationViolation(
                                artist_id=artist.id.value,
                                counterpart_id=link.artist_id,
                                field=declared_field,
                                reason=reason,
                            )
                        )
        return violations

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _index(entities: Iterable[Artist], edited: Artist) -> dict[str, Artist]:
        # dict keeps insertion order, so the returned snapshot keeps the caller's order
        # and a new artist lands at the end.
        snapshot = {artist.id.value: artist for artist in entities}
        snapshot[edited.id.value] = edited
        return snapshot

    def _sync_memberships(self, snapshot: dict[str, Artist], edited: Artist) -> Artist:
        # Hey future me - BOTH directions run on every save. The one that doesn't match the
        # artist's kind runs with an empty declared list, which prunes leftovers when an
        # artist flips from solo to group (or back).
        solo_field, solo_back, _ = _MEMBERSHIP_EDGES[ArtistKind.SOLO]
        group_field, group_back, _ = _MEMBERSHIP_EDGES[ArtistKind.GROUP]

        if edited.is_solo:
            memberships = self._sync_edge(
                snapshot, edited, edited.memberships, solo_back, ArtistKind.GROUP
            )
            self._sync_edge(snapshot, edited, [], group_back, ArtistKind.SOLO)
            return replace(edited, memberships=memberships, members=[])

        members = self._sync_edge(
            snapshot, edited, edited.members, group_back, ArtistKind.SOLO
        )
        self._sync_edge(snapshot, edited, [], solo_back, ArtistKind.GROUP)
        return replace(edited, members=members, memberships=[])

    def _sync_related(self, snapshot: dict[str, Artist], edited: Artist) -> Artist:
        related = self._sync_edge(snapshot, edited, edited.related, RELATED, None)
        return replace(edited, related=related)

    def _sync_edge(
        self,
        snapshot: dict[str, Artist],
        edited: Artist,
        declared_links: Iterable[ArtistLink | None],
        back_field: str,
        counterpart_kind: ArtistKind | None,
    ) -> list[ArtistLink]:
        """Run the two-phase algorithm for one relation direction.

        Mutates the snapshot dict (replacing records, never mutating them) and returns
        the edited artist's normalized declared list.
        """
        edited_id = edited.id.value
        declared = _normalize_declared(declared_links, edited_id)
        declared_ids = {link.artist_id for link in declared}
        kept: list[ArtistLink] = []

        # Phase 1: add/update back-references on every declared counterpart.
        for link in declared:
            counterpart = snapshot.get(link.artist_id)
            if counterpart is None:
                logger.debug(
                    "Artist %s declares unknown counterpart %s in %s, skipping",
                    edited_id,
                    link.artist_id,
                    back_field,
                )
                kept.append(link)
                continue
            if counterpart_kind is not None and counterpart.kind != counterpart_kind:
                logger.debug(
                    "Artist %s declares %s counterpart %s where %s is required, dropping",
                    edited_id,
                    counterpart.kind.value,
                    link.artist_id,
                    counterpart_kind.value,
                )
                continue
            kept.append(replace(link, name=counterpart.name))
            snapshot[link.artist_id] = _upsert_back_reference(
                counterpart, back_field, edited, link
            )

        # Phase 2: prune back-references that are no longer declared.
        for artist_id, artist in list(snapshot.items()):
            if artist_id == edited_id or artist_id in declared_ids:
                continue
            if counterpart_kind is not None and artist.kind != counterpart_kind:
                continue
            back = artist.links_for(back_field)
            if any(existing.artist_id == edited_id for existing in back):
                snapshot[artist_id] = replace(
                    artist, **{back_field: _without(back, edited_id)}
                )

        return kept


def _normalize_declared(
    links: Iterable[ArtistLink | None], self_id: str
) -> list[ArtistLink]:
    """Drop malformed and self links, keep the last occurrence of each id."""
    by_id: dict[str, ArtistLink] = {}
    for link in links:
        if link is None or not link.artist_id or not link.artist_id.strip():
            continue
        if link.artist_id == self_id:
            continue
        # first position, last value
        by_id[link.artist_id] = link
    return list(by_id.values())


def _upsert_back_reference(
    counterpart: Artist, back_field: str, edited: Artist, declared: ArtistLink
) -> Artist:
    edited_id = edited.id.value
    fresh = ArtistLink(
        artist_id=edited_id,
        name=edited.name,
        year_from=declared.year_from,
        year_to=declared.year_to,
    )
    current = counterpart.links_for(back_field)
    updated: list[ArtistLink] = []
    placed = False
    for existing in current:
        if existing.artist_id != edited_id:
            updated.append(existing)
        elif not placed:
            updated.append(fresh)
            placed = True
        # any further duplicate of our back-reference is collapsed away
    if not placed:
        updated.append(fresh)

    if updated == current:
        return counterpart
    return replace(counterpart, **{back_field: updated})


def _without(links: Iterable[ArtistLink], artist_id: str) -> list[ArtistLink]:
    return [link for link in links if link.artist_id != artist_id]


def _check_edge(
    artist: Artist,
    link: ArtistLink,
    counterpart: Artist,
    back_field: str,
    counterpart_kind: ArtistKind | None,
) -> ViolationReason | None:
    if counterpart_kind is not None and counterpart.kind != counterpart_kind:
        return ViolationReason.KIND_MISMATCH
    back = [
        existing
        for existing in counterpart.links_for(back_field)
        if existing.artist_id == artist.id.value
    ]
    if not back:
        return ViolationReason.MISSING_BACK_REFERENCE
    if back[0].interval != link.interval:
        return ViolationReason.INTERVAL_MISMATCH
    return None
