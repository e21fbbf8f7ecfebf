"""Property-based tests for the relation invariant.

Hey future me - these replay random edit sequences against a small catalog (solos, groups
and one id that never exists) and check that the bidirectional invariant survives every
single step. If one of these fails, hypothesis prints the shrunk edit list; replay it by
hand in test_relation_synchronizer.py before touching the algorithm.
"""

from dataclasses import replace

from hypothesis import given, settings
from hypothesis import strategies as st

from musiclt.application.services import RelationSynchronizer
from musiclt.domain.entities import Artist, ArtistKind, ArtistLink
from musiclt.domain.value_objects import ArtistId

SOLO_IDS = ["s0", "s1", "s2"]
GROUP_IDS = ["g0", "g1", "g2"]
ALL_IDS = SOLO_IDS + GROUP_IDS

years = st.sampled_from(["", "1999", "2005", "2010"])
links = st.lists(
    st.builds(
        ArtistLink,
        artist_id=st.sampled_from([*ALL_IDS, "ghost"]),
        year_from=years,
        year_to=years,
    ),
    max_size=4,
)
edits = st.lists(
    st.tuples(st.sampled_from(ALL_IDS), st.sampled_from(list(ArtistKind)), links, links),
    min_size=1,
    max_size=8,
)


def initial_catalog() -> list[Artist]:
    return [
        Artist(id=ArtistId(artist_id), name=artist_id.upper(), kind=ArtistKind.SOLO)
        for artist_id in SOLO_IDS
    ] + [
        Artist(id=ArtistId(artist_id), name=artist_id.upper(), kind=ArtistKind.GROUP)
        for artist_id in GROUP_IDS
    ]


def apply_edit(
    sync: RelationSynchronizer,
    catalog: list[Artist],
    edit: tuple[str, ArtistKind, list[ArtistLink], list[ArtistLink]],
) -> tuple[list[Artist], Artist]:
    artist_id, kind, relation_links, related_links = edit
    current = next(artist for artist in catalog if artist.id.value == artist_id)
    # both lists get the same links; the synchronizer keeps the one matching the kind
    edited = replace(
        current,
        kind=kind,
        memberships=relation_links,
        members=relation_links,
        related=related_links,
    )
    return sync.reconcile(catalog, edited), edited


def assert_invariant(catalog: list[Artist]) -> None:
    index = {artist.id.value: artist for artist in catalog}
    solos = [artist for artist in catalog if artist.is_solo]
    groups = [artist for artist in catalog if artist.is_group]

    for s in solos:
        for g in groups:
            forward = [link for link in s.memberships if link.artist_id == g.id.value]
            back = [link for link in g.members if link.artist_id == s.id.value]
            assert bool(forward) == bool(back), (s.id.value, g.id.value)
            assert len(forward) <= 1 and len(back) <= 1
            if forward:
                assert forward[0].interval == back[0].interval

    for a in catalog:
        for link in a.related:
            assert link.artist_id != a.id.value
            b = index.get(link.artist_id)
            if b is None:
                continue
            mirror = [back for back in b.related if back.artist_id == a.id.value]
            assert len(mirror) == 1, (a.id.value, b.id.value)
            assert mirror[0].interval == link.interval


@settings(max_examples=200, deadline=None)
@given(edits)
def test_invariant_holds_after_every_edit(edit_sequence):
    sync = RelationSynchronizer()
    catalog = initial_catalog()

    for edit in edit_sequence:
        catalog, _ = apply_edit(sync, catalog, edit)
        assert_invariant(catalog)
        assert sync.find_violations(catalog) == []


@settings(max_examples=200, deadline=None)
@given(edits)
def test_reconcile_is_idempotent(edit_sequence):
    sync = RelationSynchronizer()
    catalog = initial_catalog()

    for edit in edit_sequence:
        catalog, edited = apply_edit(sync, catalog, edit)
        again = sync.reconcile(catalog, edited)
        assert {a.id.value: a for a in again} == {a.id.value: a for a in catalog}


@settings(max_examples=100, deadline=None)
@given(edits, st.sampled_from(ALL_IDS))
def test_detach_leaves_no_reference(edit_sequence, removed_id):
    sync = RelationSynchronizer()
    catalog = initial_catalog()
    for edit in edit_sequence:
        catalog, _ = apply_edit(sync, catalog, edit)

    result = sync.detach(catalog, removed_id)

    assert all(artist.id.value != removed_id for artist in result)
    assert not any(artist.references(removed_id) for artist in result)
    assert_invariant(result)
