"""Tests for RelationSynchronizer."""

from dataclasses import replace

import pytest

from musiclt.application.services import (
    MEMBERS,
    MEMBERSHIPS,
    RELATED,
    RelationSynchronizer,
    ViolationReason,
)
from musiclt.domain.entities import Artist, ArtistKind, ArtistLink
from musiclt.domain.value_objects import ArtistId


def solo(artist_id: str, **kwargs) -> Artist:
    return Artist(id=ArtistId(artist_id), name=artist_id, kind=ArtistKind.SOLO, **kwargs)


def group(artist_id: str, **kwargs) -> Artist:
    return Artist(id=ArtistId(artist_id), name=artist_id, kind=ArtistKind.GROUP, **kwargs)


def by_id(artists: list[Artist]) -> dict[str, Artist]:
    return {artist.id.value: artist for artist in artists}


@pytest.fixture
def sync() -> RelationSynchronizer:
    return RelationSynchronizer()


class TestMemberships:
    """Solo <-> group membership edges."""

    def test_declared_membership_adds_back_reference(self, sync):
        """Solo declaring a group shows up in the group's members."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(s1, memberships=[ArtistLink("G1", year_from="2010")])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["G1"].members == [
            ArtistLink(artist_id="S1", name="S1", year_from="2010", year_to="")
        ]
        assert [link.artist_id for link in result["S1"].memberships] == ["G1"]

    def test_removed_member_is_pruned_from_solo(self, sync):
        """Group dropping a member removes the membership on the solo side."""
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1", "2010", "")])
        g1 = group("G1", members=[ArtistLink("S1", "S1", "2010", "")])
        edited = replace(g1, members=[])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["S1"].memberships == []
        assert result["G1"].members == []

    def test_removing_one_of_two_groups_keeps_the_other(self, sync):
        """Pruning G1 leaves the G2 back-reference untouched."""
        s1 = solo("S1")
        g1 = group("G1")
        g2 = group("G2")
        first = by_id(
            sync.reconcile(
                [s1, g1, g2],
                replace(
                    s1,
                    memberships=[
                        ArtistLink("G1", year_from="2001"),
                        ArtistLink("G2", year_from="2003", year_to="2009"),
                    ],
                ),
            )
        )
        assert [link.artist_id for link in first["G1"].members] == ["S1"]
        assert [link.artist_id for link in first["G2"].members] == ["S1"]

        second = by_id(
            sync.reconcile(
                list(first.values()),
                replace(
                    first["S1"],
                    memberships=[ArtistLink("G2", year_from="2003", year_to="2009")],
                ),
            )
        )

        assert second["G1"].members == []
        assert second["G2"] is first["G2"]
        assert second["G2"].members == [ArtistLink("S1", "S1", "2003", "2009")]

    def test_unknown_group_is_skipped_without_error(self, sync):
        """A dangling id creates no back-reference anywhere and stays on the edited side."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(s1, memberships=[ArtistLink("nonexistent-id", year_from="2010")])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["G1"] is g1
        assert result["G1"].members == []
        assert [link.artist_id for link in result["S1"].memberships] == [
            "nonexistent-id"
        ]

    def test_existing_back_reference_takes_declared_interval(self, sync):
        """The edited side wins: the counterpart's interval is overwritten, not merged."""
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1", "2000", "2004")])
        g1 = group("G1", members=[ArtistLink("S1", "S1", "2000", "2004")])
        edited = replace(s1, memberships=[ArtistLink("G1", year_from="1999", year_to="")])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["G1"].members == [ArtistLink("S1", "S1", "1999", "")]

    def test_wrong_kind_counterpart_is_dropped(self, sync):
        """A solo cannot be a member of another solo."""
        s1 = solo("S1")
        s2 = solo("S2")
        edited = replace(s1, memberships=[ArtistLink("S2")])

        result = by_id(sync.reconcile([s1, s2], edited))

        assert result["S1"].memberships == []
        assert result["S2"] is s2

    def test_membership_pass_drops_wrong_kind_but_keeps_unknown(self, sync):
        g1 = group("G1")
        g2 = group("G2")
        edited = replace(g1, members=[ArtistLink("G2"), ArtistLink("ghost")])

        result = by_id(sync.reconcile_memberships([g1, g2], edited))

        assert [link.artist_id for link in result["G1"].members] == ["ghost"]
        assert result["G2"] is g2

    def test_group_members_populate_solo_memberships(self, sync):
        """Editing from the group side writes memberships on the solos."""
        s1 = solo("S1")
        s2 = solo("S2")
        g1 = group("G1")
        edited = replace(
            g1, members=[ArtistLink("S1", year_from="1990"), ArtistLink("S2")]
        )

        result = by_id(sync.reconcile([s1, s2, g1], edited))

        assert result["S1"].memberships == [ArtistLink("G1", "G1", "1990", "")]
        assert result["S2"].memberships == [ArtistLink("G1", "G1", "", "")]

    def test_kind_flip_prunes_old_direction(self, sync):
        """A solo turned into a group loses its old group memberships on both sides."""
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1")])
        g1 = group("G1", members=[ArtistLink("S1", "S1")])
        s2 = solo("S2")
        edited = replace(
            s1,
            kind=ArtistKind.GROUP,
            memberships=[ArtistLink("G1")],
            members=[ArtistLink("S2", year_from="2020")],
        )

        result = by_id(sync.reconcile([s1, g1, s2], edited))

        assert result["S1"].memberships == []
        assert result["G1"].members == []
        assert result["S1"].members == [ArtistLink("S2", "S2", "2020", "")]
        assert result["S2"].memberships == [ArtistLink("S1", "S1", "2020", "")]


class TestRelated:
    """Symmetric related-artist links."""

    def test_related_link_is_mirrored_with_interval(self, sync):
        """A -> B inserts B -> A with the same years."""
        a = solo("A")
        b = group("B")
        edited = replace(a, related=[ArtistLink("B", year_from="2005", year_to="2008")])

        result = by_id(sync.reconcile([a, b], edited))

        assert result["B"].related == [ArtistLink("A", "A", "2005", "2008")]

    def test_related_ignores_kind(self, sync):
        """Any artist may relate to any other."""
        a = solo("A")
        b = solo("B")
        edited = replace(a, related=[ArtistLink("B")])

        result = by_id(sync.reconcile([a, b], edited))

        assert [link.artist_id for link in result["B"].related] == ["A"]

    def test_self_relation_is_filtered(self, sync):
        """Declaring yourself never creates a self-loop."""
        a = solo("A")
        edited = replace(a, related=[ArtistLink("A"), ArtistLink("A", year_from="2000")])

        result = by_id(sync.reconcile([a], edited))

        assert result["A"].related == []

    def test_removed_related_is_pruned(self, sync):
        """Dropping B from A's related removes A from B's related."""
        a = solo("A", related=[ArtistLink("B", "B")])
        b = solo("B", related=[ArtistLink("A", "A"), ArtistLink("C", "C")])
        c = solo("C", related=[ArtistLink("B", "B")])
        edited = replace(a, related=[])

        result = by_id(sync.reconcile([a, b, c], edited))

        assert result["B"].related == [ArtistLink("C", "C")]
        assert result["C"] is c

    def test_reconcile_related_leaves_memberships_alone(self, sync):
        """The related-only variant doesn't touch membership edges."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(
            s1, memberships=[ArtistLink("G1")], related=[ArtistLink("G1")]
        )

        result = by_id(sync.reconcile_related([s1, g1], edited))

        assert result["G1"].members == []
        assert [link.artist_id for link in result["G1"].related] == ["S1"]

    def test_reconcile_memberships_leaves_related_alone(self, sync):
        """The membership-only variant doesn't touch related edges."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(
            s1, memberships=[ArtistLink("G1")], related=[ArtistLink("G1")]
        )

        result = by_id(sync.reconcile_memberships([s1, g1], edited))

        assert [link.artist_id for link in result["G1"].members] == ["S1"]
        assert result["G1"].related == []


class TestNormalization:
    """Declared-list filtering and tie-breaks."""

    def test_duplicate_counterpart_last_occurrence_wins(self, sync):
        """Same group twice: the later interval is the one stored on both sides."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(
            s1,
            memberships=[
                ArtistLink("G1", year_from="2000", year_to="2001"),
                ArtistLink("G1", year_from="2005", year_to=""),
            ],
        )

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["G1"].members == [ArtistLink("S1", "S1", "2005", "")]
        assert result["S1"].memberships == [ArtistLink("G1", "G1", "2005", "")]

    def test_malformed_entries_are_filtered(self, sync):
        """None and blank ids are caller noise, not errors."""
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(
            s1,
            memberships=[None, ArtistLink(""), ArtistLink("   "), ArtistLink("G1")],
        )

        result = by_id(sync.reconcile([s1, g1], edited))

        assert [link.artist_id for link in result["S1"].memberships] == ["G1"]
        assert len(result["G1"].members) == 1

    def test_counterpart_name_is_refreshed(self, sync):
        """Names in relation records are re-copied whenever the edge is touched."""
        s1 = solo("S1")
        g1 = Artist(id=ArtistId("G1"), name="Foje", kind=ArtistKind.GROUP)
        edited = replace(s1, name="Andrius", memberships=[ArtistLink("G1", name="stale")])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["S1"].memberships[0].name == "Foje"
        assert result["G1"].members[0].name == "Andrius"

    def test_duplicate_back_references_collapse(self, sync):
        """A counterpart holding our back-reference twice ends up with one."""
        s1 = solo("S1")
        g1 = group("G1", members=[ArtistLink("S1", "S1"), ArtistLink("S1", "S1")])
        edited = replace(s1, memberships=[ArtistLink("G1", year_from="2011")])

        result = by_id(sync.reconcile([s1, g1], edited))

        assert result["G1"].members == [ArtistLink("S1", "S1", "2011", "")]


class TestSnapshotHandling:
    """Copy-on-write and ordering of the returned snapshot."""

    def test_input_records_are_not_mutated(self, sync):
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(s1, memberships=[ArtistLink("G1")])

        sync.reconcile([s1, g1], edited)

        assert g1.members == []
        assert s1.memberships == []

    def test_untouched_records_keep_identity(self, sync):
        s1 = solo("S1")
        g1 = group("G1")
        bystander = solo("X", related=[ArtistLink("Y", "Y")])
        edited = replace(s1, memberships=[ArtistLink("G1")])

        result = by_id(sync.reconcile([s1, g1, bystander], edited))

        assert result["X"] is bystander
        assert result["G1"] is not g1

    def test_new_artist_is_appended(self, sync):
        g1 = group("G1")
        newcomer = solo("S9", memberships=[ArtistLink("G1")])

        result = sync.reconcile([g1], newcomer)

        assert [artist.id.value for artist in result] == ["G1", "S9"]
        assert result[0].members[0].artist_id == "S9"

    def test_reconcile_is_idempotent(self, sync):
        s1 = solo("S1")
        g1 = group("G1")
        g2 = group("G2")
        edited = replace(
            s1,
            memberships=[ArtistLink("G1", year_from="2000"), ArtistLink("G2")],
            related=[ArtistLink("G2", year_to="2010")],
        )

        once = sync.reconcile([s1, g1, g2], edited)
        twice = sync.reconcile(once, edited)

        assert by_id(twice) == by_id(once)


class TestDetach:
    """Delete cascade."""

    def test_detach_removes_artist_and_back_references(self, sync):
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1")], related=[ArtistLink("B", "B")])
        g1 = group("G1", members=[ArtistLink("S1", "S1"), ArtistLink("S2", "S2")])
        b = solo("B", related=[ArtistLink("S1", "S1")])
        other = solo("S2", memberships=[ArtistLink("G1", "G1")])

        result = by_id(sync.detach([s1, g1, b, other], "S1"))

        assert "S1" not in result
        assert result["G1"].members == [ArtistLink("S2", "S2")]
        assert result["B"].related == []
        assert result["S2"] is other

    def test_detach_unknown_id_changes_nothing(self, sync):
        g1 = group("G1")

        result = sync.detach([g1], "missing")

        assert result == [g1]
        assert result[0] is g1


class TestFindViolations:
    """Relation audit."""

    def test_consistent_catalog_has_no_violations(self, sync):
        s1 = solo("S1")
        g1 = group("G1")
        edited = replace(
            s1, memberships=[ArtistLink("G1", year_from="2000")], related=[ArtistLink("G1")]
        )

        result = sync.reconcile([s1, g1], edited)

        assert sync.find_violations(result) == []

    def test_missing_back_reference(self, sync):
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1")])
        g1 = group("G1")

        violations = sync.find_violations([s1, g1])

        assert len(violations) == 1
        assert violations[0].artist_id == "S1"
        assert violations[0].counterpart_id == "G1"
        assert violations[0].field == MEMBERSHIPS
        assert violations[0].reason == ViolationReason.MISSING_BACK_REFERENCE

    def test_interval_mismatch_reported_from_both_sides(self, sync):
        s1 = solo("S1", memberships=[ArtistLink("G1", "G1", "2000", "")])
        g1 = group("G1", members=[ArtistLink("S1", "S1", "2001", "")])

        violations = sync.find_violations([s1, g1])

        assert {(v.artist_id, v.field) for v in violations} == {
            ("S1", MEMBERSHIPS),
            ("G1", MEMBERS),
        }
        assert {v.reason for v in violations} == {ViolationReason.INTERVAL_MISMATCH}

    def test_kind_mismatch(self, sync):
        s1 = solo("S1", memberships=[ArtistLink("S2", "S2")])
        s2 = solo("S2")

        violations = sync.find_violations([s1, s2])

        assert [v.reason for v in violations] == [ViolationReason.KIND_MISMATCH]

    def test_asymmetric_related(self, sync):
        a = solo("A", related=[ArtistLink("B", "B")])
        b = solo("B")

        violations = sync.find_violations([a, b])

        assert [v.to_dict() for v in violations] == [
            {
                "artist_id": "A",
                "counterpart_id": "B",
                "field": RELATED,
                "reason": "missing_back_reference",
            }
        ]

    def test_dangling_reference_is_tolerated(self, sync):
        s1 = solo("S1", memberships=[ArtistLink("ghost")])

        assert sync.find_violations([s1]) == []

    def test_solo_with_members_is_reported(self, sync):
        """A solo must not hold a members list, even one pointing at nobody."""
        s1 = solo("S1", members=[ArtistLink("S2", "S2"), ArtistLink("ghost")])
        s2 = solo("S2")

        violations = sync.find_violations([s1, s2])

        assert [(v.artist_id, v.counterpart_id, v.field) for v in violations] == [
            ("S1", "S2", MEMBERS),
            ("S1", "ghost", MEMBERS),
        ]
        assert {v.reason for v in violations} == {ViolationReason.WRONG_FIELD_FOR_KIND}

    def test_group_with_memberships_is_reported(self, sync):
        g1 = group("G1", memberships=[ArtistLink("G2", "G2")])
        g2 = group("G2", members=[])

        violations = sync.find_violations([g1, g2])

        assert [v.to_dict() for v in violations] == [
            {
                "artist_id": "G1",
                "counterpart_id": "G2",
                "field": MEMBERSHIPS,
                "reason": "wrong_field_for_kind",
            }
        ]

    def test_reconcile_clears_wrong_field_violations(self, sync):
        s1 = solo("S1", members=[ArtistLink("G1", "G1")])
        g1 = group("G1")

        result = sync.reconcile([s1, g1], s1)

        assert sync.find_violations(result) == []
