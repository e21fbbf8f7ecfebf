"""Tests for domain entities."""

from dataclasses import replace

import pytest

from musiclt.domain.entities import (
    Album,
    AlbumTrack,
    AlbumTrackEntry,
    AlbumType,
    Artist,
    ArtistBreak,
    ArtistKind,
    ArtistLink,
    GalleryImage,
    News,
    NewsSong,
    NewsType,
    Track,
)
from musiclt.domain.value_objects import AlbumId, ArtistId, EntityId, NewsId, TrackId


class TestEntityId:
    """Test opaque entity ids."""

    def test_generate_is_unique(self):
        assert ArtistId.generate() != ArtistId.generate()

    def test_from_string_strips(self):
        assert AlbumId.from_string("  a1 ") == AlbumId("a1")

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            EntityId("   ")

    def test_short_ids_allowed(self):
        """Imported rows use non-UUID ids like 'g1'."""
        assert str(TrackId("g1")) == "g1"


class TestArtist:
    """Test Artist entity."""

    def test_slug_generated_from_name(self):
        artist = Artist(id=ArtistId("a1"), name="Jazzu Šypsena")

        assert artist.slug == "jazzu-sypsena"
        assert artist.kind == ArtistKind.SOLO
        assert artist.version == 0

    def test_explicit_slug_kept(self):
        artist = Artist(id=ArtistId("a1"), name="Jazzu", slug="jazzu-official")

        assert artist.slug == "jazzu-official"

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="name cannot be empty"):
            Artist(id=ArtistId("a1"), name="  ")

    def test_unknown_link_platforms_dropped(self):
        artist = Artist(
            id=ArtistId("a1"),
            name="Jazzu",
            links={"spotify": "https://open.spotify.com/x", "myspace": "x", "youtube": ""},
        )

        assert artist.links == {"spotify": "https://open.spotify.com/x"}

    def test_references(self):
        artist = Artist(
            id=ArtistId("a1"),
            name="Jazzu",
            memberships=[ArtistLink("g1")],
            related=[ArtistLink("b1")],
        )

        assert artist.references("g1")
        assert artist.references("b1")
        assert not artist.references("zz")

    def test_links_for_returns_copy(self):
        artist = Artist(id=ArtistId("a1"), name="Jazzu", related=[ArtistLink("b1")])

        links = artist.links_for("related")
        links.clear()

        assert artist.related == [ArtistLink("b1")]

    def test_update_name(self):
        artist = Artist(id=ArtistId("a1"), name="Old")

        artist.update_name("Naujas Žmogus")

        assert artist.name == "Naujas Žmogus"
        assert artist.slug == "naujas-zmogus"

    def test_slug_falls_back_to_id_for_non_latin_names(self):
        artist = Artist(id=ArtistId("a-7"), name="Кино")

        assert artist.slug == "a-7"

        artist.update_name("ДДТ")
        assert artist.slug == "a-7"

    def test_site_sections_default_to_music_only(self):
        artist = Artist(id=ArtistId("a1"), name="Jazzu")

        assert artist.type_music is True
        assert (artist.type_film, artist.type_dance, artist.type_books) == (
            False,
            False,
            False,
        )
        assert artist.gender is None
        assert artist.breaks == []

    def test_break_cannot_end_before_it_starts(self):
        with pytest.raises(ValueError):
            ArtistBreak(year_from=2005, year_to=2001)

        assert ArtistBreak(year_from=2005).year_to is None

    def test_link_interval(self):
        link = ArtistLink("g1", year_from="2000")

        assert link.interval == ("2000", "")
        assert link.with_interval("2001", "2005").interval == ("2001", "2005")
        assert link.year_from == "2000"


class TestAlbum:
    """Test Album entity."""

    def test_tracks_renumbered(self):
        album = Album(
            id=AlbumId("al1"),
            title="Geltona",
            artist_id=ArtistId("a1"),
            tracks=[AlbumTrack("t3", position=7), AlbumTrack("t1", position=2, disc_number=2)],
        )

        assert [(t.track_id, t.position, t.disc_number) for t in album.tracks] == [
            ("t3", 1, 1),
            ("t1", 2, 2),
        ]

    def test_default_type_is_studio(self):
        album = Album(id=AlbumId("al1"), title="Geltona", artist_id=ArtistId("a1"))

        assert album.types == [AlbumType.STUDIO]

    @pytest.mark.parametrize(("month", "day"), [(13, None), (0, None), (1, 32)])
    def test_invalid_dates_rejected(self, month, day):
        with pytest.raises(ValueError):
            Album(
                id=AlbumId("al1"),
                title="Geltona",
                artist_id=ArtistId("a1"),
                month=month,
                day=day,
            )

    def test_replace_revalidates(self):
        album = Album(id=AlbumId("al1"), title="Geltona", artist_id=ArtistId("a1"))

        with pytest.raises(ValueError):
            replace(album, title="")

    def test_slug_carries_year(self):
        album = Album(
            id=AlbumId("al1"), title="Geltona", artist_id=ArtistId("a1"), year=1994
        )

        assert album.slug == "geltona-1994"

    def test_slug_without_year(self):
        album = Album(id=AlbumId("al1"), title="Geltona", artist_id=ArtistId("a1"))

        assert album.slug == "geltona"

    def test_track_entry_needs_id_or_title(self):
        with pytest.raises(ValueError):
            AlbumTrackEntry(disc_number=2)

        assert AlbumTrackEntry(title="Laužas").track_id == ""


class TestTrack:
    """Test Track entity."""

    def test_slug_from_title(self):
        track = Track(id=TrackId("t1"), title="Tėvynė", artist_id=ArtistId("a1"))

        assert track.slug == "tevyne"

    def test_empty_title_rejected(self):
        with pytest.raises(ValueError):
            Track(id=TrackId("t1"), title="", artist_id=ArtistId("a1"))

    def test_featuring_drops_main_artist_and_duplicates(self):
        track = Track(
            id=TrackId("t1"),
            title="Duetas",
            artist_id=ArtistId("a1"),
            featuring=["a2", "a1", "", "a2", "a3"],
        )

        assert track.featuring == ["a2", "a3"]


class TestNews:
    """Test News entities."""

    def test_defaults(self):
        news = News(id=NewsId("n1"), title="Naujas Jazzu albumas")

        assert news.slug == "naujas-jazzu-albumas"
        assert news.type == "news"
        assert news.artist_ids == []

    def test_blank_type_becomes_news(self):
        assert News(id=NewsId("n1"), title="X", type=" ").type == "news"

    def test_gallery_drops_images_without_url(self):
        news = News(
            id=NewsId("n1"),
            title="Koncertas",
            gallery=[GalleryImage("https://img/1.jpg", "Scena"), GalleryImage("")],
        )

        assert news.gallery == [GalleryImage("https://img/1.jpg", "Scena")]

    def test_artist_ids_primary_first(self):
        news = News(
            id=NewsId("n1"),
            title="Duetas",
            artist_id=ArtistId("a1"),
            artist_id2=ArtistId("a2"),
        )

        assert [artist_id.value for artist_id in news.artist_ids] == ["a1", "a2"]

    def test_empty_song_rejected(self):
        with pytest.raises(ValueError):
            NewsSong(artist_name="Jazzu")

        assert NewsSong(youtube_url="https://youtu.be/x").title == ""

    @pytest.mark.parametrize("label", ["", "   ", "!!!"])
    def test_news_type_needs_usable_label(self, label):
        with pytest.raises(ValueError):
            NewsType(label=label)

    def test_news_type_slug_from_label(self):
        assert NewsType(label=" Interviu ").slug == "interviu"
