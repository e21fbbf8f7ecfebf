"""Tests for URL slug generation."""

import pytest

from musiclt.domain.value_objects import slugify, strip_featuring


class TestSlugify:
    """Test slugify with Lithuanian names."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Žalvarinis", "zalvarinis"),
            ("Andrius Mamontovas & Foje", "andrius-mamontovas-foje"),
            ("Ąžuolų Šėlsmas", "azuolu-selsmas"),
            ("Čiurlionio kvartetas", "ciurlionio-kvartetas"),
            ("  Antis  ", "antis"),
            ("G&G Sindikatas", "g-g-sindikatas"),
            ("2 Be Free", "2-be-free"),
        ],
    )
    def test_transliterates_and_dashes(self, text, expected):
        assert slugify(text) == expected

    def test_no_usable_characters(self):
        """Punctuation-only names give an empty slug."""
        assert slugify("!!!") == ""

    def test_none_safe(self):
        assert slugify("") == ""

    @pytest.mark.parametrize("text", ["Кино", "東京事変", "🎸🎸"])
    def test_non_latin_name_uses_fallback(self, text):
        assert slugify(text, fallback="a1b2") == "a1b2"

    def test_fallback_ignored_when_name_is_usable(self):
        assert slugify("Foje", fallback="a1b2") == "foje"


class TestStripFeaturing:
    """Guest credits removed from track titles."""

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Tu mano (feat. Jazzu)", "Tu mano"),
            ("Tu mano [feat. Jazzu & Monika]", "Tu mano"),
            ("Tu mano (Feat Jazzu) (Remix)", "Tu mano (Remix)"),
            ("Vasara (ft. Mia) ir ruduo", "Vasara ir ruduo"),
            ("Laužas (featuring Foje)", "Laužas"),
            ("Feature (live)", "Feature (live)"),
            ("  Be svečių  ", "Be svečių"),
        ],
    )
    def test_strips_guest_credits(self, title, expected):
        assert strip_featuring(title) == expected
