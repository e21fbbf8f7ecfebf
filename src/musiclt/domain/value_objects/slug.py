"""URL slugs for catalog entities.

Hey future me - slugs end up in public URLs (music.lt/atlikejai/<slug>), so they must be
plain ASCII. Lithuanian letters are transliterated first, everything else that isn't
[a-z0-9] collapses into a single dash.

Examples:
    >>> slugify("Žalvarinis")
    'zalvarinis'
    >>> slugify("  Andrius Mamontovas & Foje ")
    'andrius-mamontovas-foje'
"""

import re

LITHUANIAN_TRANSLITERATION: dict[str, str] = {
    "ą": "a",
    "č": "c",
    "ę": "e",
    "ė": "e",
    "į": "i",
    "š": "s",
    "ų": "u",
    "ū": "u",
    "ž": "z",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str, fallback: str = "") -> str:
    """Build a URL slug from a display name.

    Names with nothing transliterable (Cyrillic, Japanese, emoji) would come out empty,
    so the fallback (usually the entity id) is slugified instead.

    Args:
        text: Display name (artist name, album or track title)
        fallback: Used when text yields no slug characters

    Returns:
        Lowercase ASCII slug, empty only if fallback is unusable too
    """
    slug = _to_slug(text)
    if not slug and fallback:
        slug = _to_slug(fallback)
    return slug


def _to_slug(text: str) -> str:
    lowered = (text or "").lower()
    transliterated = "".join(LITHUANIAN_TRANSLITERATION.get(ch, ch) for ch in lowered)
    return _NON_ALNUM.sub("-", transliterated).strip("-")


# "(feat. X)", "[ft. X]", "(featuring X)" anywhere in a title
_FEATURING = re.compile(
    r"\s*[(\[]\s*(?:feat\.?|ft\.|featuring)\s+[^)\]]*[)\]]", re.IGNORECASE
)


def strip_featuring(title: str) -> str:
    """Remove guest credits from a track title.

    >>> strip_featuring("Tu mano (feat. Jazzu)")
    'Tu mano'
    """
    return re.sub(r"\s{2,}", " ", _FEATURING.sub("", title or "")).strip()
