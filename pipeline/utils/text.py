"""Text processing utility functions for the data pipeline."""

import re
from urllib.parse import urlparse


# Only these letters are transliterated; everything else non-ASCII becomes a separator
SLUG_TRANSLITERATION = str.maketrans({
    "ğ": "g",
    "ü": "u",
    "ş": "s",
    "ı": "i",
    "ö": "o",
    "ç": "c",
})

LEADING_ARTICLE_RE = re.compile(r"^(the|a|an|le|la|el|il|der|die|das)\s+", re.IGNORECASE)
PARENTHESIZED_RE = re.compile(r"\s*\(.*?\)\s*")
NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize_slug(name: str) -> str:
    """Turn a display name into the URL-safe slug used as a duplicate key.

    Steps, in order:
    - lowercase and strip
    - transliterate ğ ü ş ı ö ç to their ASCII base letters
    - drop one leading article (the, a, an, le, la, el, il, der, die, das)
    - replace each parenthesized group with a hyphen
    - replace every run of other characters with a hyphen
    - trim and collapse hyphens

    "Şatoburg", "satoburg" and "SATOBURG" all give "satoburg". An empty or
    all-punctuation name gives "", which callers must treat as "no key".
    The result is a fixed point: normalize_slug(normalize_slug(x)) == normalize_slug(x).

    Args:
        name: Display name

    Returns:
        Slug string (possibly empty)
    """
    if not name:
        return ""

    slug = name.lower().strip()
    slug = slug.translate(SLUG_TRANSLITERATION)
    slug = LEADING_ARTICLE_RE.sub("", slug)
    slug = PARENTHESIZED_RE.sub("-", slug)
    slug = NON_SLUG_RE.sub("-", slug)
    slug = slug.strip("-")
    return re.sub(r"-+", "-", slug)


def trigram_set(text: str) -> set[str]:
    """Trigrams of a string the way pg_trgm builds them.

    Each lowercased alphanumeric word is padded with two leading blanks and
    one trailing blank before being cut into trigrams.
    """
    trigrams = set()
    for word in re.findall(r"[^\W_]+", (text or "").lower()):
        padded = f"  {word} "
        trigrams.update(padded[i:i + 3] for i in range(len(padded) - 2))
    return trigrams


def trigram_similarity(a: str, b: str) -> float:
    """Similarity of two strings (0-1), matching pg_trgm's similarity().

    Used when the store is not PostgreSQL.
    """
    t1, t2 = trigram_set(a), trigram_set(b)
    if not t1 or not t2:
        return 0.0

    shared = len(t1 & t2)
    return shared / (len(t1) + len(t2) - shared)


def clean_description(description: str | None, max_length: int = 1000) -> str | None:
    """Clean and truncate a description string.

    Args:
        description: Raw description text
        max_length: Maximum length (default 1000 chars)

    Returns:
        Cleaned description or None if empty
    """
    if not description:
        return None

    # Remove HTML tags if present
    text = re.sub(r"<[^>]+>", "", description)

    # Remove excessive whitespace
    text = re.sub(r"\s+", " ", text).strip()

    # Truncate if needed
    if len(text) > max_length:
        text = text[:max_length - 3] + "..."

    return text if text else None


def extract_domain(url: str | None) -> str | None:
    """Hostname of a URL without a leading "www.", or None if it has none."""
    if not url:
        return None

    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return None

    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def is_http_url(url: str | None) -> bool:
    """True for absolute http(s) URLs."""
    if not url or not isinstance(url, str):
        return False
    return url.strip().lower().startswith(("http://", "https://")) and extract_domain(url) is not None
