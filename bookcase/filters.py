"""Keyword filters for promotional material, special releases and re-releases."""
import re
from typing import List
import logging

from bookcase.models import Book

logger = logging.getLogger(__name__)

PROMOTIONAL_KEYWORDS = [
    "free preview", "sample", "showcard", "promotional", "marketing",
    "advertisement", "ad copy", "book trailer", "excerpt", "preview edition",
    "advance reader", "galley", "uncorrected", "not for sale", "review copy",
    "promotional copy", "media kit", "press kit", "catalogue", "brochure",
    "flyer", "leaflet", "pamphlet",
]

SPECIAL_RELEASE_KEYWORDS = [
    "tesco exclusive", "walmart exclusive", "target exclusive", "amazon exclusive",
    "barnes & noble exclusive", "waterstones exclusive", "whsmith exclusive",
    "costco exclusive", "retailer exclusive", "store exclusive",
    "exclusive edition", "exclusive release", "special release", "limited release",
    "promotional edition", "bonus edition", "gift edition", "holiday edition",
    "christmas edition", "book club edition", "large print edition",
    "mass market edition", "pocket edition", "compact edition", "mini edition",
]

RERELEASE_KEYWORDS = [
    "tie-in", "movie edition", "tv edition", "film edition", "netflix edition",
    "streaming edition", "television edition", "anniversary edition",
    "special edition", "collector's edition", "deluxe edition", "premium edition",
    "limited edition", "commemorative edition", "reissue", "reprint",
    "new edition", "revised edition", "updated edition", "expanded edition",
    "enhanced edition", "movie cover", "tv cover", "film cover", "netflix cover",
    "now a major motion picture", "now a netflix series", "now a tv series",
    "now streaming", "coming soon to", "soon to be a", "major motion picture",
]

SPECIAL_EDITION_KEYWORDS = [
    "penguin readers", "graded reader", "elt reader", "english language teaching",
    "abridged", "simplified edition", "simplified version", "easy reader",
    "beginner reader", "intermediate reader", "adapted edition", "adapted version",
    "retold", "oxford bookworms", "macmillan readers", "cambridge readers",
]

_LEVEL_RE = re.compile(
    r"\blevel\s+(?:\d+|one|two|three|four|five|six|seven|eight|nine|ten)\b",
    re.IGNORECASE
)
_SHORT_READER_RE = re.compile(r"\b(?:reader|graded|elt|level)\b")

# Short words like "arc" or "proof" are matched as whole words only
_PROMOTIONAL_WORDS_RE = re.compile(r"\b(?:arc|proof|catalog)\b")


def _text(book: Book) -> str:
    return f"{book.title or ''} {book.description or ''}".lower()


def _contains_any(text: str, keywords: List[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def is_promotional(book: Book) -> bool:
    text = _text(book)
    return _contains_any(text, PROMOTIONAL_KEYWORDS) or bool(_PROMOTIONAL_WORDS_RE.search(text))


def is_special_release(book: Book) -> bool:
    return _contains_any(_text(book), SPECIAL_RELEASE_KEYWORDS)


def is_rerelease(book: Book) -> bool:
    return _contains_any(_text(book), RERELEASE_KEYWORDS)


def is_special_edition(book: Book) -> bool:
    """Graded readers, ELT and abridged or simplified versions."""
    categories = " ".join(book.categories or []).lower()
    text = f"{_text(book)} {categories}"

    if _contains_any(text, SPECIAL_EDITION_KEYWORDS):
        return True

    if _LEVEL_RE.search(book.title or ""):
        return True

    # Very short books only count when they also look like readers
    page_count = book.page_count or 0
    return 0 < page_count < 100 and bool(_SHORT_READER_RE.search(text))


def filter_unwanted(books: List[Book]) -> List[Book]:
    """
    Drop promotional material, special releases, re-releases and special editions.

    Args:
        books: Candidate books

    Returns:
        Books that are regular editions
    """
    kept = []

    for book in books:
        if is_promotional(book):
            logger.info(f"Filtering out promotional material: {book.title}")
        elif is_special_release(book):
            logger.info(f"Filtering out special release: {book.title}")
        elif is_rerelease(book):
            logger.info(f"Filtering out rerelease: {book.title}")
        elif is_special_edition(book):
            logger.info(f"Filtering out special edition: {book.title}")
        else:
            kept.append(book)

    return kept
