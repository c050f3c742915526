"""Collapse catalog editions of the same work into one canonical book."""
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence
import logging

from bookcase.models import Book

logger = logging.getLogger(__name__)


class InvalidRecordError(ValueError):
    """A book is missing the title or author needed for its identity key."""


REGION_LANGUAGES = {
    "US": "en", "UK": "en", "GB": "en", "CA": "en", "AU": "en", "NZ": "en", "IE": "en",
    "FR": "fr", "BE": "fr",
    "DE": "de", "AT": "de", "CH": "de",
    "ES": "es", "MX": "es", "AR": "es",
    "IT": "it",
    "PT": "pt", "BR": "pt",
    "NL": "nl",
    "JP": "ja",
}

COUNTRY_CODES = {
    "united states": "US",
    "usa": "US",
    "united kingdom": "UK",
    "great britain": "UK",
    "canada": "CA",
    "australia": "AU",
    "new zealand": "NZ",
    "ireland": "IE",
    "france": "FR",
    "germany": "DE",
    "spain": "ES",
    "italy": "IT",
}

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


def region_language(user_region: Optional[str]) -> str:
    """Default book language for a region code or country name; 'en' if unknown."""
    if not user_region or not user_region.strip():
        return "en"
    region = user_region.strip()
    code = COUNTRY_CODES.get(region.lower(), region.upper())
    return REGION_LANGUAGES.get(code, "en")


def parse_published_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a catalog publication date.

    Accepts "YYYY", "YYYY-MM" and "YYYY-MM-DD" (a trailing time part is
    ignored). Anything else yields None.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()[:10]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def identity_key(book: Book) -> str:
    """Dedup key: lowercased, trimmed title and primary author."""
    title = (book.title or "").strip().lower()
    author = (book.primary_author or "").strip().lower()
    if not title or not author:
        raise InvalidRecordError(
            f"invalid record: missing identity fields (id={book.id!r}, title={book.title!r})"
        )
    return f"{title}::{author}"


# Rules return 1 if the challenger should win, -1 if the survivor should, 0 if tied.
Rule = Callable[[Book, Book, str], int]


def _prefer(challenger_has: bool, survivor_has: bool) -> int:
    if challenger_has and not survivor_has:
        return 1
    if survivor_has and not challenger_has:
        return -1
    return 0


def _by_language(survivor: Book, challenger: Book, language: str) -> int:
    return _prefer(
        (challenger.language or "en").lower() == language,
        (survivor.language or "en").lower() == language,
    )


def _by_description(survivor: Book, challenger: Book, language: str) -> int:
    return _prefer(bool((challenger.description or "").strip()), bool((survivor.description or "").strip()))


def _by_thumbnail(survivor: Book, challenger: Book, language: str) -> int:
    return _prefer(bool(challenger.thumbnail), bool(survivor.thumbnail))


def _by_published_date(survivor: Book, challenger: Book, language: str) -> int:
    new = parse_published_date(challenger.published_date)
    old = parse_published_date(survivor.published_date)
    if new is None or old is None:
        return _prefer(new is not None, old is not None)
    if new < old:
        return 1
    if old < new:
        return -1
    return 0


TIE_BREAK_RULES: Dict[str, Rule] = {
    "language": _by_language,
    "description": _by_description,
    "thumbnail": _by_thumbnail,
    "published_date": _by_published_date,
}

DEFAULT_POLICY = ("language", "description", "thumbnail", "published_date")


def resolve_policy(policy: Sequence[str]) -> List[Rule]:
    unknown = [name for name in policy if name not in TIE_BREAK_RULES]
    if unknown:
        raise ValueError(f"Unknown tie-break rules: {', '.join(unknown)}")
    return [TIE_BREAK_RULES[name] for name in policy]


def should_replace(survivor: Book, challenger: Book, language: str, rules: Sequence[Rule]) -> bool:
    """First non-tied rule decides; a full tie keeps the survivor."""
    for rule in rules:
        verdict = rule(survivor, challenger, language)
        if verdict:
            return verdict > 0
    return False


def deduplicate(
    books: Sequence[Book],
    user_region: Optional[str] = "US",
    policy: Sequence[str] = DEFAULT_POLICY
) -> List[Book]:
    """
    Remove duplicate editions by title and primary author.

    Args:
        books: Books already stripped of placeholder/author-less entries
        user_region: Region used to pick the preferred language
        policy: Tie-break rule names in priority order

    Returns:
        One book per identity key, in first-seen order

    Raises:
        InvalidRecordError: if a book has no title or no author
    """
    rules = resolve_policy(policy)
    language = region_language(user_region)
    survivors: Dict[str, Book] = {}

    for book in books:
        key = identity_key(book)
        survivor = survivors.get(key)

        if survivor is None:
            survivors[key] = book
        elif should_replace(survivor, book, language, rules):
            logger.debug(f"Replacing {survivor.id} with {book.id} for {key}")
            survivors[key] = book

    # dict assignment to an existing key keeps its original position
    return list(survivors.values())
