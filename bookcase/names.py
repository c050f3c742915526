"""Author name normalization and matching."""
import json
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)

CORRECTIONS_VERSION = "2024.1"

# Capitalized misspelling -> canonical form
DEFAULT_CORRECTIONS: Dict[str, str] = {
    "Phillip Pullman": "Philip Pullman",
    "Phillip Pulman": "Philip Pullman",
    "Philip Pulman": "Philip Pullman",
    "Kristin Hanna": "Kristin Hannah",
    "Kristen Hannah": "Kristin Hannah",
    "Steven King": "Stephen King",
    "J K Rowling": "J.K. Rowling",
    "Jk Rowling": "J.K. Rowling",
}

_SUFFIX_RE = re.compile(r"(?:\s*,\s*|\s+)(?:jr|sr|ii|iii|iv|v)\.?$", re.IGNORECASE)


def _capitalize_part(part: str) -> str:
    # title() may expand one character into several; only the first stays upper
    head = part[:1].title()
    return head[:1] + (head[1:] + part[1:]).lower()


def capitalize_word(word: str) -> str:
    """Capitalize a word, treating apostrophe-separated parts independently."""
    if "'" in word:
        return "'".join(_capitalize_part(part) for part in word.split("'"))
    return _capitalize_part(word)


def capitalize_name(name: str) -> str:
    return " ".join(capitalize_word(word) for word in name.strip().split(" "))


def load_corrections(path: str) -> Dict[str, str]:
    """
    Load extra corrections from a JSON object of misspelling -> canonical name.

    Args:
        path: Path to the JSON file

    Returns:
        Mapping of corrections
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Corrections file must contain a JSON object: {path}")

    logger.info(f"Loaded {len(data)} name corrections from {path}")
    return {str(k): str(v) for k, v in data.items()}


class NameNormalizer:
    """Canonicalizes free-text author names against a correction table."""

    def __init__(self, corrections: Optional[Dict[str, str]] = None):
        """
        Initialize normalizer.

        Args:
            corrections: Misspelling -> canonical mapping (defaults to DEFAULT_CORRECTIONS)
        """
        table = DEFAULT_CORRECTIONS if corrections is None else corrections
        self._corrections = {capitalize_name(k): v for k, v in table.items()}

        # Canonical forms must survive a second pass ("J.K." capitalizes to "J.k.")
        for canonical in set(self._corrections.values()):
            self._corrections.setdefault(capitalize_name(canonical), canonical)

    @classmethod
    def with_extra(cls, extra: Dict[str, str]) -> "NameNormalizer":
        """Build a normalizer from the default table extended by `extra`."""
        table = dict(DEFAULT_CORRECTIONS)
        table.update(extra)
        return cls(table)

    def normalize(self, raw_name: str) -> str:
        if not raw_name:
            return ""
        capitalized = capitalize_name(raw_name)
        return self._corrections.get(capitalized, capitalized)

    def names_match(self, a: str, b: str) -> bool:
        """
        Decide whether two author names refer to the same author.

        Exact match after normalization, or after stripping a trailing
        generational suffix (Jr., Sr., II, III, IV, V) from both sides.
        """
        left = self.normalize(a).lower()
        right = self.normalize(b).lower()
        if left == right:
            return True

        left = strip_suffix(self.normalize(a)).strip().lower()
        right = strip_suffix(self.normalize(b)).strip().lower()
        return bool(left) and left == right


def strip_suffix(name: str) -> str:
    """Remove a trailing generational suffix such as 'Jr.' or 'III'."""
    return _SUFFIX_RE.sub("", name.strip()).strip()


_default_normalizer = NameNormalizer()


def normalize(raw_name: str) -> str:
    """Normalize an author name with the default correction table."""
    return _default_normalizer.normalize(raw_name)


def names_match(a: str, b: str) -> bool:
    """Match two author names with the default correction table."""
    return _default_normalizer.names_match(a, b)


def last_name(full_name: str) -> str:
    """Lowercased last word of a name, for surname ordering."""
    if not full_name or not isinstance(full_name, str):
        return ""
    return full_name.strip().split(" ")[-1].lower()


def author_in_list(name: str, authors: Iterable[str], normalizer: Optional[NameNormalizer] = None) -> bool:
    """Check whether `name` is already one of `authors`."""
    matcher = normalizer or _default_normalizer
    return any(matcher.names_match(name, author) for author in authors)


def add_author(authors: List[str], name: str, normalizer: Optional[NameNormalizer] = None) -> List[str]:
    """
    Add a normalized author to a list kept sorted by last name.

    Returns the list unchanged (as a copy) if the author is already present.
    """
    matcher = normalizer or _default_normalizer
    if not name.strip() or author_in_list(name, authors, matcher):
        return list(authors)
    return sorted([*authors, matcher.normalize(name)], key=last_name)


@dataclass
class AuthorCandidate:
    """One distinct catalog author spelling with its records."""
    name: str
    records: List = field(default_factory=list)


@dataclass
class AuthorVerification:
    """Result of looking up an author name in catalog results."""
    searched_name: str
    candidates: List[AuthorCandidate] = field(default_factory=list)

    @property
    def is_found(self) -> bool:
        return bool(self.candidates)

    @property
    def is_ambiguous(self) -> bool:
        """More than one distinct author matches; the user has to choose."""
        return len(self.candidates) > 1


def find_author_candidates(
    records: Iterable,
    searched_name: str,
    normalizer: Optional[NameNormalizer] = None
) -> AuthorVerification:
    """
    Group matching records by exact normalized primary author.

    Args:
        records: CatalogRecord or Book objects
        searched_name: Name entered by the user
        normalizer: Optional normalizer (default table otherwise)

    Returns:
        AuthorVerification with candidates in first-seen order
    """
    matcher = normalizer or _default_normalizer
    groups: Dict[str, AuthorCandidate] = {}

    for record in records:
        author = record.primary_author
        if not matcher.names_match(author, searched_name):
            continue

        name = matcher.normalize(author)
        if name not in groups:
            groups[name] = AuthorCandidate(name=name)
        groups[name].records.append(record)

    verification = AuthorVerification(searched_name, list(groups.values()))
    if verification.is_ambiguous:
        logger.info(
            f"Ambiguous author '{searched_name}': "
            f"{', '.join(c.name for c in verification.candidates)}"
        )
    return verification
