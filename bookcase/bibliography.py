"""Fetch an author's bibliography and reduce it to canonical books."""
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from bookcase.dedupe import DEFAULT_POLICY, deduplicate
from bookcase.filters import filter_unwanted
from bookcase.models import Book
from bookcase.names import AuthorVerification, NameNormalizer, find_author_candidates
from bookcase.parse import merge_responses, parse_records_response, to_book

logger = logging.getLogger(__name__)


def select_author_books(
    responses: Iterable[Optional[Dict[str, Any]]],
    author: str,
    user_region: Optional[str] = "US",
    normalizer: Optional[NameNormalizer] = None,
    policy: Sequence[str] = DEFAULT_POLICY
) -> List[Book]:
    """
    Turn raw catalog responses into the author's deduplicated books.

    Args:
        responses: API responses for the author's queries
        author: Author name on the user's list
        user_region: Region used for the language preference
        normalizer: Optional normalizer with extra corrections
        policy: Tie-break rule order

    Returns:
        Canonical books in first-seen order
    """
    matcher = normalizer or NameNormalizer()
    records = parse_records_response(merge_responses(responses))

    books = []
    for record in records:
        if not matcher.names_match(record.primary_author, author):
            continue
        book = to_book(record)
        if book:
            books.append(book)

    filtered = filter_unwanted(books)
    unique = deduplicate(filtered, user_region, policy)

    logger.info(
        f"Found {len(records)} total records, {len(books)} by {author}, "
        f"{len(filtered)} after filtering, {len(unique)} unique books"
    )
    return unique


def fetch_author_books(
    client,
    author: str,
    user_region: Optional[str] = "US",
    cache_db=None,
    cache_ttl: int = 3600,
    normalizer: Optional[NameNormalizer] = None,
    policy: Sequence[str] = DEFAULT_POLICY
) -> List[Book]:
    """Fetch an author's books with the sync client."""
    logger.info(f"Fetching books for {author}")
    responses = client.search_author(author, cache_db=cache_db, cache_ttl=cache_ttl)
    return select_author_books(responses, author, user_region, normalizer, policy)


async def fetch_many_author_books(
    async_client,
    authors: List[str],
    user_region: Optional[str] = "US",
    normalizer: Optional[NameNormalizer] = None,
    policy: Sequence[str] = DEFAULT_POLICY
) -> Dict[str, List[Book]]:
    """Fetch several authors' books in parallel with the async client."""
    responses_by_author = await async_client.search_authors(authors)
    return {
        author: select_author_books(responses, author, user_region, normalizer, policy)
        for author, responses in responses_by_author.items()
    }


def verify_author(
    client,
    name: str,
    cache_db=None,
    normalizer: Optional[NameNormalizer] = None
) -> AuthorVerification:
    """Look an author up in the catalog and group the distinct matches."""
    responses = client.search_author(name, cache_db=cache_db)
    records = parse_records_response(merge_responses(responses))
    return find_author_candidates(records, name, normalizer)
