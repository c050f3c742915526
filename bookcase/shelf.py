"""Filtering and sorting of stored books by reading status."""
from typing import Dict, List, Optional, Tuple

from bookcase.dedupe import parse_published_date
from bookcase.models import Book
from bookcase.names import last_name, names_match

SORT_OPTIONS = ("title", "author", "year", "rating")

Statuses = Dict[str, Tuple[Optional[str], Optional[int]]]


def book_status(book: Book, statuses: Statuses) -> Optional[str]:
    return statuses.get(book.status_key, (None, None))[0]


def book_rating(book: Book, statuses: Statuses) -> Optional[int]:
    return statuses.get(book.status_key, (None, None))[1]


def filter_books(
    books: List[Book],
    statuses: Statuses,
    status: Optional[str] = None,
    author: Optional[str] = None
) -> List[Book]:
    """
    Filter books by status and author.

    `status` may be "read", "want", "pass" or "unread" (no status yet).
    """
    result = []
    for book in books:
        current = book_status(book, statuses)
        if status == "unread" and current is not None:
            continue
        if status and status != "unread" and current != status:
            continue
        if author and not names_match(book.primary_author, author):
            continue
        result.append(book)
    return result


def sort_books(books: List[Book], statuses: Statuses, sort_by: str = "author") -> List[Book]:
    """Sort for display; unknown years and unrated books go last."""
    if sort_by == "title":
        return sorted(books, key=lambda b: b.title.lower())
    if sort_by == "author":
        return sorted(books, key=lambda b: (last_name(b.primary_author), b.title.lower()))
    if sort_by == "year":
        def year_key(book):
            published = parse_published_date(book.published_date)
            return (published is None, published.year if published else 0, book.title.lower())
        return sorted(books, key=year_key)
    if sort_by == "rating":
        return sorted(books, key=lambda b: (-(book_rating(b, statuses) or 0), b.title.lower()))
    raise ValueError(f"Unknown sort option: {sort_by}")
