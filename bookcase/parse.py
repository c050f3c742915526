"""Parse and normalize Google Books API responses."""
from typing import Dict, Any, Iterable, List, Optional
import logging

from bookcase.models import Book, CatalogRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_AUTHORS = {"unknown author", "unknown", "anonymous"}


def normalize_language(language: Optional[str]) -> str:
    """Lowercase an ISO language code; empty becomes 'en'."""
    code = (language or "").strip().lower()
    if not code:
        return "en"
    if code == "eng":
        return "en"
    return code


def ensure_https(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def _identifier(volume_info: Dict[str, Any], kind: str) -> Optional[str]:
    for ident in volume_info.get("industryIdentifiers") or []:
        if ident.get("type") == kind and ident.get("identifier"):
            return ident["identifier"]
    return None


def parse_record(item: Dict[str, Any]) -> Optional[CatalogRecord]:
    """
    Parse a single volume item from Google Books API.

    Args:
        item: Single item from Google Books API response

    Returns:
        CatalogRecord or None if parsing fails
    """
    try:
        volume_info = item.get("volumeInfo") or {}

        record_id = item.get("id", "")
        if not record_id:
            return None

        # Extract thumbnail (prefer higher quality)
        image_links = volume_info.get("imageLinks") or {}
        thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")

        authors = [a for a in volume_info.get("authors") or [] if isinstance(a, str)]
        categories = [c for c in volume_info.get("categories") or [] if isinstance(c, str)]

        return CatalogRecord(
            id=str(record_id),
            title=volume_info.get("title") or "",
            author_names=tuple(authors),
            published_date=volume_info.get("publishedDate"),
            description=volume_info.get("description") or "",
            language=normalize_language(volume_info.get("language")),
            page_count=max(int(volume_info.get("pageCount") or 0), 0),
            categories=tuple(categories),
            thumbnail_url=ensure_https(thumbnail),
            isbn13=_identifier(volume_info, "ISBN_13"),
            isbn10=_identifier(volume_info, "ISBN_10"),
            publisher=volume_info.get("publisher"),
        )
    except (AttributeError, TypeError, ValueError) as e:
        # Log but don't crash - APIs can be unpredictable
        logger.warning(f"Failed to parse catalog item: {e}")
        return None


def parse_records_response(response_json: Dict[str, Any]) -> List[CatalogRecord]:
    """
    Parse full Google Books API response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of CatalogRecord objects (empty if no items found)
    """
    items = (response_json or {}).get("items") or []
    records = []

    for item in items:
        record = parse_record(item)
        if record:
            records.append(record)

    return records


def merge_responses(responses: Iterable[Optional[Dict[str, Any]]]) -> Dict[str, Any]:
    """Combine the items of several API responses into one response."""
    all_items = []
    for resp in responses:
        if resp:
            all_items.extend(resp.get("items") or [])
    return {"items": all_items}


def is_placeholder_author(name: Optional[str]) -> bool:
    return not name or not name.strip() or name.strip().lower() in PLACEHOLDER_AUTHORS


def to_book(record: CatalogRecord) -> Optional[Book]:
    """
    Convert a catalog record into a Book.

    Records without a title or with a missing/placeholder primary author
    are dropped (None).
    """
    if not record.title.strip() or is_placeholder_author(record.primary_author):
        return None

    return Book(
        id=record.id,
        title=record.title,
        author=record.primary_author,
        authors=list(record.author_names),
        published_date=record.published_date,
        description=record.description,
        language=record.language,
        page_count=record.page_count,
        categories=list(record.categories),
        thumbnail=record.thumbnail_url,
        isbn13=record.isbn13,
        isbn10=record.isbn10,
        publisher=record.publisher,
    )


def parse_books_response(response_json: Dict[str, Any]) -> List[Book]:
    """Parse an API response straight into books, dropping invalid entries."""
    books = []

    for record in parse_records_response(response_json):
        book = to_book(record)
        if book:
            books.append(book)

    return books
