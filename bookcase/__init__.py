"""Author matching and book deduplication for a personal bookcase."""
from bookcase.dedupe import InvalidRecordError, deduplicate
from bookcase.models import Book, CatalogRecord
from bookcase.names import NameNormalizer, find_author_candidates, names_match, normalize

__all__ = [
    "Book",
    "CatalogRecord",
    "InvalidRecordError",
    "NameNormalizer",
    "deduplicate",
    "find_author_candidates",
    "names_match",
    "normalize",
]
