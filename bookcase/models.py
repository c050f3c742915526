"""Data models for catalog records and books."""
from dataclasses import dataclass, field
from typing import Optional, List, Tuple


@dataclass(frozen=True)
class CatalogRecord:
    """A single raw result from the books catalog."""
    id: str
    title: str
    author_names: Tuple[str, ...] = ()
    published_date: Optional[str] = None
    description: str = ""
    language: str = "en"
    page_count: int = 0
    categories: Tuple[str, ...] = ()
    thumbnail_url: Optional[str] = None
    isbn13: Optional[str] = None
    isbn10: Optional[str] = None
    publisher: Optional[str] = None

    @property
    def primary_author(self) -> str:
        """First listed author, or empty string."""
        return self.author_names[0] if self.author_names else ""


@dataclass
class Book:
    """Canonical book representation."""
    id: str
    title: str
    author: str
    authors: List[str] = field(default_factory=list)
    published_date: Optional[str] = None
    description: str = ""
    language: str = "en"
    page_count: int = 0
    categories: List[str] = field(default_factory=list)
    thumbnail: Optional[str] = None
    isbn13: Optional[str] = None
    isbn10: Optional[str] = None
    publisher: Optional[str] = None

    @property
    def primary_author(self) -> str:
        """Singular author field, falling back to the first of authors."""
        if self.author and self.author.strip():
            return self.author
        return self.authors[0] if self.authors else ""

    @property
    def status_key(self) -> str:
        """Lookup key for read/want/pass status and ratings."""
        return f"{self.title}-{self.primary_author}"

    @property
    def isbn(self) -> Optional[str]:
        return self.isbn13 or self.isbn10

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else self.author or "Unknown"

    @property
    def categories_str(self) -> str:
        """Format categories as comma-separated string."""
        return ", ".join(self.categories) if self.categories else "None"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "authors": list(self.authors),
            "published_date": self.published_date,
            "description": self.description,
            "language": self.language,
            "page_count": self.page_count,
            "categories": list(self.categories),
            "thumbnail": self.thumbnail,
            "isbn13": self.isbn13,
            "isbn10": self.isbn10,
            "publisher": self.publisher,
        }
