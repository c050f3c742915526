"""Tests for parsing functions."""
from bookcase.models import CatalogRecord
from bookcase.parse import (
    ensure_https,
    merge_responses,
    normalize_language,
    parse_books_response,
    parse_record,
    parse_records_response,
    to_book,
)


def test_parse_record_complete():
    """Test parsing a volume with all fields present."""
    item = {
        "id": "abc123",
        "volumeInfo": {
            "title": "Hamnet",
            "authors": ["Maggie O'Farrell", "Someone Else"],
            "publishedDate": "2020-03-31",
            "description": "A novel inspired by the son of Shakespeare",
            "pageCount": 384,
            "categories": ["Fiction"],
            "language": "en",
            "publisher": "Tinder Press",
            "industryIdentifiers": [
                {"type": "ISBN_10", "identifier": "1472223799"},
                {"type": "ISBN_13", "identifier": "9781472223791"}
            ],
            "imageLinks": {
                "smallThumbnail": "http://example.com/small.jpg",
                "thumbnail": "http://example.com/thumb.jpg"
            }
        }
    }

    record = parse_record(item)

    assert record is not None
    assert record.id == "abc123"
    assert record.title == "Hamnet"
    assert record.author_names == ("Maggie O'Farrell", "Someone Else")
    assert record.primary_author == "Maggie O'Farrell"
    assert record.page_count == 384
    assert record.isbn13 == "9781472223791"
    assert record.isbn10 == "1472223799"
    assert record.thumbnail_url == "https://example.com/thumb.jpg"
    assert record.publisher == "Tinder Press"


def test_parse_record_missing_fields():
    """Test parsing a volume with missing optional fields."""
    item = {
        "id": "xyz789",
        "volumeInfo": {
            "title": "Mystery Book"
        }
    }

    record = parse_record(item)

    assert record is not None
    assert record.author_names == ()
    assert record.description == ""
    assert record.page_count == 0
    assert record.language == "en"
    assert record.thumbnail_url is None
    assert record.isbn13 is None


def test_parse_record_no_id():
    """Test that a volume without ID returns None."""
    assert parse_record({"volumeInfo": {"title": "No ID Book"}}) is None


def test_parse_record_bad_page_count():
    """Test that malformed data is dropped instead of raising."""
    item = {"id": "1", "volumeInfo": {"title": "Odd", "pageCount": "many"}}

    assert parse_record(item) is None


def test_normalize_language():
    assert normalize_language("EN") == "en"
    assert normalize_language("eng") == "en"
    assert normalize_language(None) == "en"
    assert normalize_language("fr") == "fr"


def test_ensure_https():
    assert ensure_https("http://books.google.com/x") == "https://books.google.com/x"
    assert ensure_https("https://books.google.com/x") == "https://books.google.com/x"
    assert ensure_https("") is None


def test_parse_records_response():
    """Test parsing complete API response."""
    response = {
        "items": [
            {"id": "1", "volumeInfo": {"title": "Book 1"}},
            {"volumeInfo": {"title": "No ID"}},
            {"id": "2", "volumeInfo": {"title": "Book 2"}}
        ]
    }

    records = parse_records_response(response)

    assert [r.title for r in records] == ["Book 1", "Book 2"]
    assert parse_records_response({}) == []


def test_merge_responses():
    """Test combining several responses."""
    merged = merge_responses([
        {"items": [{"id": "1"}]},
        None,
        {"totalItems": 0},
        {"items": [{"id": "2"}, {"id": "3"}]}
    ])

    assert [item["id"] for item in merged["items"]] == ["1", "2", "3"]


def test_to_book():
    """Test conversion of a record into a book."""
    record = CatalogRecord(
        id="1",
        title="Ancillary Justice",
        author_names=("Ann Leckie",),
        published_date="2013",
        language="en",
        categories=("Fiction",),
    )

    book = to_book(record)

    assert book.author == "Ann Leckie"
    assert book.authors == ["Ann Leckie"]
    assert book.categories == ["Fiction"]
    assert book.status_key == "Ancillary Justice-Ann Leckie"


def test_to_book_drops_placeholders():
    """Test that author-less, placeholder and untitled records are dropped."""
    assert to_book(CatalogRecord(id="1", title="Orphan")) is None
    assert to_book(CatalogRecord(id="2", title="Orphan", author_names=("Unknown Author",))) is None
    assert to_book(CatalogRecord(id="3", title="  ", author_names=("Ann Leckie",))) is None


def test_parse_books_response():
    """Test parsing straight into books."""
    response = {
        "items": [
            {"id": "1", "volumeInfo": {"title": "Book 1", "authors": ["Ann Leckie"]}},
            {"id": "2", "volumeInfo": {"title": "Book 2"}}
        ]
    }

    books = parse_books_response(response)

    assert len(books) == 1
    assert books[0].id == "1"
