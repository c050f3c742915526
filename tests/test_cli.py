"""Tests for the CLI's book lookup and author removal helpers."""
from unittest.mock import MagicMock

import mybookcase
from bookcase.models import Book


def make_db(books=(), authors=()):
    db = MagicMock()
    db.get_book.return_value = None
    db.find_books_by_title.return_value = list(books)
    db.search_books.return_value = list(books)
    db.list_authors.return_value = list(authors)
    db.delete_books.side_effect = lambda keys: len(keys)
    return db


def test_find_book_exact_status_key():
    """Test that an exact status key is used before any title lookup."""
    db = make_db()
    dune = Book(id="1", title="Dune", author="Frank Herbert")
    db.get_book.return_value = dune

    assert mybookcase.find_book(db, "Dune", "Frank Herbert") is dune
    db.find_books_by_title.assert_not_called()


def test_find_book_by_title_and_matching_author():
    """Test the fallback through the title query and the name matcher."""
    it = Book(id="2", title="It", author="Stephen King")
    db = make_db(books=[Book(id="1", title="It", author="Ann Leckie"), it])

    assert mybookcase.find_book(db, "it", "steven king") is it
    db.find_books_by_title.assert_called_once_with("it")
    db.search_books.assert_not_called()


def test_find_book_missing():
    db = make_db(books=[Book(id="1", title="It", author="Ann Leckie")])

    assert mybookcase.find_book(db, "It", "Stephen King") is None


def test_remove_matching_author_deletes_variant_spellings():
    """Test that stored books are removed when their author matches, not only on equal case."""
    books = [
        Book(id="1", title="Carrie", author="Stephen King"),
        Book(id="2", title="It", author="Steven King"),
        Book(id="3", title="Misery", author="Stephen King Jr."),
        Book(id="4", title="Ancillary Justice", author="Ann Leckie"),
    ]
    db = make_db(books=books, authors=["Ann Leckie", "Stephen King"])

    assert mybookcase.remove_matching_author(db, "steven king") == ["Stephen King"]

    db.remove_author.assert_called_once_with("Stephen King")
    db.search_books.assert_called_once_with(limit=None)
    db.delete_books.assert_called_once_with(
        ["Carrie-Stephen King", "It-Steven King", "Misery-Stephen King Jr."]
    )


def test_remove_matching_author_not_listed():
    db = make_db(authors=["Ann Leckie"])

    assert mybookcase.remove_matching_author(db, "Frank Herbert") == []
    db.remove_author.assert_not_called()
    db.delete_books.assert_not_called()
