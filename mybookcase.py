#!/usr/bin/env python3
"""My Bookcase CLI - favorite authors, their books, and what you thought of them."""
import argparse
import asyncio
import csv
import sys
import json
from typing import List
from tabulate import tabulate
from bookcase.client import GoogleBooksClient
from bookcase.async_client import AsyncGoogleBooksClient
from bookcase.bibliography import fetch_author_books, fetch_many_author_books, verify_author
from bookcase.database import Database, STATUSES
from bookcase.names import NameNormalizer, author_in_list, load_corrections, names_match
from bookcase.shelf import SORT_OPTIONS, book_rating, book_status, filter_books, sort_books
from bookcase.config import Config
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def build_normalizer(config: Config) -> NameNormalizer:
    """Default correction table, extended from CORRECTIONS_FILE if set."""
    if config.CORRECTIONS_FILE:
        return NameNormalizer.with_extra(load_corrections(config.CORRECTIONS_FILE))
    return NameNormalizer()


def make_client(config: Config) -> GoogleBooksClient:
    return GoogleBooksClient(
        api_key=config.GOOGLE_BOOKS_API_KEY,
        timeout=config.DEFAULT_TIMEOUT,
        max_retries=config.DEFAULT_MAX_RETRIES
    )


def store_books(db: Database, books) -> int:
    stored = sum(1 for book in books if db.insert_book(book))
    logger.info(f"Stored {stored} books in database")
    return stored


def find_book(db: Database, title: str, author: str):
    """Look a book up by exact status key, then by title and matching author."""
    book = db.get_book(f"{title}-{author}")
    if book:
        return book

    for candidate in db.find_books_by_title(title):
        if names_match(candidate.primary_author, author):
            return candidate
    return None


def remove_matching_author(db: Database, name: str) -> List[str]:
    """
    Remove every listed author matching `name` along with their stored books.

    Returns:
        The removed author names (empty if none matched)
    """
    matches = [a for a in db.list_authors() if names_match(a, name)]
    if not matches:
        return []

    stored = db.search_books(limit=None)
    for author in matches:
        db.remove_author(author)
        keys = [b.status_key for b in stored if names_match(b.primary_author, author)]
        deleted = db.delete_books(keys)
        logger.info(f"Removed {author} and {deleted} books")

    return matches


def add_author(args, config: Config):
    """Add an author and fetch their books."""
    normalizer = build_normalizer(config)
    name = normalizer.normalize(args.name)
    if not name:
        logger.error("Author name must not be blank")
        sys.exit(1)

    db = setup_database(config)

    try:
        if author_in_list(name, db.list_authors(), normalizer):
            logger.info(f"{name} is already on your list")
            return

        db.add_author(name)

        with make_client(config) as client:
            books = fetch_author_books(
                client,
                name,
                user_region=args.region or config.USER_REGION,
                cache_db=None if args.no_cache else db,
                cache_ttl=config.DEFAULT_CACHE_TTL,
                normalizer=normalizer,
                policy=config.dedup_policy
            )

        store_books(db, books)
        display_books(books, {}, args.format)

    finally:
        db.close()


def remove_author(args, config: Config):
    """Remove an author and their stored books."""
    db = setup_database(config)

    try:
        if not remove_matching_author(db, args.name):
            logger.error(f"{args.name} is not on your list")
            sys.exit(1)

    finally:
        db.close()


def list_authors(args, config: Config):
    db = setup_database(config)

    try:
        for i, author in enumerate(db.list_authors(), 1):
            print(f"{i}. {author}")
    finally:
        db.close()


def verify(args, config: Config):
    """Show which distinct catalog authors match a name."""
    normalizer = build_normalizer(config)

    with make_client(config) as client:
        verification = verify_author(client, normalizer.normalize(args.name), normalizer=normalizer)

    if not verification.is_found:
        print(f"\nNo catalog author matches '{args.name}'\n")
        return

    rows = [
        [
            i,
            candidate.name,
            len(candidate.records),
            ", ".join(r.title for r in candidate.records[:3])
        ]
        for i, candidate in enumerate(verification.candidates, 1)
    ]
    print("\n" + tabulate(rows, headers=["#", "Author", "Books", "Examples"], tablefmt="grid"))

    if verification.is_ambiguous:
        print("\nSeveral different authors match this name; add the exact one you mean.\n")


async def refresh_async(args, config: Config):
    """Re-fetch every author's books in parallel."""
    normalizer = build_normalizer(config)
    db = setup_database(config)

    try:
        authors = db.list_authors()
        async with AsyncGoogleBooksClient(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.DEFAULT_TIMEOUT,
            max_concurrent=args.parallel
        ) as client:
            logger.info(f"Refreshing {len(authors)} authors ({args.parallel} parallel requests)")
            books_by_author = await fetch_many_author_books(
                client,
                authors,
                user_region=config.USER_REGION,
                normalizer=normalizer,
                policy=config.dedup_policy
            )

        for author, books in books_by_author.items():
            logger.info(f"{author}: {len(books)} books")
            store_books(db, books)

    finally:
        db.close()


def refresh_sync(args, config: Config):
    """Re-fetch every author's books one after another."""
    normalizer = build_normalizer(config)
    db = setup_database(config)

    try:
        with make_client(config) as client:
            for author in db.list_authors():
                books = fetch_author_books(
                    client,
                    author,
                    user_region=config.USER_REGION,
                    cache_db=None if args.no_cache else db,
                    cache_ttl=config.DEFAULT_CACHE_TTL,
                    normalizer=normalizer,
                    policy=config.dedup_policy
                )
                store_books(db, books)

    finally:
        db.close()


def list_books(args, config: Config):
    db = setup_database(config)

    try:
        statuses = db.get_statuses()
        books = filter_books(db.search_books(args.query or "", limit=args.limit), statuses, args.status, args.author)
        display_books(sort_books(books, statuses, args.sort), statuses, args.format)
    finally:
        db.close()


def mark_book(args, config: Config):
    db = setup_database(config)

    try:
        book = find_book(db, args.title, args.author)
        if not book:
            logger.error(f"No stored book '{args.title}' by {args.author}")
            sys.exit(1)

        if args.command == "mark":
            db.set_status(book.status_key, args.status)
            logger.info(f"Marked '{book.title}' as {args.status}")
        elif args.command == "rate":
            db.set_rating(book.status_key, args.rating)
            logger.info(f"Rated '{book.title}' {args.rating}/5")
        else:
            db.clear_status(book.status_key)
            logger.info(f"Cleared status of '{book.title}'")

    finally:
        db.close()


def display_books(books, statuses, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["Title", "Author", "Published", "Lang", "Status", "Rating"]
        rows = [
            [
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.primary_author[:30] + "..." if len(book.primary_author) > 30 else book.primary_author,
                book.published_date or "Unknown",
                book.language,
                book_status(book, statuses) or "",
                book_rating(book, statuses) or ""
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([export_row(book, statuses) for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.primary_author}")


def export_row(book, statuses) -> dict:
    row = book.to_dict()
    row["status"] = book_status(book, statuses)
    row["rating"] = book_rating(book, statuses)
    return row


def show_stats(args, config: Config):
    """Show bookcase statistics."""
    db = setup_database(config)

    try:
        stats = db.get_stats()
        average = f"{stats['average_rating']:.1f}" if stats["average_rating"] is not None else "-"

        print("\n" + "=" * 50)
        print("BOOKCASE STATISTICS")
        print("=" * 50)
        print(f"Authors: {stats['total_authors']}")
        print(f"Books stored: {stats['total_books']}")
        print(f"Read: {stats['read']}  Want to read: {stats['want']}  Passed: {stats['pass']}")
        print(f"Rated: {stats['rated']} (average {average})")
        print(f"Cached API responses: {stats['cached_responses']}")
        print(f"Expired cache entries: {stats['expired_cache_entries']}")
        print("=" * 50 + "\n")

        if args.cleanup:
            deleted = db.cleanup_expired_cache()
            print(f"Cleaned up {deleted} expired cache entries\n")

    finally:
        db.close()


def export_data(args, config: Config):
    """Export the bookcase with statuses and ratings."""
    db = setup_database(config)

    try:
        statuses = db.get_statuses()
        books = db.search_books("", limit=args.limit or 10000)

        if args.format == "json":
            data = {
                "authors": db.list_authors(),
                "books": [export_row(book, statuses) for book in books],
            }

            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                logger.info(f"Exported {len(books)} books to {args.output}")
            else:
                print(json.dumps(data, indent=2))

        elif args.format == "csv":
            output_file = args.output or "bookcase_export.csv"
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(["Title", "Author", "Published", "Pages", "Categories", "Language", "Status", "Rating"])

                for book in books:
                    writer.writerow([
                        book.title,
                        book.primary_author,
                        book.published_date or "",
                        book.page_count or "",
                        book.categories_str,
                        book.language,
                        book_status(book, statuses) or "",
                        book_rating(book, statuses) or ""
                    ])

            logger.info(f"Exported {len(books)} books to {output_file}")

    finally:
        db.close()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="My Bookcase - track your favorite authors and their books",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add an author and fetch their books
  %(prog)s add-author "ann leckie"

  # Check whether a name is ambiguous in the catalog
  %(prog)s verify "Stephen King"

  # Mark and rate a book
  %(prog)s mark "Ancillary Justice" "Ann Leckie" read
  %(prog)s rate "Ancillary Justice" "Ann Leckie" 5

  # List what you still want to read
  %(prog)s books --status want --sort year

  # Export everything
  %(prog)s export --format json --output bookcase.json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    add_parser = subparsers.add_parser("add-author", help="Add an author and fetch their books")
    add_parser.add_argument("name", help="Author name")
    add_parser.add_argument("--region", help="Region for edition language preference (default: USER_REGION)")
    add_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    add_parser.add_argument("--no-cache", action="store_true", help="Disable caching")

    remove_parser = subparsers.add_parser("remove-author", help="Remove an author and their books")
    remove_parser.add_argument("name", help="Author name")

    subparsers.add_parser("authors", help="List your authors")

    verify_parser = subparsers.add_parser("verify", help="Show catalog authors matching a name")
    verify_parser.add_argument("name", help="Author name")

    refresh_parser = subparsers.add_parser("refresh", help="Re-fetch books for all authors")
    refresh_parser.add_argument("--parallel", type=int, default=Config.DEFAULT_PARALLEL, help="Concurrent requests")
    refresh_parser.add_argument("--no-cache", action="store_true", help="Disable caching")
    refresh_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")

    books_parser = subparsers.add_parser("books", help="List stored books")
    books_parser.add_argument("query", nargs="?", help="Title search")
    books_parser.add_argument("--status", choices=[*STATUSES, "unread"], help="Filter by status")
    books_parser.add_argument("--author", help="Filter by author")
    books_parser.add_argument("--sort", choices=SORT_OPTIONS, default="author", help="Sort order")
    books_parser.add_argument("--limit", type=int, default=1000, help="Max results")
    books_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    mark_parser = subparsers.add_parser("mark", help="Mark a book as read, want or pass")
    mark_parser.add_argument("title", help="Book title")
    mark_parser.add_argument("author", help="Book author")
    mark_parser.add_argument("status", choices=STATUSES, help="Reading status")

    rate_parser = subparsers.add_parser("rate", help="Rate a book from 1 to 5")
    rate_parser.add_argument("title", help="Book title")
    rate_parser.add_argument("author", help="Book author")
    rate_parser.add_argument("rating", type=int, choices=range(1, 6), help="Rating")

    unmark_parser = subparsers.add_parser("unmark", help="Clear a book's status and rating")
    unmark_parser.add_argument("title", help="Book title")
    unmark_parser.add_argument("author", help="Book author")

    stats_parser = subparsers.add_parser("stats", help="Show bookcase statistics")
    stats_parser.add_argument("--cleanup", action="store_true", help="Clean up expired cache")

    export_parser = subparsers.add_parser("export", help="Export bookcase data")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")
    export_parser.add_argument("--limit", type=int, help="Limit results")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    try:
        if args.command == "add-author":
            add_author(args, config)
        elif args.command == "remove-author":
            remove_author(args, config)
        elif args.command == "authors":
            list_authors(args, config)
        elif args.command == "verify":
            verify(args, config)
        elif args.command == "refresh":
            if args.use_async:
                asyncio.run(refresh_async(args, config))
            else:
                refresh_sync(args, config)
        elif args.command == "books":
            list_books(args, config)
        elif args.command in ("mark", "rate", "unmark"):
            mark_book(args, config)
        elif args.command == "stats":
            show_stats(args, config)
        elif args.command == "export":
            export_data(args, config)

    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
