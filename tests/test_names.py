"""Tests for author name normalization and matching."""
import json

import pytest

from bookcase.models import CatalogRecord
from bookcase.names import (
    NameNormalizer,
    add_author,
    author_in_list,
    find_author_candidates,
    last_name,
    load_corrections,
    names_match,
    normalize,
    strip_suffix,
)


def test_normalize_capitalizes_words():
    """Test basic capitalization and trimming."""
    assert normalize("  ann leckie ") == "Ann Leckie"
    assert normalize("URSULA K. LE GUIN") == "Ursula K. Le Guin"


def test_normalize_apostrophes():
    """Test that apostrophe parts are capitalized independently."""
    assert normalize("o'farrell") == "O'Farrell"
    assert normalize("maggie o'farrell") == "Maggie O'Farrell"
    assert normalize("d'arcy o'neil'l") == "D'Arcy O'Neil'L"


def test_normalize_corrections():
    """Test the misspelling correction table."""
    assert normalize("steven king") == "Stephen King"
    assert normalize("phillip pullman") == "Philip Pullman"
    assert normalize("j k rowling") == "J.K. Rowling"
    assert normalize("JK ROWLING") == "J.K. Rowling"


def test_normalize_empty():
    """Test empty input."""
    assert normalize("") == ""
    assert normalize("   ") == ""


@pytest.mark.parametrize("name", [
    "j k rowling",
    "J.K. Rowling",
    "o'farrell",
    "  mark   twain  ",
    "STEPHEN KING JR.",
    "jean-paul sartre",
    "",
])
def test_normalize_idempotent(name):
    """Test that normalizing twice changes nothing."""
    once = normalize(name)
    assert normalize(once) == once


@pytest.mark.parametrize("name", [
    "\u0149",
    "\u0149a \u0149b",
    "\u00dfmith",
    "\ufb01tzgerald",
    "\u01c6ordje",
    "\u0130stanbul",
    "o'\u0149eill",
    "\u0391\u03a3\u03a3\u0391\u03a3",
])
def test_normalize_idempotent_unicode(name):
    """Test characters whose title case expands to several characters."""
    once = normalize(name)
    assert normalize(once) == once


def test_normalize_expanding_first_letter():
    """Test that only the first character of an expanded title case stays upper."""
    assert normalize("\u0149") == "\u02bcn"
    assert normalize("\u00dfmith") == "Ssmith"


def test_custom_corrections():
    """Test injecting a correction table."""
    normalizer = NameNormalizer({"terry pratchet": "Terry Pratchett"})

    assert normalizer.normalize("terry pratchet") == "Terry Pratchett"
    # Default table is replaced, not merged
    assert normalizer.normalize("steven king") == "Steven King"


def test_with_extra_keeps_defaults():
    """Test extending the default table."""
    normalizer = NameNormalizer.with_extra({"Terry Pratchet": "Terry Pratchett"})

    assert normalizer.normalize("terry pratchet") == "Terry Pratchett"
    assert normalizer.normalize("steven king") == "Stephen King"


def test_load_corrections(tmp_path):
    """Test loading corrections from a JSON file."""
    path = tmp_path / "corrections.json"
    path.write_text(json.dumps({"Iain M Banks": "Iain M. Banks"}))

    assert load_corrections(str(path)) == {"Iain M Banks": "Iain M. Banks"}


def test_load_corrections_rejects_list(tmp_path):
    """Test that a non-object corrections file is rejected."""
    path = tmp_path / "corrections.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError):
        load_corrections(str(path))


def test_strip_suffix():
    """Test generational suffix removal."""
    assert strip_suffix("Martin Luther King Jr.") == "Martin Luther King"
    assert strip_suffix("Kurt Vonnegut, Jr") == "Kurt Vonnegut"
    assert strip_suffix("Henry Ford II") == "Henry Ford"
    assert strip_suffix("Ivanov") == "Ivanov"


def test_names_match_examples():
    """Test matching verdicts."""
    assert names_match("Stephen King Jr.", "Stephen King")
    assert names_match("Stephen King", "Steven King")
    assert names_match("stephen king", "STEPHEN KING")
    assert not names_match("Ann Leckie", "Ann Patchett")


def test_names_match_suffix_does_not_apply_corrections():
    """Test that suffix-stripped names are compared as written, without corrections."""
    assert not names_match("Steven King Jr.", "Stephen King")
    assert names_match("Steven King Jr.", "Steven King")


def test_names_match_empty():
    """Test that blank names are equal but a bare suffix is not blank."""
    assert names_match("", "")
    assert names_match("  ", "")
    assert not names_match("Jr.", "")
    assert not names_match("Ann Leckie", "")


@pytest.mark.parametrize("a,b", [
    ("Stephen King Jr.", "Stephen King"),
    ("Ann Leckie", "Ann Patchett"),
    ("steven king", "Stephen King III"),
    ("", "Jr."),
])
def test_names_match_symmetric(a, b):
    """Test that argument order does not matter."""
    assert names_match(a, b) == names_match(b, a)


def test_last_name():
    """Test surname extraction."""
    assert last_name("Ursula K. Le Guin") == "guin"
    assert last_name("") == ""


def test_author_in_list():
    """Test list membership through the matcher."""
    authors = ["Stephen King", "Ann Leckie"]

    assert author_in_list("steven king", authors)
    assert not author_in_list("Ann Patchett", authors)


def test_add_author_sorted_by_last_name():
    """Test that added authors are normalized and sorted by surname."""
    authors = add_author(["Ann Leckie", "Stephen King"], "frank herbert")

    assert authors == ["Frank Herbert", "Stephen King", "Ann Leckie"]


def test_add_author_skips_duplicates():
    """Test that a matching author is not added twice."""
    authors = ["Stephen King"]

    assert add_author(authors, "steven king") == ["Stephen King"]
    assert add_author(authors, "   ") == ["Stephen King"]


def _record(record_id, author):
    return CatalogRecord(id=record_id, title=f"Book {record_id}", author_names=(author,))


def test_find_author_candidates_single():
    """Test that spelling variants of one author form a single candidate."""
    records = [
        _record("1", "Stephen King"),
        _record("2", "stephen king"),
        _record("3", "Steven King"),
        _record("4", "Ann Leckie"),
    ]

    verification = find_author_candidates(records, "Stephen King")

    assert verification.is_found
    assert not verification.is_ambiguous
    assert len(verification.candidates) == 1
    assert verification.candidates[0].name == "Stephen King"
    assert [r.id for r in verification.candidates[0].records] == ["1", "2", "3"]


def test_find_author_candidates_ambiguous():
    """Test that distinct normalized names are kept apart."""
    records = [
        _record("1", "Stephen King"),
        _record("2", "Stephen King Jr."),
        _record("3", "Stephen King"),
    ]

    verification = find_author_candidates(records, "Stephen King")

    assert verification.is_ambiguous
    assert [c.name for c in verification.candidates] == ["Stephen King", "Stephen King Jr."]
    assert [r.id for r in verification.candidates[0].records] == ["1", "3"]


def test_find_author_candidates_none():
    """Test that no match yields no candidates."""
    verification = find_author_candidates([_record("1", "Ann Leckie")], "Ann Patchett")

    assert not verification.is_found
    assert not verification.is_ambiguous
