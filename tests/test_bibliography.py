"""Tests for academia_cv.bibliography module."""

from conftest import make_bibtex, make_work

from academia_cv.bibliography import (
    export_bibtex,
    format_authors,
    format_entry,
    parse_bibtex,
    render_bibliography,
    sort_entries,
    split_authors,
    work_to_bibtex,
)

NAME_FIXES = [["meara", "Meara"], ["O?Meara", "O'Meara"]]


# ── Generation ────────────────────────────────────────────────────────────


def test_work_to_bibtex_article():
    work = make_work(55, "journal-article", "On <i>Anolis</i>", "2011",
                     venue="Evolution", authors=["Hans Müller", "Brian O'Meara"])
    work["external-ids"]["external-id"].append(
        {"external-id-type": "doi", "external-id-value": "10.1111/j.1558-5646.2011.01"}
    )

    bib = work_to_bibtex(work)

    assert bib.startswith("@article{Muller201155,")
    assert "author = {Müller, Hans and O'Meara, Brian}" in bib
    assert "title = {On Anolis}" in bib
    assert "journal = {Evolution}" in bib
    assert "doi = {10.1111/j.1558-5646.2011.01}" in bib


def test_work_to_bibtex_chapter_venue_is_booktitle():
    work = make_work(3, "book-chapter", "Ch", "2014", venue="Edited Volume")
    bib = work_to_bibtex(work)
    assert bib.startswith("@incollection{Unknown20143,")
    assert "booktitle = {Edited Volume}" in bib


def test_work_to_bibtex_unknown_type_is_misc():
    assert work_to_bibtex(make_work(1, "lecture-speech", "Talk", "")).startswith("@misc{UnknownNoYear1,")


# ── Parsing ───────────────────────────────────────────────────────────────


def test_parse_bibtex_basic():
    entries = parse_bibtex([make_bibtex("k1", "Paper on Trees", "2016")])

    assert len(entries) == 1
    entry = entries[0]
    assert entry["ENTRYTYPE"] == "article"
    assert entry["ID"] == "k1"
    assert entry["title"] == "Paper on Trees"
    assert entry["journal"] == "Evolution"


def test_parse_bibtex_drops_duplicate_titles():
    entries = parse_bibtex([
        make_bibtex("k1", "Same Title", "2016"),
        make_bibtex("k2", "Same title.", "2016"),
        make_bibtex("k3", "Other Title", "2015"),
    ])
    assert [e["ID"] for e in entries] == ["k1", "k3"]


def test_parse_bibtex_strips_grouping_braces():
    bib = "@article{k,\n  author = {Doe, Jane},\n  title = {The {DNA} of\n    {Anolis}},\n  year = {2010}\n}"
    entry = parse_bibtex([bib])[0]
    assert entry["title"] == "The DNA of Anolis"


def test_parse_bibtex_empty():
    assert parse_bibtex([]) == []


# ── Names ─────────────────────────────────────────────────────────────────


def test_split_authors_both_name_orders():
    assert split_authors("O'Meara, Brian C. and Jane Doe") == [("O'Meara", "Brian C."), ("Doe", "Jane")]


def test_format_authors():
    assert format_authors("O'Meara, Brian C.") == "O'Meara, B. C."
    assert format_authors("Doe, Jane and O'Meara, Brian") == "Doe, J. and B. O'Meara"
    assert format_authors("Doe, Jane and Roe, Rick and Poe, Jean-Paul") == "Doe, J., R. Roe, and J.-P. Poe"
    assert format_authors("Consortium") == "Consortium"
    assert format_authors("") == ""


# ── Sorting ───────────────────────────────────────────────────────────────


def test_sort_entries_year_then_author_then_title_descending():
    entries = [
        {"year": "2010", "author": "Abe, A.", "title": "B"},
        {"year": "2012", "author": "Abe, A.", "title": "A"},
        {"year": "2010", "author": "Zed, Z.", "title": "A"},
        {"year": "2010", "author": "Abe, A.", "title": "C"},
        {"title": "Undated"},
    ]
    ordered = [(e.get("year", ""), e["title"]) for e in sort_entries(entries)]
    assert ordered == [("2012", "A"), ("2010", "A"), ("2010", "C"), ("2010", "B"), ("", "Undated")]


# ── Formatting ────────────────────────────────────────────────────────────


def _article():
    return {
        "ENTRYTYPE": "article",
        "ID": "k",
        "author": "Doe, Jane and O'Meara, Brian C. and Smith, Al",
        "title": "Tree Shapes",
        "journal": "Evolution",
        "volume": "60",
        "number": "2",
        "pages": "100--110",
        "year": "2006",
        "url": "https://example.org/paper",
        "doi": "10.1000/k",
    }


def test_format_article():
    text = format_entry(_article())
    assert text == 'Doe, J., B. C. O\'Meara, and A. Smith (2006). "Tree Shapes". In: _Evolution_ 60.2, pp. 100-110.'


def test_url_and_doi_always_suppressed():
    text = format_entry(_article(), suppressed=[])
    assert "example.org" not in text
    assert "10.1000" not in text


def test_configured_fields_suppressed():
    text = format_entry(_article(), suppressed=["journal"])
    assert text == 'Doe, J., B. C. O\'Meara, and A. Smith (2006). "Tree Shapes".'


def test_format_book():
    entry = {"ENTRYTYPE": "book", "author": "O'Meara, Brian", "title": "Big Book",
             "publisher": "Springer", "address": "Berlin", "year": "2010"}
    assert format_entry(entry) == "O'Meara, B. (2010). _Big Book_. Springer, Berlin."


def test_format_chapter(full_works):
    entry = parse_bibtex([full_works["103"]["citation"]["citation-value"]])[0]
    assert format_entry(entry) == 'O\'Meara, B. (2014). "A Chapter". In: _Modern Phylogenetics_. Springer.'


def test_format_without_year_or_authors():
    assert format_entry({"ENTRYTYPE": "misc", "title": "Anon"}) == '(n.d.). "Anon".'


# ── Rendering ─────────────────────────────────────────────────────────────


def test_render_bibliography_cleans_sorts_and_emphasizes():
    citations = [
        make_bibtex("old", "Older Paper", "2005", authors="O{'}meara, Brian"),
        make_bibtex("new", "Newer Paper", "2015", authors="Doe, Jane and O?meara, Brian"),
    ]

    text = render_bibliography(citations, NAME_FIXES, ["url", "doi"], "O'Meara")
    first, second = text.split("\n\n")

    assert first.startswith("Doe, J. and B. **O'Meara** (2015).")
    assert second.startswith("**O'Meara**, B. (2005).")
    assert "doi" not in text


def test_render_bibliography_empty():
    assert render_bibliography([], NAME_FIXES) == ""


def test_export_bibtex_applies_fixes():
    out = export_bibtex([make_bibtex("k", "T", "2010", authors="O?meara, Brian")], NAME_FIXES)
    assert "author = {O'Meara, Brian}" in out
    assert out.endswith("}\n")


def test_export_bibtex_empty():
    assert export_bibtex([]) == ""
