"""BibTeX handling for CV reference lists.

Parses cleaned ORCID citations with bibtexparser, drops duplicates, sorts
newest first and renders an author-year reference list in Markdown. Works
whose ORCID entry carries no BibTeX citation get one generated from their
metadata, so every journal article and book reaches the list.
"""

import html
import logging
import re
import unicodedata

import bibtexparser
from bibtexparser.bparser import BibTexParser
from bibtexparser.customization import convert_to_unicode

from .normalize import clean_citations, collapse_whitespace, strip_html_tags

logger = logging.getLogger("academia_cv.bibliography")


# ── ORCID type → BibTeX entry type ──────────────────────────────────────

ORCID_TO_BIBTEX_TYPE = {
    "journal-article": "article",
    "book": "book",
    "edited-book": "book",
    "book-chapter": "incollection",
}

# Never rendered, whatever the configuration says
ALWAYS_SUPPRESSED = frozenset({"url", "doi"})

_AUTHOR_SPLIT_RE = re.compile(r'\s+and\s+', re.IGNORECASE)


# ── Generation from ORCID metadata ──────────────────────────────────────

def _cite_key(last_name: str, year: str, put_code) -> str:
    """Stable cite key: LastName + Year + put-code (ASCII letters only in the name)."""
    clean_name = unicodedata.normalize("NFKD", last_name)
    clean_name = clean_name.encode("ascii", "ignore").decode("ascii")
    clean_name = re.sub(r"[^a-zA-Z]", "", clean_name) or "Unknown"
    return f"{clean_name}{year or 'NoYear'}{put_code or ''}"


def _format_authors_bibtex(raw_authors: list[str]) -> str:
    """Format author list for BibTeX: 'Last, First and Last, First and ...'"""
    formatted = []
    for name in raw_authors:
        parts = html.unescape(name).split()
        if len(parts) > 1:
            formatted.append(f"{parts[-1]}, {' '.join(parts[:-1])}")
        elif parts:
            formatted.append(parts[0])
    return " and ".join(formatted)


def work_to_bibtex(work: dict) -> str:
    """Generate a BibTeX entry string from an ORCID work dict."""
    entry_type = ORCID_TO_BIBTEX_TYPE.get((work.get("type") or "").lower(), "misc")

    contributors = (work.get("contributors") or {}).get("contributor") or []
    raw_authors = []
    for contributor in contributors:
        name = ((contributor or {}).get("credit-name") or {}).get("value")
        if name:
            raw_authors.append(name)

    title = ((work.get("title") or {}).get("title") or {}).get("value") or ""
    venue = (work.get("journal-title") or {}).get("value") or ""
    year = ((work.get("publication-date") or {}).get("year") or {}).get("value") or ""

    doi = ""
    for eid in (work.get("external-ids") or {}).get("external-id") or []:
        if eid and eid.get("external-id-type") == "doi" and eid.get("external-id-value"):
            doi = eid["external-id-value"]
            break

    last_name = raw_authors[0].split()[-1] if raw_authors else "Unknown"
    fields = []
    if raw_authors:
        fields.append(f"  author = {{{_format_authors_bibtex(raw_authors)}}}")
    if title:
        fields.append(f"  title = {{{strip_html_tags(html.unescape(title))}}}")
    if venue:
        venue_field = {"article": "journal", "incollection": "booktitle"}.get(entry_type, "publisher")
        fields.append(f"  {venue_field} = {{{html.unescape(venue)}}}")
    if year:
        fields.append(f"  year = {{{year}}}")
    if doi:
        fields.append(f"  doi = {{{doi}}}")

    cite_key = _cite_key(last_name, year, work.get("put-code"))
    return f"@{entry_type}{{{cite_key},\n" + ",\n".join(fields) + "\n}"


# ── Parsing ──────────────────────────────────────────────────────────────

def _clean_field(value: str) -> str:
    """Drop BibTeX grouping braces and collapse whitespace."""
    return collapse_whitespace(value.replace("{", "").replace("}", ""))


def parse_bibtex(citations: list[str]) -> list[dict]:
    """Parse BibTeX strings into entry dicts, dropping duplicate titles.

    Returns:
        List of bibtexparser entry dicts (lower-case field names plus
        ENTRYTYPE and ID) with braces removed and LaTeX accents decoded
    """
    if not citations:
        return []

    parser = BibTexParser(common_strings=True)
    parser.ignore_nonstandard_types = False
    parser.customization = convert_to_unicode
    database = bibtexparser.loads("\n\n".join(citations), parser=parser)

    entries = []
    seen_titles = set()
    for entry in database.entries:
        cleaned = {
            key: (_clean_field(value) if isinstance(value, str) and key not in ("ENTRYTYPE", "ID") else value)
            for key, value in entry.items()
        }
        title_key = cleaned.get("title", "").lower().strip(" .")
        if title_key and title_key in seen_titles:
            logger.info(f"Skipping duplicate entry: {cleaned.get('title', '')[:80]}")
            continue
        seen_titles.add(title_key)
        entries.append(cleaned)

    if len(database.entries) < len(citations):
        logger.warning(f"Parsed {len(database.entries)} BibTeX entries from {len(citations)} citations")

    return entries


# ── Names ────────────────────────────────────────────────────────────────

def split_authors(author_field: str) -> list[tuple[str, str]]:
    """Split a BibTeX author field into (family, given) pairs."""
    authors = []
    for name in _AUTHOR_SPLIT_RE.split(author_field or ""):
        name = name.strip()
        if not name:
            continue
        if "," in name:
            family, _, given = name.partition(",")
        else:
            parts = name.split()
            family, given = parts[-1], " ".join(parts[:-1])
        authors.append((family.strip(), given.strip()))
    return authors


def _initials(given: str) -> str:
    """'Brian Charles' -> 'B. C.', 'Jean-Paul' -> 'J.-P.'"""
    initials = []
    for token in given.split():
        hyphenated = [p for p in token.split("-") if p]
        initials.append("-".join(f"{p[0]}." for p in hyphenated))
    return " ".join(initials)


def format_authors(author_field: str) -> str:
    """Author-year name list: first author inverted, the rest given-first."""
    names = []
    for i, (family, given) in enumerate(split_authors(author_field)):
        initials = _initials(given)
        if not initials:
            names.append(family)
        elif i == 0:
            names.append(f"{family}, {initials}")
        else:
            names.append(f"{initials} {family}")

    if len(names) <= 1:
        return "".join(names)
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return ", ".join(names[:-1]) + f", and {names[-1]}"


# ── Sorting and rendering ───────────────────────────────────────────────

def _year_value(entry: dict) -> int:
    match = re.search(r'\d{4}', entry.get("year", ""))
    return int(match.group()) if match else 0


def sort_entries(entries: list[dict]) -> list[dict]:
    """Sort by year, then first-author family name, then title; all descending."""
    def key(entry):
        authors = split_authors(entry.get("author", ""))
        family = authors[0][0].lower() if authors else ""
        return (_year_value(entry), family, entry.get("title", "").lower())

    return sorted(entries, key=key, reverse=True)


def _pages(pages: str) -> str:
    pages = pages.replace("--", "-")
    return f"pp. {pages}" if "-" in pages else f"p. {pages}"


def format_entry(entry: dict, suppressed: list[str] | None = None) -> str:
    """Render one entry in author-year Markdown style.

    Args:
        entry: Parsed entry dict
        suppressed: Field names to leave out (URL and DOI are always left out)
    """
    hidden = ALWAYS_SUPPRESSED | {f.lower() for f in (suppressed or [])}
    field = {k: v for k, v in entry.items() if k not in hidden and v}.get

    authors = format_authors(field("author", ""))
    year = field("year", "n.d.")
    title = field("title", "")
    entry_type = entry.get("ENTRYTYPE", "misc").lower()

    text = f"{authors} ({year})." if authors else f"({year})."

    if entry_type == "book":
        if title:
            text += f" _{title}_."
        publisher = ", ".join(p for p in (field("publisher"), field("address")) if p)
        if publisher:
            text += f" {publisher}."
        return text

    if title:
        text += f' "{title}".'

    if entry_type == "article":
        venue = field("journal")
        if venue:
            text += f" In: _{venue}_"
            volume = field("volume")
            if volume:
                number = field("number")
                text += f" {volume}.{number}" if number else f" {volume}"
            pages = field("pages")
            text += f", {_pages(pages)}." if pages else "."
    elif entry_type in ("incollection", "inbook", "inproceedings"):
        venue = field("booktitle")
        if venue:
            text += f" In: _{venue}_."
        editors = field("editor")
        if editors:
            text += f" Ed. by {format_authors(editors)}."
        tail = ", ".join(p for p in (field("publisher"), _pages(field("pages")) if field("pages") else "") if p)
        if tail:
            text += f" {tail}."
    else:
        venue = field("journal") or field("booktitle") or field("publisher")
        if venue:
            text += f" _{venue}_."

    return text


def emphasize(text: str, name: str) -> str:
    """Render every occurrence of name in bold."""
    if not name:
        return text
    return text.replace(name, f"**{name}**")


def render_bibliography(
    citations: list[str],
    name_fixes: list | None = None,
    suppressed: list[str] | None = None,
    emphasis_name: str = "",
) -> str:
    """Clean, parse, sort and render citations as a Markdown reference list."""
    entries = sort_entries(parse_bibtex(clean_citations(citations, name_fixes)))
    return "\n\n".join(emphasize(format_entry(e, suppressed), emphasis_name) for e in entries)


def export_bibtex(citations: list[str], name_fixes: list | None = None) -> str:
    """Cleaned .bib file content for the given citations."""
    cleaned = clean_citations(citations, name_fixes)
    if not cleaned:
        return ""
    return "\n\n".join(c.strip() for c in cleaned) + "\n"
