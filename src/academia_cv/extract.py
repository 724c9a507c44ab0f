"""Normalize raw ORCID JSON into the flat record collections of a ProfileRecord."""

import html
import logging

from .bibliography import work_to_bibtex
from .normalize import strip_html_tags
from .schema import (
    BOOK_TYPES,
    JOURNAL_ARTICLE_TYPES,
    AffiliationEntry,
    Citation,
    FundingAward,
    OrcidRecord,
    ProfileRecord,
)

logger = logging.getLogger("academia_cv.extract")


def _value(obj: dict | None, *path: str) -> str:
    """Walk nested ORCID wrappers, returning "" as soon as a level is missing."""
    for key in path:
        if not isinstance(obj, dict):
            return ""
        obj = obj.get(key)
    if obj is None:
        return ""
    return str(obj)


def year_sort_key(year: str) -> tuple[bool, int]:
    """Sort key placing entries without a usable year after all dated ones."""
    try:
        return (True, int(year))
    except (TypeError, ValueError):
        return (False, 0)


def extract_citation(work: dict) -> Citation:
    """Build a Citation from a full work (or a work summary).

    Uses ORCID's embedded BibTeX when present, otherwise generates an entry
    from the work metadata.
    """
    title = html.unescape(strip_html_tags(_value(work, "title", "title", "value")))
    year = _value(work, "publication-date", "year", "value")
    work_type = (work.get("type") or "").lower()

    citation = work.get("citation") or {}
    citation_value = citation.get("citation-value") or ""
    if (citation.get("citation-type") or "").lower() == "bibtex" and citation_value.strip():
        return {
            "citation": citation_value.strip(),
            "work_type": work_type,
            "title": title,
            "year": year,
            "source": "orcid",
        }

    return {
        "citation": work_to_bibtex(work),
        "work_type": work_type,
        "title": title,
        "year": year,
        "source": "generated",
    }


def extract_citations(record: OrcidRecord, works: dict[str, dict] | None = None) -> tuple[list, list]:
    """Split the record's works into journal-article and book citations.

    Args:
        record: ORCID record
        works: Full works keyed by put-code; groups without one fall back
            to their work summary

    Returns:
        Tuple of (journals, books); other work types are not part of the CV
    """
    works = works or {}
    journals = []
    books = []

    groups = ((record.get("activities-summary") or {}).get("works") or {}).get("group", [])
    for group in groups:
        summaries = group.get("work-summary") or []
        if not summaries:
            continue
        summary = summaries[0]
        work = works.get(str(summary.get("put-code")), summary)

        try:
            citation = extract_citation(work)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed work entry: {type(e).__name__}")
            continue

        if citation["work_type"] in JOURNAL_ARTICLE_TYPES:
            journals.append(citation)
        elif citation["work_type"] in BOOK_TYPES:
            books.append(citation)

    generated = sum(1 for c in journals + books if c["source"] == "generated")
    if generated:
        logger.info(f"{generated} works had no ORCID BibTeX citation; generated from metadata")

    return journals, books


def extract_affiliation_items(record: OrcidRecord, section_name: str, summary_key: str) -> list[AffiliationEntry]:
    """Extract items from an affiliation-based section (employments, educations)."""
    items = []
    section = (record.get("activities-summary") or {}).get(section_name) or {}

    for group in section.get("affiliation-group", []):
        for summary_wrapper in group.get("summaries", []):
            summary = summary_wrapper.get(summary_key)
            if not summary:
                continue

            org = summary.get("organization") or {}
            address = org.get("address") or {}

            items.append({
                "organization": html.unescape(org.get("name") or ""),
                "role": html.unescape(summary.get("role-title") or ""),
                "department": html.unescape(summary.get("department-name") or ""),
                "city": address.get("city") or "",
                "region": address.get("region") or "",
                "country": address.get("country") or "",
                "start_year": _value(summary, "start-date", "year", "value"),
                "end_year": _value(summary, "end-date", "year", "value"),
            })

    return items


def extract_educations(record: OrcidRecord) -> list[AffiliationEntry]:
    """Education history, most recently completed first."""
    items = extract_affiliation_items(record, "educations", "education-summary")
    items.sort(key=lambda x: year_sort_key(x["end_year"]), reverse=True)
    return items


def extract_employments(record: OrcidRecord) -> list[AffiliationEntry]:
    """Employment history, most recently started first."""
    items = extract_affiliation_items(record, "employments", "employment-summary")
    items.sort(key=lambda x: year_sort_key(x["start_year"]), reverse=True)
    return items


def extract_fundings(record: OrcidRecord, details: dict[str, dict] | None = None) -> list[FundingAward]:
    """Extract funding awards, most recently started first.

    Args:
        record: ORCID record
        details: Full funding records keyed by put-code (these carry the
            amount); summaries without one keep an empty amount
    """
    details = details or {}
    items = []
    groups = ((record.get("activities-summary") or {}).get("fundings") or {}).get("group", [])

    for group in groups:
        summaries = group.get("funding-summary") or []
        if not summaries:
            continue
        summary = summaries[0]
        funding = details.get(str(summary.get("put-code")), summary)

        amount = funding.get("amount") or {}
        items.append({
            "title": html.unescape(_value(funding, "title", "title", "value")),
            "organization": html.unescape(_value(funding, "organization", "name")),
            "amount": _value(funding, "amount", "value").strip(),
            "currency": amount.get("currency-code") or "",
            "type": funding.get("type") or "",
            "start_year": _value(funding, "start-date", "year", "value"),
            "end_year": _value(funding, "end-date", "year", "value"),
        })

    items.sort(key=lambda x: year_sort_key(x["start_year"]), reverse=True)
    return items


def build_profile(
    orcid_id: str,
    record: OrcidRecord,
    works: dict[str, dict] | None = None,
    funding_details: dict[str, dict] | None = None,
) -> ProfileRecord:
    """Assemble the immutable ProfileRecord for one run."""
    journals, books = extract_citations(record, works)
    fundings = extract_fundings(record, funding_details)
    educations = extract_educations(record)
    employments = extract_employments(record)

    logger.info(
        f"Found: {len(journals)} journal articles, {len(books)} books/chapters, "
        f"{len(fundings)} fundings, {len(educations)} educations, "
        f"{len(employments)} employments"
    )

    return ProfileRecord(
        orcid_id=orcid_id,
        journals=tuple(journals),
        books=tuple(books),
        fundings=tuple(fundings),
        educations=tuple(educations),
        employments=tuple(employments),
    )
