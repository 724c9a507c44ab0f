"""ORCID record schema (the subset read by this repository) and CV record types.

Full schema documentation:
    https://github.com/ORCID/orcid-model/tree/master/src/main/resources/record_3.0
    https://info.orcid.org/documentation/integration-guide/orcid-record/

API version: 3.0
Endpoints:
    https://pub.orcid.org/v3.0/{orcid}/record
    https://pub.orcid.org/v3.0/{orcid}/works/{put-code,put-code,...}
    https://pub.orcid.org/v3.0/{orcid}/funding/{put-code}

The ORCID TypedDicts use snake_case names for readability; the JSON itself
uses kebab-case keys (``record["activities-summary"]["works"]["group"]``).
"""

from typing import NamedTuple, TypedDict


# =============================================================================
# ORCID value wrappers
# =============================================================================

class StringValue(TypedDict, total=False):
    """Wrapper for string values."""
    value: str


class FuzzyDate(TypedDict, total=False):
    """Date with optional month/day precision."""
    year: StringValue
    month: StringValue
    day: StringValue


class OrganizationAddress(TypedDict, total=False):
    city: str
    region: str
    country: str


class Organization(TypedDict, total=False):
    """Organization of an affiliation, or the funder of a funding."""
    name: str
    address: OrganizationAddress


# =============================================================================
# Works
# =============================================================================

class WorkCitation(TypedDict, total=False):
    """Citation attached to a full work (not present on work summaries).

    Path: works/{put-codes} -> bulk[]/work/citation
    """
    citation_type: str   # "bibtex", "formatted-apa", ...
    citation_value: str


class Work(TypedDict, total=False):
    """A full work as returned by the bulk works endpoint.

    Work types read here: "journal-article", "book", "book-chapter".
    """
    put_code: int
    type: str
    title: dict              # {"title": {"value": ...}}
    journal_title: StringValue
    publication_date: FuzzyDate
    contributors: dict       # {"contributor": [{"credit-name": {"value": ...}}]}
    external_ids: dict       # {"external-id": [{"external-id-type": "doi", ...}]}
    citation: WorkCitation


class BulkWorkItem(TypedDict, total=False):
    """One element of the bulk works response; either work or error is set."""
    work: Work
    error: dict


# =============================================================================
# Affiliations and fundings
# =============================================================================

class AffiliationSummary(TypedDict, total=False):
    """Common structure of employment-summary and education-summary.

    Path: activities-summary/{employments,educations}/affiliation-group[]
          /summaries[]/{employment,education}-summary
    """
    put_code: int
    department_name: str
    role_title: str
    start_date: FuzzyDate
    end_date: FuzzyDate
    organization: Organization


class Amount(TypedDict, total=False):
    """Funding amount (only on the full funding, not the summary)."""
    value: str
    currency_code: str


class Funding(TypedDict, total=False):
    """Full funding record.

    Path: funding/{put-code}
    Funding types: "award", "contract", "grant", "salary-award"
    """
    put_code: int
    type: str
    title: dict              # {"title": {"value": ...}}
    amount: Amount
    start_date: FuzzyDate
    end_date: FuzzyDate
    organization: Organization


class OrcidRecord(TypedDict, total=False):
    """Top-level ORCID record.

    Endpoint: GET https://pub.orcid.org/v3.0/{orcid}/record
    """
    orcid_identifier: dict
    person: dict
    activities_summary: dict


# =============================================================================
# Work type constants
# =============================================================================

JOURNAL_ARTICLE_TYPES = frozenset({
    "journal-article",
})

BOOK_TYPES = frozenset({
    "book",
    "book-chapter",
})


# =============================================================================
# Normalized records consumed by the renderers
# =============================================================================

class Citation(TypedDict):
    """Raw BibTeX citation plus its ORCID work type."""
    citation: str
    work_type: str
    title: str
    year: str
    source: str  # "orcid" (embedded) or "generated" (built from metadata)


class FundingAward(TypedDict):
    title: str
    organization: str
    amount: str    # raw value, may be empty or unparsable
    currency: str
    type: str
    start_year: str
    end_year: str


class AffiliationEntry(TypedDict):
    """An education or employment entry."""
    organization: str
    role: str
    department: str
    city: str
    region: str
    country: str
    start_year: str
    end_year: str


class ProfileRecord(NamedTuple):
    """Everything fetched from ORCID for one run. Immutable once built."""
    orcid_id: str
    journals: tuple[Citation, ...] = ()
    books: tuple[Citation, ...] = ()
    fundings: tuple[FundingAward, ...] = ()
    educations: tuple[AffiliationEntry, ...] = ()
    employments: tuple[AffiliationEntry, ...] = ()
