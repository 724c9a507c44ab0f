"""academia-cv: ORCID-driven academic CV generator (Markdown, HTML, PDF)."""

__version__ = "0.1.0"

# Generated section fragments, in default document order
SECTION_SUMMARY = "summary"
SECTION_EDUCATION = "education"
SECTION_EMPLOYMENT = "employment"
SECTION_FUNDING = "funding"
SECTION_PUBLICATIONS = "publications"
SECTION_PEOPLE = "people"
SECTION_SERVICE = "service"
VALID_SECTIONS = [
    SECTION_SUMMARY,
    SECTION_EDUCATION,
    SECTION_EMPLOYMENT,
    SECTION_FUNDING,
    SECTION_PUBLICATIONS,
    SECTION_PEOPLE,
    SECTION_SERVICE,
]
