"""Markdown generation for the CV sections.

Every renderer is a pure function returning one fragment; writing files is
left to the pipeline. Optional metrics arrive as Enrichment results and only
``ok`` results produce text.
"""

from decimal import Decimal, InvalidOperation

from .bibliography import render_bibliography
from .config import Config
from .enrich import Enrichment
from .extract import year_sort_key
from .schema import ProfileRecord
from .tables import (
    STAGE_COMMITTEE,
    STAGE_PHD,
    STAGE_POSTDOC,
    STAGE_UNDERGRAD,
    STAGES,
    MalformedStaticTable,
)

STAGE_HEADINGS = {
    STAGE_POSTDOC: "Mentoring, Postdocs",
    STAGE_PHD: "Mentoring, Grad students in my lab",
    STAGE_UNDERGRAD: "Mentoring, Undergrad students in my lab",
    STAGE_COMMITTEE: "Mentoring, Grad student committees",
}

# Columns computed per person rather than read from the table
_DERIVED_COLUMNS = ("Name", "Duration")


# ── Helpers ──────────────────────────────────────────────────────────────

def _cell(value) -> str:
    """Make a value safe inside a pipe table cell."""
    text = "" if value is None else str(value)
    return " ".join(text.split()).replace("|", "\\|")


def markdown_table(headers: list[str], rows: list[list]) -> str:
    """Render a left-aligned pipe table."""
    lines = [
        "| " + " | ".join(_cell(h) for h in headers) + " |",
        "|" + "|".join(":---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_cell(v) for v in row) + " |")
    return "\n".join(lines)


def parse_amount(value) -> Decimal | None:
    """Parse a funding amount; None unless it is a finite, non-negative number."""
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def format_amount(amount: Decimal) -> str:
    """Thousands-separated fixed-point, keeping whatever precision the source gave."""
    return f"{amount:,f}"


def total_funding(fundings) -> Decimal:
    """Sum of all parseable award amounts."""
    total = Decimal(0)
    for award in fundings:
        amount = parse_amount(award.get("amount"))
        if amount is not None:
            total += amount
    return total


def canonical_funder(name: str, acronyms: list | None = None) -> str:
    """Replace a funder name by its acronym on the first substring match."""
    for substring, acronym in acronyms or []:
        if substring in name:
            return acronym
    return name


def _join_phrases(phrases: list[str]) -> str:
    if len(phrases) <= 1:
        return "".join(phrases)
    return ", ".join(phrases[:-1]) + f", and {phrases[-1]}"


def _ok(enrichment: Enrichment | None) -> bool:
    return enrichment is not None and enrichment.ok


# ── Summary ──────────────────────────────────────────────────────────────

def _altmetrics_text(
    config: Config,
    scholar: Enrichment | None,
    impactstory: Enrichment | None,
    github: Enrichment | None,
) -> str:
    """Altmetrics sentence from whichever lookups succeeded ("" if none)."""
    parts = []
    if _ok(scholar):
        parts.append(
            f"Number of citations = {scholar.data['citations']}; "
            f"h-index = {scholar.data['h_index']}"
        )
    if _ok(github):
        parts.append(f"{github.data['public_repos']} public github repos")
    if _ok(impactstory):
        templates = config.get("summary", "altmetric_sources", {}) or {}
        sources = impactstory.data.get("sources", {})
        phrases = [
            template.format(count=sources[name])
            for name, template in templates.items()
            if sources.get(name) is not None
        ]
        if phrases:
            parts.append("papers have been " + _join_phrases(phrases))
    return "; ".join(parts)


def render_summary(
    profile: ProfileRecord,
    people: list[dict] | None,
    config: Config,
    scholar: Enrichment | None = None,
    impactstory: Enrichment | None = None,
    github: Enrichment | None = None,
) -> str:
    """Summary table: publications, teaching, mentoring, service, funding, altmetrics.

    people is None when the personnel table could not be read; the Mentoring
    row is then left out.
    """
    offset = int(config.get("summary", "publications_offset", 0))
    prominent = config.get("summary", "prominent_pubs", "")
    publications = f"{len(profile.journals) + offset} journal articles"
    if prominent:
        publications += f", including {prominent}"

    mentoring = None
    if people is not None:
        stages = [p.get("Stage") for p in people]
        mentoring = (
            f"{stages.count(STAGE_PHD)} PhD students, {stages.count(STAGE_POSTDOC)} postdocs, "
            f"and served on {stages.count(STAGE_COMMITTEE)} graduate student committees"
        )

    acronyms = config.get("funding", "funder_acronyms", [])
    symbol = config.get("funding", "currency_symbol", "$")
    millions = round(float(total_funding(profile.fundings)) / 1e6, 2)
    funding = f"{symbol}{millions:g}M in external support"
    nsf_count = sum(
        1 for award in profile.fundings
        if canonical_funder(award["organization"], acronyms) == "NSF"
    )
    if nsf_count:
        funding += f", including {nsf_count} NSF grants"
    funding += config.get("summary", "funding_suffix", "") or ""

    rows = [
        ["**Publications**", publications],
        ["**Teaching**", config.get("summary", "teaching", "")],
        ["**Service/Outreach**", config.get("summary", "service", "")],
        ["**Funding**", funding],
    ]
    if mentoring is not None:
        rows.insert(2, ["**Mentoring**", mentoring])

    altmetrics = _altmetrics_text(config, scholar, impactstory, github)
    if altmetrics:
        rows.append(["**Altmetrics**", altmetrics])

    return "## Summary\n\n" + markdown_table(["", ""], rows) + "\n"


# ── Education / employment ──────────────────────────────────────────────

def render_education(profile: ProfileRecord) -> str:
    """One paragraph per degree, most recently completed first."""
    lines = ["## Education"]
    for edu in sorted(profile.educations, key=lambda e: year_sort_key(e["end_year"]), reverse=True):
        entry = f"{edu['organization']}: {edu['role']}"
        if edu["end_year"]:
            entry += f" ({edu['end_year']})"
        if edu["department"]:
            entry += f" in {edu['department']}"
        lines.append(entry)
    return "\n\n".join(lines) + "\n"


def format_years(start_year: str, end_year: str) -> str:
    """'2010-2015', or '2010-Present' for an ongoing position."""
    end = end_year or "Present"
    return f"{start_year}-{end}" if start_year else end


def render_employment(profile: ProfileRecord) -> str:
    """One paragraph per position, most recently started first."""
    lines = ["## Employment"]
    for emp in sorted(profile.employments, key=lambda e: year_sort_key(e["start_year"]), reverse=True):
        parts = [
            emp["role"],
            f"Dept. of {emp['department']}" if emp["department"] else "",
            emp["organization"],
            emp["city"],
            emp["region"],
        ]
        details = ", ".join(p for p in parts if p)
        lines.append(f"{format_years(emp['start_year'], emp['end_year'])}: {details}")
    return "\n\n".join(lines) + "\n"


# ── Funding ──────────────────────────────────────────────────────────────

def render_funding(profile: ProfileRecord, config: Config) -> str:
    """Funding narrative, total, and a per-award table newest first."""
    symbol = config.get("funding", "currency_symbol", "$")
    acronyms = config.get("funding", "funder_acronyms", [])
    intro = config.get("funding", "additional_text", "") or ""

    total = format_amount(total_funding(profile.fundings))
    prose = f"{intro} Total external funding, so far, as a faculty member is {symbol}{total}.".strip()

    rows = []
    for award in sorted(profile.fundings, key=lambda a: year_sort_key(a["start_year"]), reverse=True):
        amount = parse_amount(award["amount"])
        rows.append([
            award["start_year"],
            award["title"],
            canonical_funder(award["organization"], acronyms),
            f"{symbol}{format_amount(amount)}" if amount is not None else "",
        ])

    table = markdown_table(["Year", "Title", "Funder", "Amount"], rows)
    return f"## Funding\n\n{prose}\n\n{table}\n"


# ── Publications ─────────────────────────────────────────────────────────

def _impact_lines(config: Config, impactstory: Enrichment | None) -> list[str]:
    """Intro plus one bullet per allow-listed badge, in allow-list order."""
    if not _ok(impactstory):
        return []

    by_name = {b["name"]: b for b in impactstory.data.get("badges", [])}
    wanted = [by_name[name] for name in config.get("publications", "badges", []) if name in by_name]
    if not wanted:
        return []

    lines = [
        f"According to NSF-funded [ImpactStory.org](https://impactstory.org/u/{config.impactstory_id}), "
        "a source of altmetrics data (a measure of impact beyond citations), "
        "my work has various impacts:",
    ]
    bullets = []
    for badge in wanted:
        description = badge["description"].replace("your", "my").replace("Your", "My")
        bullets.append(f"* {description} {badge['context']}".rstrip())
    lines.append("\n".join(bullets))
    return lines


def render_publications(
    profile: ProfileRecord,
    config: Config,
    scholar: Enrichment | None = None,
    impactstory: Enrichment | None = None,
) -> str:
    """Papers, then book chapters, each as a sorted author-year reference list."""
    name_fixes = config.get("bibliography", "name_fixes", [])
    suppressed = config.get("publications", "suppressed_fields", [])
    emphasis = config.emphasis_name

    blocks = ["## Publications: Papers"]
    if _ok(scholar):
        blocks.append(
            f"According to Google Scholar, my work has been cited {scholar.data['citations']} times, "
            f"and my h-index is {scholar.data['h_index']}. "
            "(Google Scholar tends to overestimate citations, however)."
        )
    blocks.extend(_impact_lines(config, impactstory))

    papers = render_bibliography([c["citation"] for c in profile.journals], name_fixes, suppressed, emphasis)
    if papers:
        blocks.append(papers)

    blocks.append("## Publications: Books or Book Chapters")
    chapters = render_bibliography([c["citation"] for c in profile.books], name_fixes, suppressed, emphasis)
    if chapters:
        blocks.append(chapters)

    return "\n\n".join(blocks) + "\n"


# ── People ───────────────────────────────────────────────────────────────

def display_name(person: dict) -> str:
    """'First Last', linked when the person has a URL."""
    name = f"{person.get('First', '')} {person.get('Last', '')}".strip()
    url = person.get("URL", "")
    return f"[{name}]({url})" if url else name


def duration(person: dict) -> str:
    return f"{person.get('Start', '')}-{person.get('Stop') or 'present'}"


def render_people(people: list[dict], config: Config) -> str:
    """Mentoring tables, one per stage, each sorted by last name.

    Raises:
        MalformedStaticTable: a stage's configured column is not in the table
    """
    columns = config.get("people", "columns", {})
    intros = {
        STAGE_POSTDOC: config.get("people", "postdoc_intro", ""),
        STAGE_COMMITTEE: config.get("people", "committee_intro", ""),
    }

    blocks = []
    for stage in STAGES:
        members = [p for p in people if p.get("Stage") == stage]
        if not members:
            continue
        members.sort(key=lambda p: p.get("Last", "").casefold())

        stage_columns = columns.get(stage) or [["Name", "Name"], ["Duration", "Duration"]]
        for source, _header in stage_columns:
            if source not in _DERIVED_COLUMNS and source not in members[0]:
                raise MalformedStaticTable(f"personnel table has no '{source}' column (needed for {stage})")

        rows = []
        for person in members:
            derived = {"Name": display_name(person), "Duration": duration(person)}
            rows.append([derived.get(source, person.get(source, "")) for source, _header in stage_columns])

        blocks.append(f"## {STAGE_HEADINGS[stage]}")
        if intros.get(stage):
            blocks.append(intros[stage])
        blocks.append(markdown_table([header for _source, header in stage_columns], rows))

    return "\n\n".join(blocks) + "\n"


# ── Service ──────────────────────────────────────────────────────────────

def render_service(entries: list[str], config: Config) -> str:
    """Bulleted list of service activities."""
    marker = config.get("service", "marker", "*")
    bullets = "\n".join(f"{marker} {entry}" for entry in entries)
    return f"## Service\n\n{bullets}\n"
