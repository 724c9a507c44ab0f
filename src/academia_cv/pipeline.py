"""One CV run: fetch, enrich, render every section, then assemble."""

import logging
from pathlib import Path
from typing import NamedTuple

from . import (
    SECTION_EDUCATION,
    SECTION_EMPLOYMENT,
    SECTION_FUNDING,
    SECTION_PEOPLE,
    SECTION_PUBLICATIONS,
    SECTION_SERVICE,
    SECTION_SUMMARY,
)
from .assemble import assemble_inputs, compile_cv, stage_file
from .bibliography import export_bibtex
from .config import Config
from .enrich import Enrichment, lookup_github, lookup_impactstory, lookup_scholar
from .fetch import fetch_profile
from .markdown import (
    render_education,
    render_employment,
    render_funding,
    render_people,
    render_publications,
    render_service,
    render_summary,
)
from .schema import ProfileRecord
from .tables import MalformedStaticTable, read_people, read_service

logger = logging.getLogger("academia_cv.pipeline")


class Enrichments(NamedTuple):
    scholar: Enrichment
    impactstory: Enrichment
    github: Enrichment


class RunReport(NamedTuple):
    """What a run produced and what it had to leave out."""
    fragments: dict[str, Path]
    skipped_sections: list[str]
    failed_enrichments: list[str]
    html: Path | None = None
    pdf: Path | None = None

    @property
    def degraded(self) -> bool:
        return bool(self.skipped_sections or self.failed_enrichments)


def lookup_enrichments(config: Config) -> Enrichments:
    """Run the three optional lookups with the configured ids."""
    timeout = config.enrich_timeout
    return Enrichments(
        scholar=lookup_scholar(config.scholar_id, timeout=timeout),
        impactstory=lookup_impactstory(
            config.impactstory_id, config.get("enrich", "impactstory_url"), timeout
        ),
        github=lookup_github(config.github_user, config.get("enrich", "github_url"), timeout),
    )


def write_fragment(output_dir: Path, name: str, text: str) -> Path:
    path = output_dir / f"{name}.md"
    path.write_text(text, encoding="utf-8")
    logger.info(f"Generated: {path}")
    return path


def create_markdown(
    profile: ProfileRecord,
    config: Config,
    output_dir: Path,
    enrichments: Enrichments,
) -> tuple[dict[str, Path], list[str]]:
    """Render and write every section fragment.

    A malformed personnel or service table skips the sections that need it
    (the summary is written without its Mentoring row); every other section
    is still written.

    Returns:
        Tuple of (section name -> written path, skipped section names)
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    fragments = {}
    skipped = []

    try:
        people = read_people(Path(config.get("people", "path")))
    except MalformedStaticTable as e:
        logger.error(f"Personnel table unusable: {e}")
        people = None

    try:
        service = read_service(Path(config.get("service", "path")))
    except MalformedStaticTable as e:
        logger.error(f"Service table unusable: {e}")
        service = None

    # Without the personnel table the summary only loses its Mentoring row
    fragments[SECTION_SUMMARY] = write_fragment(
        output_dir, SECTION_SUMMARY,
        render_summary(profile, people, config, *enrichments),
    )

    fragments[SECTION_EDUCATION] = write_fragment(output_dir, SECTION_EDUCATION, render_education(profile))
    fragments[SECTION_EMPLOYMENT] = write_fragment(output_dir, SECTION_EMPLOYMENT, render_employment(profile))
    fragments[SECTION_FUNDING] = write_fragment(output_dir, SECTION_FUNDING, render_funding(profile, config))

    name_fixes = config.get("bibliography", "name_fixes", [])
    (output_dir / "publications.bib").write_text(
        export_bibtex([c["citation"] for c in profile.journals], name_fixes), encoding="utf-8"
    )
    (output_dir / "chapters.bib").write_text(
        export_bibtex([c["citation"] for c in profile.books], name_fixes), encoding="utf-8"
    )
    fragments[SECTION_PUBLICATIONS] = write_fragment(
        output_dir, SECTION_PUBLICATIONS,
        render_publications(profile, config, enrichments.scholar, enrichments.impactstory),
    )

    if people is not None:
        try:
            fragments[SECTION_PEOPLE] = write_fragment(output_dir, SECTION_PEOPLE, render_people(people, config))
        except MalformedStaticTable as e:
            logger.error(f"Skipping people section: {e}")
            skipped.append(SECTION_PEOPLE)
    else:
        skipped.append(SECTION_PEOPLE)

    if service is not None:
        fragments[SECTION_SERVICE] = write_fragment(output_dir, SECTION_SERVICE, render_service(service, config))
    else:
        skipped.append(SECTION_SERVICE)

    # Fragments left over from an earlier run must not be assembled
    for name in skipped:
        (output_dir / f"{name}.md").unlink(missing_ok=True)

    return fragments, skipped


def run(
    config: Config,
    output_dir: Path,
    orcid_id: str | None = None,
    compile_output: bool = True,
) -> RunReport:
    """Build the CV for one researcher.

    Raises:
        UpstreamUnavailable: the ORCID record could not be fetched
        ConversionFailure: assembling HTML/PDF failed
    """
    profile = fetch_profile(orcid_id, config)
    enrichments = lookup_enrichments(config)
    failed = [e.source for e in enrichments if e.status == "error"]

    fragments, skipped = create_markdown(profile, config, output_dir, enrichments)

    html_path = pdf_path = None
    if compile_output:
        static_dir = Path(config.get("assemble", "static_dir"))
        inputs = assemble_inputs(config.get("assemble", "inputs"), output_dir, static_dir)
        css = stage_file(static_dir / config.get("assemble", "css"), output_dir)
        html_path, pdf_path = compile_cv(
            inputs,
            output_dir,
            Path(css.name),
            output_name=config.get("assemble", "output_name"),
            pandoc=config.get("assemble", "pandoc"),
            wkhtmltopdf=config.get("assemble", "wkhtmltopdf"),
        )

    report = RunReport(fragments, skipped, failed, html_path, pdf_path)
    if report.degraded:
        logger.warning(
            f"CV generated with omissions: skipped sections {skipped or 'none'}, "
            f"failed lookups {failed or 'none'}"
        )
    else:
        logger.info(f"CV generated for {profile.orcid_id}: all sections and lookups succeeded")
    return report
