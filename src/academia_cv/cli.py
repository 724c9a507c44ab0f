"""Command-line interface for generating an ORCID-based CV."""

import argparse
import logging
import sys
from pathlib import Path

from academia_cv.assemble import ConversionFailure
from academia_cv.config import get_config
from academia_cv.fetch import UpstreamUnavailable, validate_orcid_id
from academia_cv.logging_config import setup_logging
from academia_cv.pipeline import run

EXIT_INVALID_INPUT = 1
EXIT_UPSTREAM_UNAVAILABLE = 2
EXIT_CONVERSION_FAILURE = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a CV (Markdown, HTML, PDF) from ORCID and local tables."
    )
    parser.add_argument("--orcid", default=None, help="ORCID iD (default: identity.orcid_id from config)")
    parser.add_argument("--output-dir", required=True, help="Output directory")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML configuration file (optional, defaults to .academia-cv.yaml)"
    )
    parser.add_argument("--scholar-id", default=None, help="Google Scholar author id")
    parser.add_argument("--impactstory-id", default=None, help="ImpactStory person id")
    parser.add_argument("--github-user", default=None, help="GitHub user name")
    parser.add_argument("--people", default=None, help="Tab-delimited personnel table")
    parser.add_argument("--service", default=None, help="Tab-delimited service table")
    parser.add_argument(
        "--no-enrich",
        action="store_true",
        help="Skip Google Scholar, ImpactStory and GitHub lookups"
    )
    parser.add_argument(
        "--skip-compile",
        action="store_true",
        help="Only write the Markdown fragments; do not run pandoc/wkhtmltopdf"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (logs to stderr if not specified)"
    )
    return parser


def main():
    """Generate the CV fragments and, unless skipped, the HTML and PDF."""
    parser = build_parser()
    args = parser.parse_args()

    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(level=args.log_level, log_file=log_file)
    logger = logging.getLogger("academia_cv.cli")

    config_file = Path(args.config) if args.config else None
    config = get_config(config_file)

    # Command-line values take precedence over the configuration file
    overrides = [
        ("identity", "orcid_id", args.orcid),
        ("identity", "scholar_id", args.scholar_id),
        ("identity", "impactstory_id", args.impactstory_id),
        ("identity", "github_user", args.github_user),
        ("people", "path", args.people),
        ("service", "path", args.service),
    ]
    for section, key, value in overrides:
        if value:
            config.set(section, key, value)

    if args.no_enrich:
        for key in ("scholar_id", "impactstory_id", "github_user"):
            config.set("identity", key, None)

    orcid_id = config.orcid_id
    if not validate_orcid_id(orcid_id):
        logger.error(f"Invalid ORCID ID format: {orcid_id}")
        logger.error("ORCID IDs must match the pattern: XXXX-XXXX-XXXX-XXXX")
        sys.exit(EXIT_INVALID_INPUT)

    logger.debug(f"Using configuration (API timeout: {config.api_timeout}s, lookup timeout: {config.enrich_timeout}s)")

    try:
        report = run(config, Path(args.output_dir), orcid_id, compile_output=not args.skip_compile)
    except UpstreamUnavailable as e:
        logger.error(f"Cannot build CV without the ORCID record: {e}")
        sys.exit(EXIT_UPSTREAM_UNAVAILABLE)
    except ConversionFailure as e:
        logger.error(f"Document conversion failed: {e}")
        sys.exit(EXIT_CONVERSION_FAILURE)

    for path in report.fragments.values():
        print(str(path))
    for path in (report.html, report.pdf):
        if path:
            print(str(path))
