"""Readers for the hand-maintained tab-delimited tables (personnel, service)."""

import csv
import logging
from pathlib import Path

logger = logging.getLogger("academia_cv.tables")

# Closed set of personnel stages, in rendering order
STAGE_POSTDOC = "Postdoc"
STAGE_PHD = "PhD student"
STAGE_UNDERGRAD = "Undergrad"
STAGE_COMMITTEE = "Committee"
STAGES = [STAGE_POSTDOC, STAGE_PHD, STAGE_UNDERGRAD, STAGE_COMMITTEE]

PEOPLE_COLUMNS = ["First", "Last", "Stage", "Start", "Stop", "URL"]
SERVICE_COLUMNS = ["Service"]

# Values a spreadsheet export may leave in an empty cell
_MISSING = {"", "NA", "N/A", "NaN"}


class MalformedStaticTable(Exception):
    """A static table is missing, unreadable, or lacks an expected column."""


def _clean(value: str | None) -> str:
    value = (value or "").strip()
    return "" if value in _MISSING else value


def read_table(path: Path, required: list[str]) -> list[dict]:
    """Read a tab-delimited file with a header row.

    Args:
        path: Table file
        required: Columns that must be present in the header

    Returns:
        One dict per non-blank row, values stripped, NA-like cells as ""

    Raises:
        MalformedStaticTable: file missing, unreadable, not UTF-8, or a
            column absent
    """
    try:
        with open(path, encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f, delimiter="\t")
            header = [h.strip() for h in (reader.fieldnames or [])]
            missing = [c for c in required if c not in header]
            if missing:
                raise MalformedStaticTable(f"{path}: missing column(s) {', '.join(missing)}")
            rows = []
            for row in reader:
                cleaned = {(k or "").strip(): _clean(v) for k, v in row.items() if k is not None}
                if any(cleaned.values()):
                    rows.append(cleaned)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise MalformedStaticTable(f"{path}: {e}") from e

    logger.debug(f"Read {len(rows)} rows from {path}")
    return rows


def read_people(path: Path) -> list[dict]:
    """Read the personnel table; rows with an unknown stage are dropped."""
    rows = read_table(path, PEOPLE_COLUMNS)
    people = []
    for row in rows:
        if row["Stage"] not in STAGES:
            logger.warning(f"Skipping {row['First']} {row['Last']}: unknown stage '{row['Stage']}'")
            continue
        people.append(row)
    return people


def read_service(path: Path) -> list[str]:
    """Read the service table; one entry per non-empty Service cell."""
    return [row["Service"] for row in read_table(path, SERVICE_COLUMNS) if row["Service"]]
