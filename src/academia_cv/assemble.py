"""Assemble generated fragments and boilerplate into HTML and PDF.

pandoc joins the ordered Markdown inputs into ``<name>.html`` using the
configured stylesheet; wkhtmltopdf turns that into ``<name>.pdf``. Both run
inside the output directory. Converter failures are raised, never retried.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from . import VALID_SECTIONS

logger = logging.getLogger("academia_cv.assemble")


class ConversionFailure(Exception):
    """An input for conversion is missing or an external converter failed."""


def stage_file(source: Path, output_dir: Path) -> Path:
    """Copy a boilerplate file (header, stylesheet, ...) into output_dir.

    Raises:
        ConversionFailure: the file does not exist
    """
    if not source.is_file():
        raise ConversionFailure(f"Boilerplate file not found: {source}")
    target = output_dir / source.name
    if source.resolve() != target.resolve():
        shutil.copyfile(source, target)
    return target


def assemble_inputs(inputs: list[str], output_dir: Path, static_dir: Path) -> list[str]:
    """Resolve the ordered input list to file names inside output_dir.

    Section names (``summary``, ``funding``, ...) refer to fragments already
    written to output_dir; a section that was not produced is left out with
    a warning. Any other entry is a boilerplate file under static_dir and is
    copied into output_dir.

    Returns:
        File names (relative to output_dir) in document order

    Raises:
        ConversionFailure: a boilerplate file does not exist
    """
    resolved = []
    for item in inputs:
        if item in VALID_SECTIONS:
            fragment = output_dir / f"{item}.md"
            if fragment.exists():
                resolved.append(fragment.name)
            else:
                logger.warning(f"Section '{item}' was not generated; leaving it out of the CV")
            continue

        resolved.append(stage_file(static_dir / item, output_dir).name)

    return resolved


def _run(command: list[str], cwd: Path) -> None:
    """Run an external converter, raising ConversionFailure on any failure."""
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(command, cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise ConversionFailure(f"{command[0]} not found; is it installed and on PATH?") from e

    if result.returncode != 0:
        logger.debug(result.stderr[-2000:] if result.stderr else "")
        raise ConversionFailure(
            f"{command[0]} exited with status {result.returncode}: "
            f"{(result.stderr or '').strip()[-500:]}"
        )


def compile_cv(
    inputs: list[str],
    output_dir: Path,
    css: Path,
    output_name: str = "CV",
    pandoc: str = "pandoc",
    wkhtmltopdf: str = "wkhtmltopdf",
) -> tuple[Path, Path]:
    """Convert the ordered Markdown inputs to HTML, then the HTML to PDF.

    Args:
        inputs: File names inside output_dir, in document order
        output_dir: Working directory for both converters
        css: Stylesheet passed to pandoc
        output_name: Base name of the two output files

    Returns:
        Tuple of (html_path, pdf_path)

    Raises:
        ConversionFailure: converter missing or exited non-zero
    """
    if not inputs:
        raise ConversionFailure("Nothing to convert: no input files")

    html_name = f"{output_name}.html"
    pdf_name = f"{output_name}.pdf"

    _run([pandoc, "--standalone", "--css", str(css), "-o", html_name, *inputs], output_dir)
    html_path = output_dir / html_name
    logger.info(f"HTML file {html_name} has been created in {output_dir}")

    _run([wkhtmltopdf, "--enable-local-file-access", html_name, pdf_name], output_dir)
    pdf_path = output_dir / pdf_name
    logger.info(f"PDF file {pdf_name} has been created in {output_dir}")

    return html_path, pdf_path
