"""Text normalization for ORCID data fields.

Handles two real-world problems in ORCID records:
1. HTML markup in text fields (<i>, <sub>, <sup>, <inf>, <scp>, <mml:*>)
2. Encoding artifacts in embedded BibTeX citations (smart quotes, escaped
   apostrophes, mojibake, misspelled names)

Citation cleanup is an ordered table of (pattern, replacement) pairs applied
in one pass per string; every replacement yields text that no pattern in the
table matches again, so cleaning is idempotent.
"""

import re

# ── HTML ─────────────────────────────────────────────────────────────────

# Matches any HTML/XML tag, including namespace prefixes like mml:
_HTML_TAG_RE = re.compile(r'</?(?:mml:)?[a-zA-Z][^>]*>', re.IGNORECASE)
_WHITESPACE_COLLAPSE_RE = re.compile(r'\s+')


def strip_html_tags(text: str) -> str:
    """Remove all HTML/XML tags from text, preserving inner content."""
    if not text or '<' not in text:
        return text
    result = _HTML_TAG_RE.sub('', text)
    result = _WHITESPACE_COLLAPSE_RE.sub(' ', result).strip()
    return result


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces."""
    if not text:
        return ""
    return _WHITESPACE_COLLAPSE_RE.sub(' ', text).strip()


# ── Citation cleanup ─────────────────────────────────────────────────────

# Order matters: the brace-wrapped forms must go before anything that could
# consume their inner characters.
CITATION_SUBSTITUTIONS = [
    (re.compile(re.escape("{'}")), "'"),
    (re.compile(re.escape("{\\textquotesingle}")), "'"),
    (re.compile(re.escape("{\\^a}??")), "'"),
    (re.compile("’"), "'"),
    (re.compile("‘"), "'"),
]


def compile_name_fixes(name_fixes: list | None) -> list[tuple[re.Pattern, str]]:
    """Compile configured [literal, replacement] pairs into substitution rules."""
    rules = []
    for pair in name_fixes or []:
        pattern, replacement = pair
        rules.append((re.compile(re.escape(pattern)), replacement))
    return rules


def clean_citation(text: str, rules: list[tuple[re.Pattern, str]] | None = None) -> str:
    """Apply the encoding substitutions, then name fixes, to one citation."""
    if not text:
        return text
    for pattern, replacement in CITATION_SUBSTITUTIONS + (rules or []):
        # Callable replacement: the text is used verbatim, no group escapes
        text = pattern.sub(lambda _m, r=replacement: r, text)
    return text


def clean_citations(citations: list[str], name_fixes: list | None = None) -> list[str]:
    """Clean each citation string independently.

    Args:
        citations: Raw BibTeX strings
        name_fixes: Ordered [literal, replacement] pairs from configuration

    Returns:
        New list, same length and order, with substitutions applied
    """
    rules = compile_name_fixes(name_fixes)
    return [clean_citation(c, rules) for c in citations]
