"""Optional metric lookups: Google Scholar, ImpactStory and GitHub.

None of these are needed to build a CV. Each lookup returns an Enrichment
whose status tells the caller whether data is present (``ok``), was never
requested (``absent``), or could not be retrieved (``error``). Failures never
propagate; renderers omit the affected text.

Usage:
    from academia_cv.enrich import lookup_scholar
    scholar = lookup_scholar(config.scholar_id, timeout=config.enrich_timeout)
    if scholar.ok:
        print(scholar.data["citations"])
"""

import logging
from typing import Any, NamedTuple

import requests
from scholarly import scholarly

logger = logging.getLogger("academia_cv.enrich")

STATUS_OK = "ok"
STATUS_ABSENT = "absent"
STATUS_ERROR = "error"


class EnrichmentUnavailable(Exception):
    """A metric service could not be reached or returned unusable data."""


class Enrichment(NamedTuple):
    """Outcome of one optional lookup."""
    source: str
    status: str
    data: dict[str, Any] | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


def _run_lookup(source: str, external_id: str | None, fetcher, *args) -> Enrichment:
    """Run fetcher, turning a missing id or EnrichmentUnavailable into a status."""
    if not external_id:
        logger.info(f"No {source} id configured; skipping lookup")
        return Enrichment(source, STATUS_ABSENT, reason="not configured")

    try:
        data = fetcher(external_id, *args)
    except EnrichmentUnavailable as e:
        logger.warning(f"{source} lookup failed for {external_id}: {e}")
        return Enrichment(source, STATUS_ERROR, reason=str(e))

    logger.info(f"{source} lookup succeeded for {external_id}")
    return Enrichment(source, STATUS_OK, data=data)


def _get_json(url: str, timeout: int) -> dict:
    """GET a JSON object, raising EnrichmentUnavailable on any failure."""
    try:
        resp = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except requests.exceptions.Timeout as e:
        raise EnrichmentUnavailable(f"timed out after {timeout}s") from e
    except requests.exceptions.HTTPError as e:
        raise EnrichmentUnavailable(f"HTTP {e.response.status_code}") from e
    except (requests.exceptions.RequestException, ValueError) as e:
        raise EnrichmentUnavailable(str(e)) from e

    if not isinstance(payload, dict):
        raise EnrichmentUnavailable("unexpected response payload")
    return payload


def _as_int(value, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise EnrichmentUnavailable(f"missing or non-numeric {what}") from e


# ── Google Scholar ───────────────────────────────────────────────────────

def fetch_scholar_metrics(scholar_id: str, timeout: int = 20) -> dict:
    """Total citations and h-index for a Google Scholar author id."""
    scholarly.set_timeout(timeout)
    try:
        author = scholarly.search_author_id(scholar_id)
        author = scholarly.fill(author, sections=["indices"])
    # scholarly raises bare Exception subclasses for blocking, captchas and retries
    except Exception as e:
        raise EnrichmentUnavailable(f"{type(e).__name__}: {e}") from e

    if not author:
        raise EnrichmentUnavailable("author not found")

    return {
        "citations": _as_int(author.get("citedby"), "citation count"),
        "h_index": _as_int(author.get("hindex"), "h-index"),
    }


def lookup_scholar(scholar_id: str | None, timeout: int = 20) -> Enrichment:
    return _run_lookup("Google Scholar", scholar_id, fetch_scholar_metrics, timeout)


# ── ImpactStory ──────────────────────────────────────────────────────────

def fetch_impactstory_profile(
    impactstory_id: str,
    base_url: str = "https://impactstory.org/api",
    timeout: int = 20,
) -> dict:
    """Badges and per-source post counts for an ImpactStory person."""
    profile = _get_json(f"{base_url}/person/{impactstory_id}", timeout)

    badges = []
    for badge in profile.get("badges") or []:
        if not isinstance(badge, dict) or not badge.get("name"):
            continue
        badges.append({
            "name": badge["name"],
            "description": badge.get("description") or "",
            "context": badge.get("context") or "",
            "count": badge.get("count", badge.get("value")),
        })

    sources = {}
    for source in profile.get("sources") or []:
        if isinstance(source, dict) and source.get("source_name"):
            sources[source["source_name"]] = source.get("posts_count")

    return {"badges": badges, "sources": sources}


def lookup_impactstory(
    impactstory_id: str | None,
    base_url: str = "https://impactstory.org/api",
    timeout: int = 20,
) -> Enrichment:
    return _run_lookup("ImpactStory", impactstory_id, fetch_impactstory_profile, base_url, timeout)


# ── GitHub ───────────────────────────────────────────────────────────────

def fetch_github_user(user: str, base_url: str = "https://api.github.com", timeout: int = 20) -> dict:
    """Public repository count for a GitHub user."""
    profile = _get_json(f"{base_url}/users/{user}", timeout)
    return {"public_repos": _as_int(profile.get("public_repos"), "public_repos")}


def lookup_github(user: str | None, base_url: str = "https://api.github.com", timeout: int = 20) -> Enrichment:
    return _run_lookup("GitHub", user, fetch_github_user, base_url, timeout)
