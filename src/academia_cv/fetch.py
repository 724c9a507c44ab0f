"""ORCID API fetching.

Everything in a CV run depends on the ORCID record, so a failed record
request raises UpstreamUnavailable. Work and funding details only enrich the
record; failures there are logged and the summary data is kept.
"""

import json
import logging
import re
import time

import requests

from .config import Config, get_config
from .extract import build_profile
from .schema import OrcidRecord, ProfileRecord

logger = logging.getLogger("academia_cv.fetch")

# ORCID iD format, validated before it is interpolated into a URL
_ORCID_ID_PATTERN = re.compile(r'^\d{4}-\d{4}-\d{4}-\d{3}[0-9X]$')

_HEADERS = {"Accept": "application/json"}


class UpstreamUnavailable(Exception):
    """The ORCID record could not be retrieved or was malformed."""


def validate_orcid_id(orcid_id: str) -> bool:
    """Validate ORCID ID format.

    ORCID IDs must match the pattern: XXXX-XXXX-XXXX-XXXX where X is a digit,
    and the last character can be a digit or 'X'.

    Args:
        orcid_id: The ORCID ID to validate

    Returns:
        True if valid format, False otherwise
    """
    if not orcid_id or not isinstance(orcid_id, str):
        return False
    return _ORCID_ID_PATTERN.match(orcid_id) is not None


def _get_json_with_retry(url: str, config: Config, what: str) -> dict | None:
    """GET a JSON document, backing off on HTTP 429 and network errors.

    Returns None (after logging) when the document cannot be retrieved.
    """
    delay = config.rate_limit_backoff
    max_retries = config.max_retries
    for attempt in range(max_retries):
        try:
            response = requests.get(url, headers=_HEADERS, timeout=config.api_timeout)
        except requests.RequestException as e:
            logger.warning(
                f"Network error fetching {what} (attempt {attempt + 1}/{max_retries}): "
                f"{type(e).__name__}"
            )
            if attempt < max_retries - 1:
                time.sleep(delay)
                delay *= 2
            continue

        if response.status_code == 200:
            try:
                return response.json()
            except (json.JSONDecodeError, ValueError) as e:
                logger.error(f"Failed to parse JSON response for {what}: {e}")
                return None
        if response.status_code == 429:  # Rate limited
            logger.debug(f"Rate limited fetching {what}, sleeping {delay}s")
            time.sleep(delay)
            delay *= 2
            continue

        logger.warning(f"ORCID API returned {response.status_code} for {what}")
        return None

    return None


def fetch_record(orcid_id: str, config: Config | None = None) -> OrcidRecord:
    """Fetch the top-level ORCID record.

    Raises:
        UpstreamUnavailable: invalid id, network failure, non-200 status,
            or a payload without an activities summary
    """
    if not validate_orcid_id(orcid_id):
        raise UpstreamUnavailable(f"Invalid ORCID ID format: {orcid_id}")

    config = config or get_config()
    url = f"{config.api_base_url}/{orcid_id}/record"
    logger.info(f"Fetching ORCID record for {orcid_id} from API...")

    try:
        response = requests.get(url, headers=_HEADERS, timeout=config.api_timeout)
    except requests.RequestException as e:
        raise UpstreamUnavailable(
            f"Network error fetching ORCID record for {orcid_id}: {type(e).__name__}: {e}"
        ) from e

    if response.status_code != 200:
        raise UpstreamUnavailable(f"ORCID API returned {response.status_code} for {orcid_id}")

    try:
        record = response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise UpstreamUnavailable(f"Failed to parse JSON response for {orcid_id}: {e}") from e

    if not isinstance(record, dict) or not isinstance(record.get("activities-summary"), dict):
        raise UpstreamUnavailable(f"ORCID record for {orcid_id} has no activities summary")

    logger.info(f"Successfully fetched main record for {orcid_id}")
    return record


def _collect_put_codes(groups: list, summary_key: str) -> list[str]:
    """First put-code of each group (ORCID's preferred source for the item)."""
    put_codes = []
    for group in groups or []:
        summaries = group.get(summary_key) or []
        if summaries and summaries[0].get("put-code"):
            put_codes.append(str(summaries[0]["put-code"]))
    return put_codes


def fetch_works(orcid_id: str, put_codes: list[str], config: Config | None = None) -> dict[str, dict]:
    """Fetch full works (with citations) through the bulk works endpoint.

    Batches are requested one after another with a delay in between.

    Returns:
        Dictionary mapping put-code to full work dict
    """
    config = config or get_config()
    results = {}
    batch_size = config.works_batch_size
    total = len(put_codes)

    for batch_start in range(0, total, batch_size):
        batch = put_codes[batch_start:batch_start + batch_size]
        url = f"{config.api_base_url}/{orcid_id}/works/{','.join(batch)}"
        payload = _get_json_with_retry(url, config, f"works batch {batch_start // batch_size + 1}")

        for item in (payload or {}).get("bulk", []):
            work = item.get("work")
            if work and work.get("put-code") is not None:
                results[str(work["put-code"])] = work
            elif item.get("error"):
                logger.warning(f"ORCID could not return a work: {item['error'].get('developer-message', '')}")

        if batch_start + batch_size < total:
            time.sleep(config.rate_limit_delay)

    logger.info(f"Fetched {len(results)}/{total} full works")
    return results


def fetch_funding_details(orcid_id: str, put_codes: list[str], config: Config | None = None) -> dict[str, dict]:
    """Fetch full funding records (the summaries carry no amount).

    Returns:
        Dictionary mapping put-code to full funding dict
    """
    config = config or get_config()
    results = {}
    for i, put_code in enumerate(put_codes):
        if i > 0:
            time.sleep(config.rate_limit_delay)
        url = f"{config.api_base_url}/{orcid_id}/funding/{put_code}"
        detail = _get_json_with_retry(url, config, f"funding {put_code}")
        if detail:
            results[put_code] = detail

    logger.info(f"Fetched {len(results)}/{len(put_codes)} funding details")
    return results


def fetch_profile(orcid_id: str | None = None, config: Config | None = None) -> ProfileRecord:
    """Fetch and normalize one researcher's ORCID profile.

    Args:
        orcid_id: ORCID iD (default: identity.orcid_id from configuration)
        config: Configuration (default: get_config())

    Returns:
        ProfileRecord with journals, books, fundings, educations, employments

    Raises:
        UpstreamUnavailable: if the record itself cannot be retrieved
    """
    config = config or get_config()
    orcid_id = orcid_id or config.orcid_id

    record = fetch_record(orcid_id, config)
    activities = record["activities-summary"]

    work_groups = (activities.get("works") or {}).get("group", [])
    works = fetch_works(orcid_id, _collect_put_codes(work_groups, "work-summary"), config)

    funding_groups = (activities.get("fundings") or {}).get("group", [])
    fundings = fetch_funding_details(
        orcid_id, _collect_put_codes(funding_groups, "funding-summary"), config
    )

    return build_profile(orcid_id, record, works, fundings)
