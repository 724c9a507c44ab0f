"""Tests for the optional metric lookups (academia_cv.enrich)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from academia_cv.enrich import (
    STATUS_ABSENT,
    STATUS_ERROR,
    STATUS_OK,
    EnrichmentUnavailable,
    fetch_github_user,
    fetch_impactstory_profile,
    fetch_scholar_metrics,
    lookup_github,
    lookup_impactstory,
    lookup_scholar,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def impactstory_payload():
    """A trimmed ImpactStory person document."""
    return {
        "badges": [
            {"name": "global_reach", "description": "Your work has been saved in 40 countries.",
             "context": "That's more than most.", "value": 40},
            {"name": "depsy", "description": "Your software is used.", "context": ""},
            {"name": "big_hit", "description": "One paper is a hit."},
            {"description": "nameless badge"},
        ],
        "sources": [
            {"source_name": "mendeley", "posts_count": 1200},
            {"source_name": "twitter", "posts_count": 300},
            {"posts_count": 9},
        ],
    }


def _json_response(payload, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        error = requests.exceptions.HTTPError(f"{status} Error")
        error.response = resp
        resp.raise_for_status.side_effect = error
    return resp


# ---------------------------------------------------------------------------
# Google Scholar
# ---------------------------------------------------------------------------

class TestScholar:
    @patch("academia_cv.enrich.scholarly")
    def test_metrics(self, mock_scholarly):
        mock_scholarly.search_author_id.return_value = {"scholar_id": "abc"}
        mock_scholarly.fill.return_value = {"citedby": 5123, "hindex": 31}

        assert fetch_scholar_metrics("abc", timeout=7) == {"citations": 5123, "h_index": 31}
        mock_scholarly.set_timeout.assert_called_once_with(7)
        mock_scholarly.fill.assert_called_once_with({"scholar_id": "abc"}, sections=["indices"])

    @patch("academia_cv.enrich.scholarly")
    def test_blocked_request_raises(self, mock_scholarly):
        mock_scholarly.search_author_id.side_effect = Exception("Cannot Fetch from Google Scholar.")
        with pytest.raises(EnrichmentUnavailable, match="Cannot Fetch"):
            fetch_scholar_metrics("abc")

    @patch("academia_cv.enrich.scholarly")
    def test_missing_indices_raise(self, mock_scholarly):
        mock_scholarly.search_author_id.return_value = {"scholar_id": "abc"}
        mock_scholarly.fill.return_value = {"name": "No Indices"}
        with pytest.raises(EnrichmentUnavailable, match="citation count"):
            fetch_scholar_metrics("abc")

    @patch("academia_cv.enrich.scholarly")
    def test_lookup_statuses(self, mock_scholarly):
        mock_scholarly.fill.return_value = {"citedby": "10", "hindex": "2"}
        ok = lookup_scholar("abc")
        assert ok.status == STATUS_OK
        assert ok.ok
        assert ok.data == {"citations": 10, "h_index": 2}

        mock_scholarly.search_author_id.side_effect = Exception("blocked")
        failed = lookup_scholar("abc")
        assert failed.status == STATUS_ERROR
        assert not failed.ok
        assert failed.data is None
        assert "blocked" in failed.reason

    def test_lookup_without_id_is_absent(self):
        with patch("academia_cv.enrich.scholarly") as mock_scholarly:
            result = lookup_scholar(None)
        assert result.status == STATUS_ABSENT
        mock_scholarly.search_author_id.assert_not_called()


# ---------------------------------------------------------------------------
# ImpactStory
# ---------------------------------------------------------------------------

class TestImpactStory:
    @patch("academia_cv.enrich.requests.get")
    def test_profile(self, mock_get, impactstory_payload):
        mock_get.return_value = _json_response(impactstory_payload)

        data = fetch_impactstory_profile("0000-0002-0337-5997", "https://impactstory.org/api", 5)

        assert mock_get.call_args.args[0] == "https://impactstory.org/api/person/0000-0002-0337-5997"
        assert mock_get.call_args.kwargs["timeout"] == 5
        assert [b["name"] for b in data["badges"]] == ["global_reach", "depsy", "big_hit"]
        assert data["badges"][0]["count"] == 40
        assert data["sources"] == {"mendeley": 1200, "twitter": 300}

    @patch("academia_cv.enrich.requests.get")
    def test_http_error(self, mock_get):
        mock_get.return_value = _json_response({}, status=404)
        result = lookup_impactstory("someone")
        assert result.status == STATUS_ERROR
        assert result.reason == "HTTP 404"

    @patch("academia_cv.enrich.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        result = lookup_impactstory("someone", timeout=3)
        assert result.status == STATUS_ERROR
        assert "3s" in result.reason

    @patch("academia_cv.enrich.requests.get")
    def test_non_object_payload(self, mock_get):
        mock_get.return_value = _json_response(["not", "a", "dict"])
        with pytest.raises(EnrichmentUnavailable):
            fetch_impactstory_profile("someone")

    def test_absent(self):
        assert lookup_impactstory("").status == STATUS_ABSENT


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

class TestGitHub:
    @patch("academia_cv.enrich.requests.get")
    def test_public_repos(self, mock_get):
        mock_get.return_value = _json_response({"login": "octocat", "public_repos": 42})
        assert fetch_github_user("octocat") == {"public_repos": 42}
        assert mock_get.call_args.args[0] == "https://api.github.com/users/octocat"

    @patch("academia_cv.enrich.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        result = lookup_github("octocat")
        assert result.status == STATUS_ERROR
        assert result.source == "GitHub"

    def test_absent(self):
        assert lookup_github(None).status == STATUS_ABSENT
