"""Configuration management for academia-cv.

Loads settings from a YAML configuration file on top of built-in defaults.
Identifiers (ORCID, Google Scholar, ImpactStory) live here and are passed
down to every stage of a run; nothing downstream re-declares them.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("academia_cv.config")


DEFAULT_CONFIG = {
    "api": {
        "base_url": "https://pub.orcid.org/v3.0",
        "timeout": 30,
        "works_batch_size": 50,
        "max_retries": 3,
        "rate_limit_delay": 0.3,
        "rate_limit_backoff": 0.5,
    },
    "identity": {
        "orcid_id": "0000-0002-0337-5997",
        "scholar_id": "vpjEkQwAAAAJ",
        "impactstory_id": "0000-0002-0337-5997",
        "github_user": None,
        "emphasis_name": "O'Meara",
    },
    "enrich": {
        "timeout": 20,
        "impactstory_url": "https://impactstory.org/api",
        "github_url": "https://api.github.com",
    },
    "summary": {
        "publications_offset": -2,
        "prominent_pubs": (
            "*Science, Nature, Ann. Rev Ecology, Evolution & Systematics, "
            "Systematic Biology, Evolution*, etc."
        ),
        "teaching": (
            "Approximately 4 courses per year on average, ranging from large "
            "introductory biology courses to small graduate seminars"
        ),
        "service": (
            "Darwin Day TN advisor, co-organizer of women in science symposium, "
            "workshops, and other activities, co-organizer for national meetings, "
            "curator of R phylogenetics task view, instructor at workshops in "
            "Sweden, Switzerland, Brazil, and various US locations (Ohio, TN, NC)"
        ),
        "funding_suffix": (
            " (including a CAREER grant) plus funding from iPlant and "
            "Encyclopedia of Life"
        ),
        "altmetric_sources": {
            "mendeley": "saved {count} times in reference manager Mendeley",
            "twitter": "tweeted about {count} times",
            "news": "mentioned {count} times in the news",
        },
    },
    "funding": {
        "currency_symbol": "$",
        "additional_text": "",
        # Ordered (substring, acronym) pairs; first match wins
        "funder_acronyms": [
            ["National Science Foundation", "NSF"],
            ["National Institutes of Health", "NIH"],
        ],
    },
    "publications": {
        "badges": ["global_reach", "depsy"],
        "suppressed_fields": ["url", "doi"],
    },
    "bibliography": {
        # Ordered (literal, replacement) pairs applied after encoding cleanup
        "name_fixes": [
            ["meara", "Meara"],
            ["O?Meara", "O'Meara"],
        ],
    },
    "people": {
        "path": "data/people.txt",
        "postdoc_intro": "",
        "committee_intro": "In addition to my own students, of course.",
        # Per stage: ordered [table column, header] pairs
        "columns": {
            "Postdoc": [
                ["Name", "Name"],
                ["Duration", "Duration"],
                ["NIMBioS", "NIMBioS"],
                ["CurrentPosition", "Current Position"],
            ],
            "PhD student": [
                ["Name", "Name"],
                ["Stage", "Stage"],
                ["Duration", "Time in Lab"],
                ["Note", "Note"],
            ],
            "Undergrad": [
                ["Name", "Name"],
                ["Stage", "Stage"],
                ["Duration", "Time in Lab"],
                ["Note", "Note"],
            ],
            "Committee": [
                ["Name", "Name"],
                ["Department", "Department"],
            ],
        },
    },
    "service": {
        "path": "data/service.txt",
        "marker": "*",
    },
    "assemble": {
        "static_dir": "data",
        "css": "format.css",
        "output_name": "CV",
        "pandoc": "pandoc",
        "wkhtmltopdf": "wkhtmltopdf",
        "inputs": [
            "head.md",
            "summary",
            "education",
            "employment",
            "publications",
            "teaching.md",
            "funding",
            "presentations.md",
            "people",
            "service",
        ],
    },
}

# Keys holding base URLs that must stay on HTTPS after a merge
_HTTPS_KEYS = [
    ("api", "base_url"),
    ("enrich", "impactstory_url"),
    ("enrich", "github_url"),
]


class Config:
    """Configuration manager for academia-cv."""

    def __init__(self, config_file: Path | None = None):
        """Initialize configuration.

        Args:
            config_file: Path to YAML config file (optional)
        """
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_file and config_file.exists():
            self._load_from_file(config_file)

        self._apply_env_overrides()

    def _load_from_file(self, config_file: Path) -> None:
        """Load configuration from YAML file.

        Args:
            config_file: Path to YAML config file
        """
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_file}: {e}")
            return

        if user_config:
            self._merge_config(user_config)

    def _merge_config(self, user_config: dict) -> None:
        """Merge user configuration with defaults (one level deep)."""
        for section, values in user_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

        self._validate_config()

    def _validate_config(self) -> None:
        """Reset any non-HTTPS service URL back to its default."""
        for section, key in _HTTPS_KEYS:
            url = self._config.get(section, {}).get(key, "")
            if url and not url.startswith("https://"):
                logger.warning(f"Rejecting non-HTTPS {section}.{key}: {url}")
                self._config[section][key] = DEFAULT_CONFIG[section][key]

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides.

        Supports:
        - CV_ORCID_ID
        - CV_SCHOLAR_ID
        - CV_IMPACTSTORY_ID
        - ORCID_API_BASE_URL
        - ORCID_API_TIMEOUT
        """
        if orcid_id := os.getenv("CV_ORCID_ID"):
            self._config["identity"]["orcid_id"] = orcid_id

        if scholar_id := os.getenv("CV_SCHOLAR_ID"):
            self._config["identity"]["scholar_id"] = scholar_id

        if impactstory_id := os.getenv("CV_IMPACTSTORY_ID"):
            self._config["identity"]["impactstory_id"] = impactstory_id

        if base_url := os.getenv("ORCID_API_BASE_URL"):
            self._config["api"]["base_url"] = base_url

        if timeout := os.getenv("ORCID_API_TIMEOUT"):
            try:
                self._config["api"]["timeout"] = int(timeout)
            except ValueError:
                logger.warning(f"Ignoring non-integer ORCID_API_TIMEOUT: {timeout}")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            section: Configuration section (e.g., 'api', 'identity')
            key: Configuration key within section
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        return self._config.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Override a single value (used for command-line overrides)."""
        self._config.setdefault(section, {})[key] = value

    @property
    def api_base_url(self) -> str:
        """Get ORCID API base URL."""
        return self.get("api", "base_url")

    @property
    def api_timeout(self) -> int:
        """Get ORCID API request timeout in seconds."""
        return self.get("api", "timeout")

    @property
    def works_batch_size(self) -> int:
        """Get the number of put-codes requested per bulk works call."""
        return min(int(self.get("api", "works_batch_size")), 100)

    @property
    def max_retries(self) -> int:
        return self.get("api", "max_retries")

    @property
    def rate_limit_delay(self) -> float:
        return self.get("api", "rate_limit_delay")

    @property
    def rate_limit_backoff(self) -> float:
        return self.get("api", "rate_limit_backoff")

    @property
    def orcid_id(self) -> str:
        return self.get("identity", "orcid_id")

    @property
    def scholar_id(self) -> str | None:
        return self.get("identity", "scholar_id")

    @property
    def impactstory_id(self) -> str | None:
        return self.get("identity", "impactstory_id")

    @property
    def github_user(self) -> str | None:
        return self.get("identity", "github_user")

    @property
    def emphasis_name(self) -> str:
        """Get the author name rendered in bold in reference lists."""
        return self.get("identity", "emphasis_name", "")

    @property
    def enrich_timeout(self) -> int:
        return self.get("enrich", "timeout")


_default_config = None


def get_config(config_file: Path | None = None) -> Config:
    """Get configuration instance.

    Args:
        config_file: Optional path to config file

    Returns:
        Config instance
    """
    global _default_config

    if config_file:
        _default_config = Config(config_file)
        return _default_config

    if _default_config is None:
        default_paths = [
            Path.cwd() / ".academia-cv.yaml",
            Path.home() / ".academia-cv.yaml",
        ]

        for path in default_paths:
            if path.exists():
                _default_config = Config(path)
                break

        if _default_config is None:
            _default_config = Config()

    return _default_config
