"""Fetch tag and release names from the GitHub REST API."""

import enum
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class ConfigurationError(ValueError):
    """Raised for action inputs that cannot be used."""


class Source(str, enum.Enum):
    TAGS = "tags"
    RELEASES = "releases"

    @classmethod
    def from_input(cls, value: str) -> "Source":
        try:
            return cls(value.strip())
        except ValueError:
            raise ConfigurationError(f"'{value}' is not a valid value for \"source\"") from None


@dataclass(frozen=True)
class Repository:
    owner: str
    name: str

    @classmethod
    def from_slug(cls, slug: str) -> "Repository":
        owner, sep, name = (slug or "").partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ConfigurationError(f"'{slug}' is not a valid repository, expected owner/name")
        return cls(owner, name)

    @classmethod
    def from_env(cls, environ=None) -> "Repository":
        environ = os.environ if environ is None else environ
        return cls.from_slug(environ.get("GITHUB_REPOSITORY", ""))

    def __str__(self):
        return f"{self.owner}/{self.name}"


class GitHubClient:
    """Thin wrapper around a requests session for paginated GitHub endpoints."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        session: Optional[requests.Session] = None,
        per_page: int = 100,
        timeout: float = 30,
    ):
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(self._get_headers(token))

    @staticmethod
    def _get_headers(token: Optional[str]) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "get-next-version",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def paginate(self, path: str) -> List[Dict[str, Any]]:
        """GET ``path`` and every page after it, following ``Link: rel="next"``."""
        url = f"{self.api_url}/{path.lstrip('/')}"
        params: Optional[Dict[str, Any]] = {"per_page": self.per_page}
        items: List[Dict[str, Any]] = []
        while url:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            params = None
        logger.info("Fetched %d items from %s", len(items), path)
        return items


def fetch_labels(client: GitHubClient, repository: Repository, source: Source) -> List[str]:
    """Return the names of all tags or releases of ``repository``."""
    if not isinstance(source, Source):
        source = Source.from_input(source)
    if source is Source.TAGS:
        logger.info("coercing with tags")
        items = client.paginate(f"repos/{repository.owner}/{repository.name}/tags")
    elif source is Source.RELEASES:
        logger.info("coercing with releases")
        items = client.paginate(f"repos/{repository.owner}/{repository.name}/releases")
    else:
        raise ConfigurationError(f"'{source}' is not a valid value for \"source\"")
    # Releases may be unnamed; an empty label never survives filtering.
    return [item.get("name") or "" for item in items]
