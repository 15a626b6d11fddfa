"""NPM registry adapter."""

import logging
import re

import httpx
from pydantic import BaseModel

from netscore.errors import InvalidIdentifier, UpstreamError

logger = logging.getLogger(__name__)

NPM_HOSTS = ("npmjs.com", "npmjs.org")
NPM_PACKAGE_PATTERN = re.compile(r"npmjs\.(?:com|org)/package/(.+)$", re.IGNORECASE)


class NpmPackage(BaseModel):
    """The parts of npm registry metadata the resolver needs."""

    name: str
    repository_url: str | None = None
    maintainer_count: int = 0


def is_npm_url(url: str) -> bool:
    """Return True for URLs hosted on npmjs.com or npmjs.org."""
    try:
        host = httpx.URL(url.strip()).host.lower()
    except httpx.InvalidURL:
        return False
    return any(host == domain or host.endswith(f".{domain}") for domain in NPM_HOSTS)


def package_name_from_url(url: str) -> str:
    """Extract the package name from an npm package page URL.

    Scoped names (``@scope/pkg``) are kept intact; trailing version,
    query and fragment parts are dropped.

    Raises:
        InvalidIdentifier: If the URL has no ``/package/<name>`` segment.
    """
    match = NPM_PACKAGE_PATTERN.search(url.strip())
    if not match:
        raise InvalidIdentifier(url, "Invalid npm URL")

    path = re.split(r"[?#]", match.group(1), maxsplit=1)[0].strip("/")
    parts = [part for part in path.split("/") if part]
    if not parts:
        raise InvalidIdentifier(url, "Invalid npm URL")

    if parts[0].startswith("@"):
        if len(parts) < 2:
            raise InvalidIdentifier(url, "Invalid npm URL")
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


class NpmAdapter:
    """Adapter for the npm registry read API.

    Data sources:
    - Package metadata: https://registry.npmjs.org/{package}

    Unauthenticated; the GitHub credential is never sent here.
    """

    REGISTRY_URL = "https://registry.npmjs.org"

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        """Initialize the adapter.

        Args:
            client: Optional httpx client for making requests.
            timeout: Per-request timeout in seconds.
        """
        self._client = client
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _fetch_json(self, url: str) -> dict:
        """Fetch JSON from a URL, mapping every failure to UpstreamError."""
        client = await self._get_client()
        try:
            response = await client.get(url, timeout=self._timeout)
            if not response.is_success:
                raise UpstreamError(url, response.status_code, response.reason_phrase)
            data = response.json()
        except httpx.TimeoutException as e:
            raise UpstreamError(url, reason="timed out") from e
        except httpx.RequestError as e:
            raise UpstreamError(url, reason=str(e)) from e
        except ValueError as e:
            raise UpstreamError(url, reason="invalid JSON") from e
        finally:
            if self._client is None:
                await client.aclose()

        if not isinstance(data, dict):
            raise UpstreamError(url, reason="unexpected payload")
        return data

    async def get_package_metadata(self, name: str) -> NpmPackage:
        """Fetch registry metadata for an npm package.

        Args:
            name: Package name (supports scoped packages like @org/pkg).

        Raises:
            UpstreamError: On a non-success registry response.
        """
        # URL-encode scoped package names
        encoded_name = name.replace("/", "%2F")
        url = f"{self.REGISTRY_URL}/{encoded_name}"
        logger.debug(f"npm: fetching {url}")

        data = await self._fetch_json(url)

        maintainers = data.get("maintainers") or []
        if not isinstance(maintainers, list):
            maintainers = []

        return NpmPackage(
            name=data.get("name") or name,
            repository_url=self._extract_repo_url(data.get("repository")),
            maintainer_count=len(maintainers),
        )

    def _extract_repo_url(self, repository: dict | str | None) -> str | None:
        """Extract the raw repository URL from the npm repository field.

        Handles both formats:
        - {"type": "git", "url": "git+https://github.com/owner/repo.git"}
        - "github:owner/repo" or a plain URL string
        """
        if isinstance(repository, str):
            url = repository
        elif isinstance(repository, dict):
            url = repository.get("url")
        else:
            return None

        if not isinstance(url, str) or not url.strip():
            return None
        return url.strip()
