"""GitHub data fetcher for repository scoring."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import httpx

from netscore.adapters.base import parse_repo_url
from netscore.config import GITHUB_TOKEN_ENV, ScoringConfig
from netscore.errors import InvalidAddress, MissingCredential, UpstreamError
from netscore.models.schemas import (
    Issue,
    PullRequest,
    RepoFile,
    RepoMetadata,
    RepoRef,
    RepositorySnapshot,
)

logger = logging.getLogger(__name__)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


async def _join(*coros):
    """Await coroutines concurrently; on the first failure cancel and reap the rest."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class GitHubFetcher:
    """Fetches repository data from the GitHub REST API.

    Every request carries ``Authorization: token <value>``. Any non-success
    status, transport error or timeout surfaces as UpstreamError; there are
    no retries.
    """

    BASE_URL = "https://api.github.com"
    CONTRIBUTORS_PREFIX = "https://api.github.com/repos/"

    def __init__(
        self,
        token: str,
        client: httpx.AsyncClient | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            token: GitHub personal access token.
            client: Optional httpx client. If not provided, a new client is
                created per request.
            config: Fetch policy (page size, timeouts, issue window).

        Raises:
            MissingCredential: If the token is empty.
        """
        if not token:
            raise MissingCredential(GITHUB_TOKEN_ENV)
        self._token = token
        self._client = client
        self.config = config or ScoringConfig()

        # Rate limit tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_reset: datetime | None = None

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github.v3+json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self.config.request_timeout)

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None and remaining.isdigit():
            self.rate_limit_remaining = int(remaining)
        if reset is not None and reset.isdigit():
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    async def _get(self, url: str, params: dict | None = None) -> httpx.Response:
        """Issue one authenticated GET under the per-call deadline."""
        client = await self._get_client()
        logger.debug(f"GET {url} {params or ''}")
        try:
            response = await client.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(url, reason="timed out") from e
        except httpx.RequestError as e:
            raise UpstreamError(url, reason=str(e)) from e
        finally:
            if self._client is None:
                await client.aclose()

        self._update_rate_limits(response)
        return response

    async def _fetch(
        self,
        url: str,
        params: dict | None = None,
        allow_missing: bool = False,
    ) -> dict | list | None:
        """Fetch JSON from the API.

        Returns None on 404 when ``allow_missing`` is set and an empty list
        on 204 (GitHub answers that for empty repositories). Raises
        UpstreamError on every other failure.
        """
        if url.startswith("/"):
            url = f"{self.BASE_URL}{url}"

        response = await self._get(url, params)
        if response.status_code == 404 and allow_missing:
            return None
        if response.status_code == 204:
            return []
        if not response.is_success:
            raise UpstreamError(url, response.status_code, response.reason_phrase)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(url, response.status_code, "invalid JSON") from e

    async def _fetch_all_pages(
        self,
        path: str,
        params: dict | None = None,
        allow_missing: bool = False,
    ) -> list:
        """Fetch pages until a short page or ``config.max_pages``."""
        params = dict(params or {})
        params["per_page"] = self.config.page_size

        results: list = []
        for page in range(1, self.config.max_pages + 1):
            params["page"] = page
            data = await self._fetch(path, params=params, allow_missing=allow_missing)
            if not data or not isinstance(data, list):
                break

            results.extend(data)

            if len(data) < self.config.page_size:
                break
        return results

    def _as_ref(self, address: RepoRef | str) -> RepoRef:
        """Accept a RepoRef or a repository URL string."""
        if isinstance(address, RepoRef):
            return address
        ref = parse_repo_url(address or "")
        if ref is None:
            raise InvalidAddress(str(address))
        return ref

    async def fetch_metadata(self, address: RepoRef | str) -> RepoMetadata:
        """Fetch stars, forks, open issues, license and contributors reference.

        Raises:
            InvalidAddress: If the address has no owner/repository.
            UpstreamError: On a non-success response.
        """
        ref = self._as_ref(address)
        data = await self._fetch(ref.api_path)
        if not isinstance(data, dict):
            raise UpstreamError(f"{self.BASE_URL}{ref.api_path}", reason="unexpected payload")

        license_info = data.get("license")
        license_name = "No license"
        if isinstance(license_info, dict) and license_info.get("name"):
            license_name = license_info["name"]

        open_issues = data.get("open_issues_count")
        contributors_url = data.get("contributors_url")

        return RepoMetadata(
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            open_issues=open_issues if isinstance(open_issues, int) else None,
            license=license_name,
            updated_at=_parse_datetime(data.get("updated_at")),
            contributors_url=contributors_url if isinstance(contributors_url, str) else None,
        )

    async def fetch_issues(self, address: RepoRef | str) -> tuple[list[Issue], list[Issue]]:
        """Fetch open and closed issues updated within the issue window.

        Both requests run concurrently; if one fails the other is cancelled.

        Returns:
            Tuple of (open_issues, closed_issues).
        """
        ref = self._as_ref(address)
        since = datetime.now(timezone.utc) - timedelta(days=self.config.issue_window_days)
        since_param = since.strftime("%Y-%m-%dT%H:%M:%SZ")
        path = f"{ref.api_path}/issues"

        open_raw, closed_raw = await _join(
            self._fetch_all_pages(path, params={"state": "open", "since": since_param}),
            self._fetch_all_pages(path, params={"state": "closed", "since": since_param}),
        )
        return self._parse_issues(open_raw), self._parse_issues(closed_raw)

    def _parse_issues(self, items: list) -> list[Issue]:
        issues = []
        for item in items:
            if not isinstance(item, dict):
                continue
            number = item.get("number")
            issues.append(
                Issue(
                    number=number if isinstance(number, int) else None,
                    created_at=_parse_datetime(item.get("created_at")),
                    closed_at=_parse_datetime(item.get("closed_at")),
                )
            )
        return issues

    async def fetch_contributors(self, reference: str | int) -> int:
        """Resolve a contributor reference into a count.

        Args:
            reference: GitHub ``contributors_url``, or an already known
                maintainer count (npm) which is returned unchanged.

        Raises:
            InvalidAddress: If the URL is not under the GitHub repos API.
            UpstreamError: On a non-success response.
        """
        if isinstance(reference, int):
            return reference
        if not reference or not reference.startswith(self.CONTRIBUTORS_PREFIX):
            raise InvalidAddress(str(reference), "Invalid contributors count URL")

        contributors = await self._fetch(reference, params={"per_page": self.config.page_size})
        if not isinstance(contributors, list):
            return 0
        return len(contributors)

    async def fetch_top_level_contents(self, address: RepoRef | str) -> list[RepoFile]:
        """Fetch the repository's root directory listing."""
        ref = self._as_ref(address)
        items = await self._fetch(f"{ref.api_path}/contents")
        if not isinstance(items, list):
            return []

        files = []
        for item in items:
            if not isinstance(item, dict) or not item.get("name"):
                continue
            download_url = item.get("download_url")
            files.append(
                RepoFile(
                    name=item["name"],
                    type="dir" if item.get("type") == "dir" else "file",
                    download_url=download_url if isinstance(download_url, str) else None,
                )
            )
        return files

    async def fetch_json_file(self, download_url: str) -> dict | list:
        """Download and parse a JSON file from the repository (e.g. package.json)."""
        data = await self._fetch(download_url)
        if data is None:
            raise UpstreamError(download_url, reason="empty body")
        return data

    async def fetch_merged_pull_requests_with_reviews(
        self, address: RepoRef | str
    ) -> list[PullRequest]:
        """Fetch merged pull requests and whether each got an approving review.

        Closed pull requests are paged, merged ones kept, then one review
        request per merged pull request runs concurrently (bounded by
        ``config.review_concurrency``). A failed review request counts that
        pull request as unreviewed.
        """
        ref = self._as_ref(address)
        closed = await self._fetch_all_pages(
            f"{ref.api_path}/pulls",
            params={"state": "closed"},
            allow_missing=True,
        )
        merged = [
            pr for pr in closed
            if isinstance(pr, dict) and pr.get("merged_at") and isinstance(pr.get("number"), int)
        ]
        if not merged:
            return []

        semaphore = asyncio.Semaphore(self.config.review_concurrency)

        async def review_pr(pr: dict) -> PullRequest:
            async with semaphore:
                approved = await self._has_approving_review(ref, pr["number"])
            return PullRequest(
                number=pr["number"],
                merged_at=_parse_datetime(pr.get("merged_at")),
                approved=approved,
            )

        return list(await asyncio.gather(*(review_pr(pr) for pr in merged)))

    async def _has_approving_review(self, ref: RepoRef, number: int) -> bool:
        try:
            reviews = await self._fetch(f"{ref.api_path}/pulls/{number}/reviews")
        except UpstreamError as e:
            logger.debug(f"Reviews unavailable for {ref.owner}/{ref.repo}#{number}: {e}")
            return False
        if not isinstance(reviews, list):
            return False
        return any(isinstance(r, dict) and r.get("state") == "APPROVED" for r in reviews)

    async def fetch_snapshot(
        self,
        address: RepoRef | str,
        maintainer_count: int | None = None,
    ) -> RepositorySnapshot:
        """Fetch the data every scoring run needs.

        Metadata and issues are fetched concurrently, then the contributor
        count. A failure cancels the sibling requests before propagating.
        Files and pull requests are left for the calculators.

        Args:
            address: Repository to fetch.
            maintainer_count: npm maintainer count, used when GitHub gives
                no contributors reference.

        Raises:
            InvalidAddress: If the address is malformed.
            UpstreamError: If any required call fails.
        """
        ref = self._as_ref(address)
        metadata, (open_issues, closed_issues) = await _join(
            self.fetch_metadata(ref),
            self.fetch_issues(ref),
        )

        reference: str | int | None = metadata.contributors_url or maintainer_count
        if reference is None:
            raise UpstreamError(ref.url, reason="no contributor or maintainer data available")
        contributor_count = await self.fetch_contributors(reference)

        return RepositorySnapshot(
            address=ref,
            metadata=metadata,
            contributor_count=contributor_count,
            open_issues=tuple(open_issues),
            closed_issues=tuple(closed_issues),
        )
