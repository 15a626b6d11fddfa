"""End-to-end scoring pipeline for package URLs."""

import logging
import time

import httpx

from netscore.adapters.npm import NpmAdapter
from netscore.adapters.resolver import IdentifierResolver
from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.scorer import Scorer
from netscore.config import ScoringConfig, get_github_token
from netscore.errors import NetScoreError
from netscore.models.schemas import FailedScore, ScoreReport

logger = logging.getLogger(__name__)


class ScoringPipeline:
    """Orchestrates scoring for a package URL.

    Pipeline stages:
    1. Resolve the URL to a GitHub repository (npm registry lookup if needed)
    2. Fetch the repository snapshot (metadata, issues, contributors)
    3. Run the seven metrics concurrently
    4. Reduce to the weighted NetScore

    Use as an async context manager to share one HTTP client across calls.
    """

    def __init__(
        self,
        token: str | None = None,
        config: ScoringConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            token: GitHub token. If not provided, read from GITHUB_TOKEN.
            config: Scoring policy.
            client: Optional shared httpx client.

        Raises:
            MissingCredential: If no token is given or configured.
        """
        self.config = config or ScoringConfig()
        self._token = token or get_github_token()
        self._http_client = client
        self._owns_client = False
        self.scorer = Scorer(self.config)
        self._build_collaborators()

    def _build_collaborators(self) -> None:
        self.github = GitHubFetcher(
            token=self._token,
            client=self._http_client,
            config=self.config,
        )
        self.resolver = IdentifierResolver(
            NpmAdapter(client=self._http_client, timeout=self.config.request_timeout)
        )

    async def __aenter__(self) -> "ScoringPipeline":
        """Set up shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.request_timeout)
            self._owns_client = True
            self._build_collaborators()
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False
            self._build_collaborators()

    async def score_url(self, url: str) -> ScoreReport:
        """Resolve, fetch and score a package URL.

        Raises:
            InvalidIdentifier: Malformed or unsupported URL.
            NoRepositoryFound: npm package without a repository.
            InvalidAddress: Repository address cannot be used.
            UpstreamError: A required upstream call failed.
        """
        start = time.perf_counter()

        resolved = await self.resolver.resolve(url)
        snapshot = await self.github.fetch_snapshot(
            resolved.address,
            maintainer_count=resolved.maintainer_count,
        )
        report = await self.scorer.score_snapshot(
            snapshot,
            self.github,
            url=url,
            started=start,
        )

        logger.info(f"Processed URL: {resolved.repository_url}, Score: {report.net_score}")
        return report

    async def score_url_safe(self, url: str) -> ScoreReport | FailedScore:
        """Like ``score_url`` but reports failures as a NetScore of -1."""
        try:
            return await self.score_url(url)
        except NetScoreError as e:
            logger.warning(f"Scoring failed for {url}: {e}")
            return FailedScore(url=url, error=str(e))
