"""The seven metric calculators.

Each metric has a pure scoring function over already-fetched data and an
async calculator taking a MetricContext. Calculators that need data the
snapshot did not prefetch (contents listing, manifests, pull requests) fetch
it themselves and fall back to their degraded default when that fails.
Calculators never raise for upstream or parse failures.
"""

import asyncio
import logging
import math
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from netscore.analyzers.github import GitHubFetcher
from netscore.config import ScoringConfig
from netscore.errors import NetScoreError
from netscore.models.schemas import Issue, PullRequest, RepoFile, RepositorySnapshot

logger = logging.getLogger(__name__)

PINNED_VERSION = re.compile(r"^\d+\.\d+\.\d+$")


@dataclass(frozen=True)
class MetricContext:
    """Inputs shared, read-only, by all calculators of one scoring run."""

    snapshot: RepositorySnapshot
    fetcher: GitHubFetcher
    config: ScoringConfig


# --- Pure scoring functions ---


def bus_factor_score(contributor_count: int) -> float:
    """Step function over the number of contributors (or npm maintainers)."""
    if contributor_count >= 10:
        return 1.0
    if contributor_count >= 5:
        return 0.7
    if contributor_count >= 2:
        return 0.4
    return 0.1


def correctness_score(open_issue_count: int | None) -> float:
    """``1 / (1 + ln(1 + issues))``; a repository without open issues scores 1.

    A missing issue count scores 0.
    """
    if open_issue_count is None:
        return 0.0
    if open_issue_count <= 0:
        return 1.0
    return round(1 / (1 + math.log(1 + open_issue_count)), 2)


def ramp_up_score(files: Iterable[RepoFile], config: ScoringConfig) -> float:
    """Count onboarding indicators in the top-level listing.

    Indicators: README, CONTRIBUTING, source directory, test directory,
    a build manifest and a CI config. Normalized by ``ramp_up_max_score``.
    """
    names = set()
    dirs = set()
    for f in files:
        name = f.name.lower()
        names.add(name)
        if f.type == "dir":
            dirs.add(name)

    indicators = [
        bool(names & config.readme_names),
        bool(names & config.contributing_names),
        bool(dirs & config.source_dirs),
        bool(dirs & config.test_dirs),
        bool(names & config.manifest_files),
        bool(names & config.ci_files),
    ]
    score = sum(indicators) / config.ramp_up_max_score
    return round(min(score, 1.0), 2)


def responsiveness_score(open_issues: Sequence[Issue], closed_issues: Sequence[Issue]) -> float:
    """Ratio of closed to open recent issues, capped at 1.

    No open issues scores 0, not 1.
    """
    if not open_issues:
        return 0.0
    return round(min(1.0, len(closed_issues) / len(open_issues)), 2)


def license_score(license_name: str | None, config: ScoringConfig) -> float:
    """1 if the license is in the compatibility allow-list, else 0."""
    if license_name and license_name in config.compatible_licenses:
        return 1.0
    return 0.0


def is_pinned(version: str) -> bool:
    """True for an exact ``major.minor.patch`` version literal."""
    return bool(PINNED_VERSION.match(version.strip()))


def manifest_pinning_score(manifest: Mapping) -> float:
    """Fraction of a package.json's dependencies pinned to an exact version.

    ``dependencies`` and ``devDependencies`` are merged; on a name collision
    the ``dependencies`` entry wins. A manifest with no dependencies scores 1.
    """
    merged: dict[str, str] = {}
    for section in ("dependencies", "devDependencies"):
        entries = manifest.get(section) or {}
        if not isinstance(entries, Mapping):
            continue
        for name, version in entries.items():
            if name not in merged:
                merged[name] = version

    versions = [v for v in merged.values() if isinstance(v, str)]
    if not versions:
        return 1.0

    pinned = sum(1 for v in versions if is_pinned(v))
    return round(pinned / len(versions), 2)


def pull_request_review_score(pull_requests: Sequence[PullRequest]) -> float:
    """Share of merged pull requests that had an approving review."""
    if not pull_requests:
        return 0.0
    approved = sum(1 for pr in pull_requests if pr.approved)
    return round(approved / len(pull_requests), 2)


# --- Calculators ---


async def _top_level_files(ctx: MetricContext) -> Sequence[RepoFile]:
    if ctx.snapshot.files is not None:
        return ctx.snapshot.files
    return await ctx.fetcher.fetch_top_level_contents(ctx.snapshot.address)


async def bus_factor(ctx: MetricContext) -> float:
    return bus_factor_score(ctx.snapshot.contributor_count)


async def correctness(ctx: MetricContext) -> float:
    return correctness_score(ctx.snapshot.metadata.open_issues)


async def ramp_up(ctx: MetricContext) -> float:
    try:
        files = await _top_level_files(ctx)
    except (NetScoreError, ValueError) as e:
        logger.warning(f"RampUp: could not list repository contents: {e}")
        return 0.0
    return ramp_up_score(files, ctx.config)


async def responsive_maintainer(ctx: MetricContext) -> float:
    return responsiveness_score(ctx.snapshot.open_issues, ctx.snapshot.closed_issues)


async def license_compatibility(ctx: MetricContext) -> float:
    return license_score(ctx.snapshot.metadata.license, ctx.config)


async def _manifest_score(ctx: MetricContext, manifest: RepoFile) -> float:
    if not manifest.download_url:
        return 0.0
    try:
        content = await ctx.fetcher.fetch_json_file(manifest.download_url)
    except (NetScoreError, ValueError) as e:
        logger.warning(f"PinnedDependencies: could not read {manifest.name}: {e}")
        return 0.0
    if not isinstance(content, Mapping):
        return 0.0
    return manifest_pinning_score(content)


async def pinned_dependencies(ctx: MetricContext) -> float:
    try:
        files = await _top_level_files(ctx)
    except (NetScoreError, ValueError) as e:
        logger.warning(f"PinnedDependencies: could not list repository contents: {e}")
        return 0.0

    target = ctx.config.dependency_manifest.lower()
    manifests = [f for f in files if f.type == "file" and f.name.lower() == target]
    if not manifests:
        return 1.0

    scores = await asyncio.gather(*(_manifest_score(ctx, m) for m in manifests))
    return round(sum(scores) / len(scores), 2)


async def pull_request_review(ctx: MetricContext) -> float:
    pull_requests = ctx.snapshot.pull_requests
    if pull_requests is None:
        try:
            pull_requests = await ctx.fetcher.fetch_merged_pull_requests_with_reviews(
                ctx.snapshot.address
            )
        except (NetScoreError, ValueError) as e:
            logger.warning(f"PullRequestReview: could not fetch pull requests: {e}")
            return 0.0
    return pull_request_review_score(pull_requests)


Calculator = Callable[[MetricContext], Awaitable[float]]

# Keyed by the names used in ScoringConfig.weights
METRICS: dict[str, Calculator] = {
    "BusFactor": bus_factor,
    "Correctness": correctness,
    "RampUp": ramp_up,
    "ResponsiveMaintainer": responsive_maintainer,
    "License": license_compatibility,
    "PinnedDependencies": pinned_dependencies,
    "PullRequestReview": pull_request_review,
}
