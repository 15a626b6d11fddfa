"""Concurrent metric runner and NetScore reduction."""

import asyncio
import logging
import time
from collections.abc import Mapping

from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.metrics import METRICS, Calculator, MetricContext
from netscore.config import METRIC_NAMES, ScoringConfig
from netscore.models.schemas import MetricResult, RepositorySnapshot, ScoreReport

logger = logging.getLogger(__name__)

# ScoreReport field prefix for each metric
REPORT_FIELDS = {
    "BusFactor": "bus_factor",
    "Correctness": "correctness",
    "RampUp": "ramp_up",
    "ResponsiveMaintainer": "responsive_maintainer",
    "License": "license",
    "PinnedDependencies": "pinned_dependencies",
    "PullRequestReview": "pull_request_review",
}


def elapsed_ms(start: float) -> int:
    """Whole milliseconds since a ``time.perf_counter()`` reading."""
    return max(0, int((time.perf_counter() - start) * 1000))


async def measure_latency(label: str, calculator: Calculator, ctx: MetricContext) -> MetricResult:
    """Run one calculator and time it.

    Latency is recorded however the calculator exits. An unexpected
    exception scores the metric 0 instead of failing the whole run.
    """
    start = time.perf_counter()
    try:
        score = await calculator(ctx)
    except Exception:
        logger.exception(f"Metric {label} failed; scoring it 0")
        score = 0.0
    latency = elapsed_ms(start)

    if not 0.0 <= score <= 1.0:
        logger.warning(f"Metric {label} returned {score}, clamping to [0, 1]")
        score = min(1.0, max(0.0, score))
    return MetricResult(label=label, score=score, latency_ms=latency)


class Scorer:
    """Runs the seven calculators concurrently and reduces them to a NetScore.

    Default weights (total 1.00):
    - ResponsiveMaintainer: 0.30
    - Correctness: 0.25
    - RampUp: 0.15
    - BusFactor: 0.10
    - License: 0.10
    - PinnedDependencies: 0.05
    - PullRequestReview: 0.05
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        metrics: Mapping[str, Calculator] | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.metrics = dict(metrics or METRICS)

    def net_score(self, scores: Mapping[str, float]) -> float:
        """Weighted sum of the sub-scores, rounded to 2 decimals."""
        total = sum(self.config.weights[name] * scores.get(name, 0.0) for name in METRIC_NAMES)
        return round(min(1.0, max(0.0, total)), 2)

    async def run_metrics(self, ctx: MetricContext) -> dict[str, MetricResult]:
        """Run every calculator concurrently and wait for all of them."""
        results = await asyncio.gather(
            *(measure_latency(name, self.metrics[name], ctx) for name in METRIC_NAMES)
        )
        return {result.label: result for result in results}

    async def score_snapshot(
        self,
        snapshot: RepositorySnapshot,
        fetcher: GitHubFetcher,
        url: str | None = None,
        started: float | None = None,
    ) -> ScoreReport:
        """Score a fetched repository snapshot.

        Args:
            snapshot: Data fetched for the repository.
            fetcher: Used by calculators needing data the snapshot lacks.
            url: URL reported in the result. Defaults to the repository URL.
            started: ``time.perf_counter()`` reading at which the overall
                latency starts, so resolution and fetching can be included.
        """
        start = time.perf_counter() if started is None else started
        ctx = MetricContext(snapshot=snapshot, fetcher=fetcher, config=self.config)

        results = await self.run_metrics(ctx)
        net = self.net_score({name: result.score for name, result in results.items()})

        fields: dict[str, float | int] = {}
        for name, prefix in REPORT_FIELDS.items():
            fields[prefix] = results[name].score
            fields[f"{prefix}_latency"] = results[name].latency_ms

        return ScoreReport(
            url=url or snapshot.address.url,
            net_score=net,
            net_score_latency=elapsed_ms(start),
            **fields,
        )
