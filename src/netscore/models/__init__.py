"""Data models and schemas."""

from netscore.models.schemas import (
    FAILED_NET_SCORE,
    FailedScore,
    Issue,
    MetricResult,
    Platform,
    PullRequest,
    RepoFile,
    RepoMetadata,
    RepoRef,
    RepositorySnapshot,
    ScoreReport,
)

__all__ = [
    "FAILED_NET_SCORE",
    "FailedScore",
    "Issue",
    "MetricResult",
    "Platform",
    "PullRequest",
    "RepoFile",
    "RepoMetadata",
    "RepoRef",
    "RepositorySnapshot",
    "ScoreReport",
]
