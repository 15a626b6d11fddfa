"""Pydantic models for repository data and score reports."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

GITHUB_HOST = "github.com"

# NetScore reported when scoring could not run at all
FAILED_NET_SCORE = -1.0


class Platform(str, Enum):
    """Where a package URL points."""

    GITHUB = "github"
    NPM = "npm"


class RepoRef(BaseModel):
    """Canonical reference to a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    host: str = GITHUB_HOST
    owner: str
    repo: str

    @field_validator("owner", "repo")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("owner and repo must be non-empty")
        return value

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://{self.host}/{self.owner}/{self.repo}"

    @property
    def api_path(self) -> str:
        """Path of this repository under the GitHub REST API."""
        return f"/repos/{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.url


# --- GitHub Data Models ---


class RepoFile(BaseModel):
    """Entry of a repository's top-level contents listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: Literal["file", "dir"] = "file"
    download_url: str | None = None


class Issue(BaseModel):
    """Issue with the timestamps the responsiveness metric cares about."""

    model_config = ConfigDict(frozen=True)

    number: int | None = None
    created_at: datetime | None = None
    closed_at: datetime | None = None


class PullRequest(BaseModel):
    """A merged pull request and whether any review approved it."""

    model_config = ConfigDict(frozen=True)

    number: int
    merged_at: datetime | None = None
    approved: bool = False


class RepoMetadata(BaseModel):
    """Basic GitHub repository data."""

    model_config = ConfigDict(frozen=True)

    stars: int = 0
    forks: int = 0
    open_issues: int | None = None
    license: str = "No license"
    updated_at: datetime | None = None
    contributors_url: str | None = None


class RepositorySnapshot(BaseModel):
    """Everything the calculators read for one scoring run.

    ``files`` and ``pull_requests`` may be left as None, in which case the
    calculators that need them fetch them through the GitHub fetcher.
    """

    model_config = ConfigDict(frozen=True)

    address: RepoRef
    metadata: RepoMetadata = Field(default_factory=RepoMetadata)
    contributor_count: int = Field(default=0, ge=0)
    open_issues: tuple[Issue, ...] = ()
    closed_issues: tuple[Issue, ...] = ()
    files: tuple[RepoFile, ...] | None = None
    pull_requests: tuple[PullRequest, ...] | None = None


# --- Scoring Models ---


class MetricResult(BaseModel):
    """Score and wall-clock latency of a single calculator run."""

    model_config = ConfigDict(frozen=True)

    label: str
    score: float = Field(ge=0, le=1)
    latency_ms: int = Field(ge=0)


class ScoreReport(BaseModel):
    """Final scoring output for a package URL.

    Field aliases are the names downstream consumers expect, so always
    serialize with ``by_alias=True`` (see ``to_output``).
    """

    url: str = Field(serialization_alias="URL")
    net_score: float = Field(ge=0, le=1, serialization_alias="NetScore")
    ramp_up: float = Field(ge=0, le=1, serialization_alias="RampUp")
    correctness: float = Field(ge=0, le=1, serialization_alias="Correctness")
    bus_factor: float = Field(ge=0, le=1, serialization_alias="BusFactor")
    responsive_maintainer: float = Field(
        ge=0, le=1, serialization_alias="ResponsiveMaintainer"
    )
    license: float = Field(ge=0, le=1, serialization_alias="LicenseScore")
    pinned_dependencies: float = Field(ge=0, le=1, serialization_alias="GoodPinningPractice")
    pull_request_review: float = Field(ge=0, le=1, serialization_alias="PullRequest")

    ramp_up_latency: int = Field(ge=0, serialization_alias="RampUpLatency")
    correctness_latency: int = Field(ge=0, serialization_alias="CorrectnessLatency")
    bus_factor_latency: int = Field(ge=0, serialization_alias="BusFactorLatency")
    responsive_maintainer_latency: int = Field(
        ge=0, serialization_alias="ResponsiveMaintainerLatency"
    )
    license_latency: int = Field(ge=0, serialization_alias="LicenseScoreLatency")
    pinned_dependencies_latency: int = Field(
        ge=0, serialization_alias="GoodPinningPracticeLatency"
    )
    pull_request_review_latency: int = Field(ge=0, serialization_alias="PullRequestLatency")
    net_score_latency: int = Field(ge=0, serialization_alias="NetScoreLatency")

    def to_output(self, include_url: bool = False) -> dict:
        """Serialize with the stable downstream field names."""
        exclude = None if include_url else {"url"}
        return self.model_dump(by_alias=True, exclude=exclude)

    def without_latencies(self) -> dict:
        """Scores only; latencies differ between otherwise identical runs."""
        latencies = {name for name in type(self).model_fields if name.endswith("latency")}
        return self.model_dump(exclude=latencies)


class FailedScore(BaseModel):
    """Result reported when resolution or data fetching failed.

    Carries no partial sub-scores.
    """

    url: str = Field(serialization_alias="URL")
    net_score: float = Field(default=FAILED_NET_SCORE, serialization_alias="NetScore")
    error: str = Field(default="", serialization_alias="Error")

    def to_output(self, include_url: bool = False) -> dict:
        exclude = None if include_url else {"url"}
        return self.model_dump(by_alias=True, exclude=exclude)
