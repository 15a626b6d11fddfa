"""Scoring configuration and credential lookup."""

import math
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

from netscore.errors import MissingCredential

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"

# Order matches the report layout
METRIC_NAMES: tuple[str, ...] = (
    "BusFactor",
    "Correctness",
    "RampUp",
    "ResponsiveMaintainer",
    "License",
    "PinnedDependencies",
    "PullRequestReview",
)

DEFAULT_WEIGHTS: dict[str, float] = {
    "BusFactor": 0.10,
    "Correctness": 0.25,
    "RampUp": 0.15,
    "ResponsiveMaintainer": 0.30,
    "License": 0.10,
    "PinnedDependencies": 0.05,
    "PullRequestReview": 0.05,
}


def get_github_token(environ: Mapping[str, str] | None = None) -> str:
    """Return the GitHub API token from the environment.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Raises:
        MissingCredential: If the token is unset or blank.
    """
    env = os.environ if environ is None else environ
    token = (env.get(GITHUB_TOKEN_ENV) or "").strip()
    if not token:
        raise MissingCredential(GITHUB_TOKEN_ENV)
    return token


class ScoringConfig(BaseModel):
    """Tunable scoring policy.

    Weights and file-indicator lists are policy values; override them here
    rather than in the calculators.
    """

    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    # GitHub reports license display names, not SPDX ids
    compatible_licenses: frozenset[str] = frozenset(
        {
            "GNU General Public License v2.0",
            "GNU General Public License v3.0",
            "GNU Lesser General Public License v2.1",
            "GNU Lesser General Public License v3.0",
            "MIT License",
            "ISC License",
        }
    )

    # Ramp-up indicators (matched case-insensitively against top-level names)
    readme_names: frozenset[str] = frozenset({"readme.md"})
    contributing_names: frozenset[str] = frozenset({"contributing.md"})
    source_dirs: frozenset[str] = frozenset({"src"})
    test_dirs: frozenset[str] = frozenset({"test"})
    manifest_files: frozenset[str] = frozenset(
        {"package.json", "requirements.txt", "build.gradle", "pom.xml"}
    )
    ci_files: frozenset[str] = frozenset(
        {".travis.yml", ".circleci/config.yml", ".github/workflows/ci.yml"}
    )
    ramp_up_max_score: int = Field(default=8, gt=0)

    # Manifest inspected for pinned dependencies
    dependency_manifest: str = "package.json"

    # GitHub fetch policy
    issue_window_days: int = Field(default=90, gt=0)
    page_size: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=10, ge=1)
    review_concurrency: int = Field(default=10, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: dict[str, float]) -> dict[str, float]:
        missing = set(METRIC_NAMES) - set(value)
        unknown = set(value) - set(METRIC_NAMES)
        if missing or unknown:
            raise ValueError(
                f"weights must cover exactly {', '.join(METRIC_NAMES)} "
                f"(missing: {sorted(missing)}, unknown: {sorted(unknown)})"
            )
        if any(w < 0 for w in value.values()):
            raise ValueError("weights must be non-negative")
        if not math.isclose(sum(value.values()), 1.0, abs_tol=1e-9):
            raise ValueError(f"weights must sum to 1.0, got {sum(value.values())}")
        return value
