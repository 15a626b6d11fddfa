"""Analyzers for fetching repository data and scoring it."""

from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.pipeline import ScoringPipeline
from netscore.analyzers.scorer import Scorer

__all__ = ["GitHubFetcher", "ScoringPipeline", "Scorer"]
