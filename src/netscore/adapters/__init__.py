"""Package identifier adapters."""

from netscore.adapters.base import normalize_repository_url, parse_repo_url
from netscore.adapters.npm import NpmAdapter, NpmPackage
from netscore.adapters.resolver import IdentifierResolver, ResolvedIdentifier

__all__ = [
    "IdentifierResolver",
    "NpmAdapter",
    "NpmPackage",
    "ResolvedIdentifier",
    "normalize_repository_url",
    "parse_repo_url",
]
