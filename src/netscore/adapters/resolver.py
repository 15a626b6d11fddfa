"""Resolve package URLs to canonical GitHub repository addresses."""

import logging

from pydantic import BaseModel

from netscore.adapters.base import normalize_repository_url, parse_repo_url
from netscore.adapters.npm import NpmAdapter, is_npm_url, package_name_from_url
from netscore.errors import InvalidAddress, InvalidIdentifier, NoRepositoryFound
from netscore.models.schemas import Platform, RepoRef

logger = logging.getLogger(__name__)


class ResolvedIdentifier(BaseModel):
    """Outcome of resolving a package URL."""

    source_url: str
    platform: Platform
    address: RepoRef
    repository_url: str
    # npm maintainers, used when GitHub gives no contributors reference
    maintainer_count: int | None = None


class IdentifierResolver:
    """Turns npm or GitHub package URLs into repository addresses.

    GitHub URLs are parsed locally. npm URLs are looked up in the npm
    registry and their ``repository.url`` is normalized.
    """

    def __init__(self, npm: NpmAdapter | None = None) -> None:
        self.npm = npm or NpmAdapter()

    async def resolve(self, url: str) -> ResolvedIdentifier:
        """Resolve a package URL.

        Raises:
            InvalidIdentifier: URL is neither a GitHub nor an npm package URL.
            NoRepositoryFound: npm package declares no repository.
            InvalidAddress: npm repository is not a GitHub repository.
            UpstreamError: npm registry request failed.
        """
        url = url.strip()

        if is_npm_url(url):
            return await self._resolve_npm(url)

        address = parse_repo_url(url)
        if address is None:
            raise InvalidIdentifier(url)
        return ResolvedIdentifier(
            source_url=url,
            platform=Platform.GITHUB,
            address=address,
            repository_url=url,
        )

    async def resolve_url(self, url: str) -> str:
        """Return the canonical repository URL; GitHub URLs come back unchanged."""
        resolved = await self.resolve(url)
        return resolved.repository_url

    async def _resolve_npm(self, url: str) -> ResolvedIdentifier:
        name = package_name_from_url(url)
        package = await self.npm.get_package_metadata(name)

        if not package.repository_url:
            logger.info(f"No repository URL found in npm data for {name}")
            raise NoRepositoryFound(name)

        repository_url = normalize_repository_url(package.repository_url)
        address = parse_repo_url(repository_url)
        if address is None:
            raise InvalidAddress(repository_url, "npm repository is not on GitHub")

        logger.debug(f"Resolved npm package {name} to {repository_url}")
        return ResolvedIdentifier(
            source_url=url,
            platform=Platform.NPM,
            address=address,
            repository_url=repository_url,
            maintainer_count=package.maintainer_count,
        )
