"""IdentifierResolver and NpmAdapter tests."""

import httpx
import pytest

from netscore.adapters.npm import NpmAdapter, is_npm_url, package_name_from_url
from netscore.adapters.resolver import IdentifierResolver
from netscore.errors import InvalidAddress, InvalidIdentifier, NoRepositoryFound, UpstreamError
from netscore.models.schemas import Platform

REGISTRY = "https://registry.npmjs.org"


@pytest.fixture
def resolver(fake_api) -> IdentifierResolver:
    """Resolver backed by the fake npm registry."""
    return IdentifierResolver(NpmAdapter(client=fake_api.client()))


class TestPackageNameFromUrl:
    """package_name_from_url tests."""

    @pytest.mark.parametrize(
        ("url", "name"),
        [
            ("https://www.npmjs.com/package/express", "express"),
            ("https://www.npmjs.com/package/express/v/4.18.2", "express"),
            ("https://www.npmjs.com/package/@babel/core", "@babel/core"),
            ("https://npmjs.com/package/lodash?activeTab=readme", "lodash"),
        ],
    )
    def test_extracts_name(self, url: str, name: str) -> None:
        assert package_name_from_url(url) == name

    @pytest.mark.parametrize(
        "url",
        ["https://www.npmjs.com/", "https://www.npmjs.com/package/", "https://www.npmjs.com/package/@scope"],
    )
    def test_rejects_missing_package(self, url: str) -> None:
        with pytest.raises(InvalidIdentifier):
            package_name_from_url(url)


class TestIsNpmUrl:
    """is_npm_url tests."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.npmjs.com/package/express", True),
            ("https://npmjs.org/package/express", True),
            ("https://github.com/acme/npmjs.com-mirror", False),
            ("https://notnpmjs.com/package/express", False),
        ],
    )
    def test_matches_host(self, url: str, expected: bool) -> None:
        assert is_npm_url(url) is expected


class TestIdentifierResolver:
    """IdentifierResolver tests."""

    @pytest.mark.asyncio
    async def test_github_passthrough(self, fake_api, resolver) -> None:
        url = "https://github.com/cloudinary/cloudinary_npm"
        resolved = await resolver.resolve(url)

        assert resolved.platform == Platform.GITHUB
        assert resolved.repository_url == url
        assert (resolved.address.owner, resolved.address.repo) == ("cloudinary", "cloudinary_npm")
        assert resolved.maintainer_count is None
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_npm_lookup(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/express", {
            "name": "express",
            "repository": {"type": "git", "url": "git+https://github.com/expressjs/express.git"},
            "maintainers": [{"name": "a"}, {"name": "b"}, {"name": "c"}],
        })

        resolved = await resolver.resolve("https://www.npmjs.com/package/express")

        assert resolved.platform == Platform.NPM
        assert resolved.repository_url == "https://github.com/expressjs/express"
        assert resolved.address.url == "https://github.com/expressjs/express"
        assert resolved.maintainer_count == 3
        assert "Authorization" not in fake_api.requests[0].headers

    @pytest.mark.asyncio
    async def test_npm_git_scheme(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/browserify", {
            "repository": {"url": "git://github.com/browserify/browserify.git"},
        })
        url = await resolver.resolve_url("https://www.npmjs.com/package/browserify")
        assert url == "https://github.com/browserify/browserify"

    @pytest.mark.asyncio
    async def test_scoped_package_is_encoded(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/@babel/core", {"repository": "github:babel/babel"})

        resolved = await resolver.resolve("https://www.npmjs.com/package/@babel/core")

        assert resolved.repository_url == "https://github.com/babel/babel"
        assert "%2F" in fake_api.requests[0].url.raw_path.decode()

    @pytest.mark.asyncio
    async def test_missing_repository(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/ghost", {"name": "ghost"})
        with pytest.raises(NoRepositoryFound):
            await resolver.resolve("https://www.npmjs.com/package/ghost")

    @pytest.mark.asyncio
    async def test_registry_error(self, fake_api, resolver) -> None:
        with pytest.raises(UpstreamError) as exc_info:
            await resolver.resolve("https://www.npmjs.com/package/does-not-exist")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_registry_timeout(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/slow", httpx.ConnectTimeout("no route"))
        with pytest.raises(UpstreamError, match="timed out"):
            await resolver.resolve("https://www.npmjs.com/package/slow")

    @pytest.mark.asyncio
    async def test_non_github_repository(self, fake_api, resolver) -> None:
        fake_api.add(f"{REGISTRY}/elsewhere", {
            "repository": {"url": "git+https://gitlab.com/group/elsewhere.git"},
        })
        with pytest.raises(InvalidAddress):
            await resolver.resolve("https://www.npmjs.com/package/elsewhere")

    @pytest.mark.asyncio
    async def test_unsupported_url(self, resolver) -> None:
        with pytest.raises(InvalidIdentifier):
            await resolver.resolve("https://pypi.org/project/requests")

    @pytest.mark.asyncio
    async def test_github_repo_named_after_npm(self, fake_api, resolver) -> None:
        url = "https://github.com/acme/npmjs.com-mirror"
        resolved = await resolver.resolve(url)

        assert resolved.platform == Platform.GITHUB
        assert resolved.address.repo == "npmjs.com-mirror"
        assert fake_api.requests == []
