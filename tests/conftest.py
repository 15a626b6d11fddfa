"""Shared fixtures: an in-process fake of the GitHub and npm HTTP APIs."""

from collections.abc import Callable

import httpx
import pytest

from netscore.analyzers.github import GitHubFetcher
from netscore.config import ScoringConfig

TOKEN = "test-token"


class FakeApi:
    """Routes requests by host + path to canned JSON payloads.

    A route value may be a JSON-serializable payload (served with 200),
    an ``httpx.Response``, an exception instance to raise, or a callable
    taking the request and returning any of those.
    """

    def __init__(self) -> None:
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, value: object) -> None:
        self.routes[url] = value

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        value = self.routes.get(key)
        if callable(value) and not isinstance(value, httpx.Response):
            value = value(request)
        if value is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(value, Exception):
            raise value
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requested(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).split("?")[0] == url]


@pytest.fixture
def fake_api() -> FakeApi:
    """Fresh fake API with no routes."""
    return FakeApi()


@pytest.fixture
def config() -> ScoringConfig:
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def make_fetcher(fake_api: FakeApi, config: ScoringConfig) -> Callable[..., GitHubFetcher]:
    """Factory for fetchers talking to the fake API."""

    def factory(**overrides) -> GitHubFetcher:
        cfg = config.model_copy(update=overrides) if overrides else config
        return GitHubFetcher(token=TOKEN, client=fake_api.client(), config=cfg)

    return factory
