"""ScoringPipeline tests."""

import httpx
import pytest

from netscore.analyzers.pipeline import ScoringPipeline
from netscore.errors import MissingCredential, NoRepositoryFound, UpstreamError
from netscore.models.schemas import FAILED_NET_SCORE, FailedScore, ScoreReport

API = "https://api.github.com/repos/acme/widget"
REGISTRY = "https://registry.npmjs.org"
RAW = "https://raw.githubusercontent.com/acme/widget/main/package.json"


@pytest.fixture
def healthy_repo(fake_api):
    """Route a healthy acme/widget repository through the fake API."""
    fake_api.add(API, {
        "stargazers_count": 10,
        "forks_count": 2,
        "open_issues_count": 3,
        "license": {"name": "MIT License"},
        "contributors_url": f"{API}/contributors",
    })
    fake_api.add(f"{API}/contributors", [{"login": f"dev{i}"} for i in range(12)])

    def issues(request: httpx.Request) -> list[dict]:
        count = 3 if request.url.params["state"] == "open" else 6
        return [{"number": i} for i in range(count)]

    fake_api.add(f"{API}/issues", issues)
    fake_api.add(f"{API}/contents", [
        {"name": "README.md", "type": "file"},
        {"name": "src", "type": "dir"},
        {"name": "test", "type": "dir"},
        {"name": "package.json", "type": "file", "download_url": RAW},
    ])
    fake_api.add(RAW, {"dependencies": {"x": "1.0.0"}})
    fake_api.add(f"{API}/pulls", [
        {"number": 1, "merged_at": "2024-01-01T00:00:00Z"},
        {"number": 2, "merged_at": "2024-01-02T00:00:00Z"},
        {"number": 3, "merged_at": None},
    ])
    fake_api.add(f"{API}/pulls/1/reviews", [{"state": "APPROVED"}])
    fake_api.add(f"{API}/pulls/2/reviews", [{"state": "APPROVED"}])
    return fake_api


class TestScoringPipeline:
    """ScoringPipeline tests."""

    def test_missing_credential(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(MissingCredential):
            ScoringPipeline()

    @pytest.mark.asyncio
    async def test_score_github_url(self, healthy_repo) -> None:
        pipeline = ScoringPipeline(token="t", client=healthy_repo.client())

        report = await pipeline.score_url("https://github.com/acme/widget")

        assert isinstance(report, ScoreReport)
        assert report.bus_factor == 1.0
        assert report.correctness == 0.42
        assert report.ramp_up == 0.5
        assert report.responsive_maintainer == 1.0
        assert report.license == 1.0
        assert report.pinned_dependencies == 1.0
        assert report.pull_request_review == 1.0
        assert report.net_score == 0.78
        assert report.net_score_latency >= max(
            report.ramp_up_latency, report.pull_request_review_latency
        )

    @pytest.mark.asyncio
    async def test_score_npm_url(self, healthy_repo) -> None:
        healthy_repo.add(f"{REGISTRY}/widget", {
            "repository": {"url": "git+https://github.com/acme/widget.git"},
            "maintainers": [{"name": "solo"}],
        })
        pipeline = ScoringPipeline(token="t", client=healthy_repo.client())

        report = await pipeline.score_url("https://www.npmjs.com/package/widget")

        assert report.url == "https://www.npmjs.com/package/widget"
        assert report.net_score == 0.78

    @pytest.mark.asyncio
    async def test_fetch_failure_is_fatal(self, fake_api) -> None:
        fake_api.add(API, httpx.Response(500))
        pipeline = ScoringPipeline(token="t", client=fake_api.client())

        with pytest.raises(UpstreamError):
            await pipeline.score_url("https://github.com/acme/widget")

    @pytest.mark.asyncio
    async def test_safe_scoring_reports_sentinel(self, fake_api) -> None:
        fake_api.add(f"{REGISTRY}/ghost", {"name": "ghost"})
        pipeline = ScoringPipeline(token="t", client=fake_api.client())

        with pytest.raises(NoRepositoryFound):
            await pipeline.score_url("https://www.npmjs.com/package/ghost")

        result = await pipeline.score_url_safe("https://www.npmjs.com/package/ghost")
        assert isinstance(result, FailedScore)
        assert result.net_score == FAILED_NET_SCORE
        assert "ghost" in result.error

    @pytest.mark.asyncio
    async def test_context_manager_owns_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        async with ScoringPipeline() as pipeline:
            assert pipeline._http_client is not None
            assert pipeline.github._client is pipeline._http_client
        assert pipeline._http_client is None
