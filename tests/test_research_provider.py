import pytest

from template_advisor.services.research_provider import BraveResearchProvider, rank_relevance


class DummyResponse:
    def __init__(self, status=200, payload=None):
        self.status = status
        self._payload = payload or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        return self._payload


class DummySession:
    closed = False

    def __init__(self, response):
        self._response = response
        self.requests = []

    def get(self, url, params=None, headers=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        return self._response


def _provider(response):
    provider = BraveResearchProvider(api_key="test-key")
    provider._session = DummySession(response)
    return provider


def test_rank_relevance_decays_linearly():
    assert rank_relevance(0, 1) == 1.0
    assert rank_relevance(0, 3) == 1.0
    assert rank_relevance(1, 3) == 0.75
    assert rank_relevance(2, 3) == 0.5


def test_build_query_appends_source_hints_once():
    provider = BraveResearchProvider(api_key="k")
    query = provider.build_query("invoice approval", ["industry_reports", "research_papers", "academic_papers"])
    assert query == "invoice approval report research"


def test_build_query_skips_hints_already_in_query():
    provider = BraveResearchProvider(api_key="k")
    assert provider.build_query("GDPR regulation", ["regulatory_sites"]) == "GDPR regulation"


@pytest.mark.asyncio
async def test_unconfigured_provider_returns_nothing(monkeypatch):
    from template_advisor.core import config

    monkeypatch.setattr(config, "BRAVE_API_KEY", "")
    provider = BraveResearchProvider()
    assert provider.is_configured() is False
    assert await provider.research("anything", [], 5) == []


@pytest.mark.asyncio
async def test_non_200_returns_empty():
    provider = _provider(DummyResponse(status=429))
    assert await provider.research("invoice approval", ["web"], 5) == []


@pytest.mark.asyncio
async def test_results_are_mapped_and_ranked():
    payload = {
        "web": {
            "results": [
                {
                    "title": "Invoice approval guide",
                    "description": "How finance teams approve invoices.",
                    "extra_snippets": ["Use three-way matching."],
                    "url": "https://example.com/guide",
                    "page_age": "2024-03-01T00:00:00",
                },
                {"title": "AP automation", "description": "Automating payables.", "url": "https://example.org/ap"},
            ]
        }
    }
    provider = _provider(DummyResponse(payload=payload))

    results = await provider.research("invoice approval", ["industry_reports"], 50)

    request = provider._session.requests[0]
    assert request["params"]["count"] == 20
    assert request["params"]["q"] == "invoice approval report"
    assert request["headers"]["X-Subscription-Token"] == "test-key"

    assert [r["title"] for r in results] == ["Invoice approval guide", "AP automation"]
    assert results[0]["content"] == "How finance teams approve invoices. Use three-way matching."
    assert results[0]["relevance"] == 1.0
    assert results[1]["relevance"] == 0.5
    assert results[0]["published_at"].year == 2024
    assert results[1]["published_at"] is None
