"""Tests for competitor content analysis."""

import json
from unittest.mock import patch

from inkpress.common.errors import ProviderCallError
from inkpress.enrichment.rival import RivalAnalysis, analyze_rival, rival_insights_for
from inkpress.providers.scraper import ScrapedPage

URL = "https://rival.example/desks"
PAGE = ScrapedPage(success=True, url=URL, title="Best Desks", content="Desk one is sturdy. Desk two is cheap.")
ANALYSIS = json.dumps({
    "strategy": "Cover long-term ergonomics they ignore.",
    "weaknesses": ["No pricing table"],
    "keywords": ["standing desk"],
    "structure": ["Key Takeaways", "Ergonomics", "FAQ"],
    "tone": "salesy",
})


class TestAnalyzeRival:
    @patch("inkpress.enrichment.rival.scrape_url", return_value=PAGE)
    async def test_returns_analysis(self, mock_scrape, make_text_provider):
        provider = make_text_provider({"rival": ANALYSIS})

        result = await analyze_rival(URL, "Standing desks", provider)

        assert result.success
        assert isinstance(result.data, RivalAnalysis)
        assert result.data.weaknesses == ["No pricing table"]
        assert "Desk one is sturdy." in provider.calls_for("rival")[0]["prompt"]
        mock_scrape.assert_called_once_with(URL)

    @patch(
        "inkpress.enrichment.rival.scrape_url",
        return_value=ScrapedPage(success=False, url=URL, error="403 Forbidden"),
    )
    async def test_scrape_failure(self, mock_scrape, make_text_provider):
        provider = make_text_provider()
        result = await analyze_rival(URL, "Standing desks", provider)

        assert not result.success
        assert "403 Forbidden" in result.message
        assert provider.calls == []

    @patch("inkpress.enrichment.rival.scrape_url", return_value=PAGE)
    async def test_analysis_failure(self, mock_scrape, make_text_provider):
        result = await analyze_rival(URL, "Standing desks", make_text_provider({"rival": ProviderCallError("down")}))
        assert not result.success


class TestRivalInsights:
    async def test_no_url_means_no_insights(self, make_text_provider):
        provider = make_text_provider()
        assert await rival_insights_for(None, "Standing desks", provider) is None
        assert provider.calls == []

    @patch("inkpress.enrichment.rival.scrape_url", return_value=PAGE)
    async def test_insights_text(self, mock_scrape, make_text_provider):
        text = await rival_insights_for(URL, "Standing desks", make_text_provider({"rival": ANALYSIS}))
        assert text.startswith("Strategy: Cover long-term ergonomics they ignore.")
        assert "Suggested structure: Key Takeaways | Ergonomics | FAQ" in text
