"""Research provider over the Tavily search API.

Returns a ResearchContext: an optional direct answer plus ranked snippets.
A missing API key is a configuration error; network and HTTP failures
surface as ProviderCallError. Nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Literal

import httpx

from inkpress.common.config import ProviderCredentials, Settings, settings as default_settings
from inkpress.common.errors import ProviderCallError
from inkpress.common.models import ResearchContext, ResearchResult

logger = logging.getLogger(__name__)

SearchDepth = Literal["basic", "advanced"]


class ResearchProvider:
    """Async Tavily client.

    Args:
        credentials: Provider credentials (needs ``tavily_api_key``).
        settings: Application settings (endpoint, timeout, result count).
        client: Optional shared httpx.AsyncClient (tests inject a mock transport).
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.credentials = credentials
        self.settings = settings or default_settings
        self._client = client

    async def search(self, query: str, depth: SearchDepth | None = None) -> ResearchContext:
        """Search the web for ``query``.

        Raises:
            ConfigurationError: TAVILY_API_KEY is not set.
            ProviderCallError: The request failed, returned a non-2xx status
                or a malformed body.
        """
        api_key = self.credentials.require("tavily_api_key")
        cfg = self.settings.research
        payload = {
            "api_key": api_key,
            "query": query,
            "search_depth": depth or cfg.default_depth,
            "include_answer": True,
            "include_raw_content": False,
            "max_results": cfg.max_results,
        }

        logger.info("Research call: query=%r depth=%s", query, payload["search_depth"])

        try:
            if self._client is not None:
                response = await self._client.post(
                    cfg.endpoint, json=payload, timeout=cfg.timeout_seconds
                )
            else:
                async with httpx.AsyncClient(timeout=cfg.timeout_seconds) as client:
                    response = await client.post(cfg.endpoint, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Tavily returned %s: %s", exc.response.status_code, exc.response.text[:200]
            )
            raise ProviderCallError(
                f"Tavily API error: {exc.response.status_code}",
                provider="tavily",
                stage="research",
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Tavily request failed: %s", exc)
            raise ProviderCallError(str(exc), provider="tavily", stage="research") from exc

        context = _parse_response(data, query)
        logger.info("Research returned %d results", len(context.results))
        return context


def _parse_score(value: object) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ProviderCallError(
            f"Tavily returned a non-numeric score: {value!r}",
            provider="tavily",
            stage="research",
        ) from exc


def _parse_response(data: object, query: str) -> ResearchContext:
    """Convert a Tavily JSON body into a ResearchContext.

    Raises:
        ProviderCallError: The body is not an object or a result is malformed.
    """
    if not isinstance(data, dict):
        raise ProviderCallError(
            f"Tavily returned {type(data).__name__} instead of an object",
            provider="tavily",
            stage="research",
        )
    items = data.get("results") or []
    if not isinstance(items, list):
        raise ProviderCallError("Tavily results is not a list", provider="tavily", stage="research")

    results = []
    for item in items:
        if not isinstance(item, dict):
            raise ProviderCallError(
                "Tavily result is not an object", provider="tavily", stage="research"
            )
        results.append(
            ResearchResult(
                title=str(item.get("title") or ""),
                url=str(item.get("url") or ""),
                content=str(item.get("content") or ""),
                score=_parse_score(item.get("score")),
            )
        )
    return ResearchContext(
        query=str(data.get("query") or query),
        answer=str(data["answer"]) if data.get("answer") else None,
        results=results,
    )
