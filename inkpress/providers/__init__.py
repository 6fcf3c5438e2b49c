# Providers — external text, image, speech and research collaborators
"""
Thin async wrappers around third-party APIs used by the pipeline:
- TextProvider: OpenAI / Anthropic chat completions (optionally JSON)
- ImageProvider: OpenAI Images, plus a deterministic public fallback URL
- SpeechProvider: OpenAI text-to-speech
- ResearchProvider: Tavily web search
- scrape_url: competitor page scraping (requests + BeautifulSoup)

SDK exceptions are converted to ProviderCallError at this boundary.
"""

from .image import ImagePayload, ImageProvider, build_fallback_image_url
from .parsing import extract_json_payload
from .research import ResearchProvider
from .scraper import ScrapedPage, scrape_url
from .speech import SpeechProvider
from .text import TextProvider, provider_for_model

__all__ = [
    "ImagePayload",
    "ImageProvider",
    "ResearchProvider",
    "ScrapedPage",
    "SpeechProvider",
    "TextProvider",
    "build_fallback_image_url",
    "extract_json_payload",
    "provider_for_model",
    "scrape_url",
]
