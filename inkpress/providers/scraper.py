"""Competitor page scraper.

Fetches a URL, strips page chrome (navigation, footers, scripts, ads) and
returns the title, meta description and main text for LLM analysis.

Usage:
    page = scrape_url("https://example.com/blog/post")
    if page.success:
        print(page.title, len(page.content))
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests
from bs4 import BeautifulSoup
from fake_useragent import UserAgent

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 15_000
REQUEST_TIMEOUT = 15

CLUTTER_SELECTORS = (
    "script, style, nav, footer, iframe, noscript, "
    ".ad, .advertisement, .sidebar, .menu"
)
CONTENT_SELECTORS = ("article", "main", ".content", "#content", "body")
BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "div"]

_WS_RE = re.compile(r"\s+")


@dataclass
class ScrapedPage:
    """Result of scraping one page."""

    success: bool
    url: str
    title: str = ""
    description: str = ""
    content: str = ""
    error: str = ""


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def parse_html(html: str, url: str = "") -> ScrapedPage:
    """Extract title, description and main text from an HTML document."""
    soup = BeautifulSoup(html, "lxml")

    for el in soup.select(CLUTTER_SELECTORS):
        el.decompose()

    title = ""
    if soup.title and soup.title.get_text(strip=True):
        title = soup.title.get_text(strip=True)
    else:
        title = _meta_content(soup, property="og:title")

    description = _meta_content(soup, name="description") or _meta_content(
        soup, property="og:description"
    )

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup

    for br in container.find_all("br"):
        br.replace_with("\n")
    for block in container.find_all(BLOCK_TAGS):
        block.append("\n")

    content = _WS_RE.sub(" ", container.get_text()).strip()[:MAX_CONTENT_CHARS]

    return ScrapedPage(
        success=True,
        url=url,
        title=title,
        description=description,
        content=content,
    )


def scrape_url(url: str, session: Optional[requests.Session] = None) -> ScrapedPage:
    """Fetch ``url`` and extract its main content. Never raises."""
    ua = UserAgent(fallback="Mozilla/5.0 (Windows NT 10.0; Win64; x64)")
    http = session or requests.Session()
    try:
        resp = http.get(url, headers={"User-Agent": ua.random}, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Scrape failed for %s: %s", url, exc)
        return ScrapedPage(success=False, url=url, error=str(exc))

    return parse_html(resp.text, url=url)
