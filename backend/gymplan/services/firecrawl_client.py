"""
Firecrawl API client: list training-plan posts on the blog category page and
fetch a post as markdown. Uses the shared httpx client unless one is injected.
"""
import logging
from typing import Any

import httpx
from pydantic import BaseModel

from gymplan.config import settings
from gymplan.errors import AcquisitionError
from gymplan.services.http_client import get_http_client

logger = logging.getLogger(__name__)


class SourceDocument(BaseModel):
    url: str
    raw_text: str


def _link_url(link: Any) -> str:
    if isinstance(link, str):
        return link
    if isinstance(link, dict):
        return str(link.get("url") or "")
    return ""


def select_post_urls(links: list[Any], marker: str, limit: int) -> list[str]:
    """Training-plan post URLs in page order, without category pages and duplicates, at most limit."""
    out: list[str] = []
    for link in links or []:
        url = _link_url(link).strip()
        if not url or marker not in url or "/categories/" in url:
            continue
        if url not in out:
            out.append(url)
    return out[: max(0, limit)]


class FirecrawlSource:
    """Document source backed by Firecrawl's /scrape endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        category_url: str | None = None,
        max_documents: int | None = None,
    ) -> None:
        self._client = client
        self.api_key = api_key if api_key is not None else settings.firecrawl_api_key
        self.base_url = (base_url or settings.firecrawl_base_url).rstrip("/")
        self.category_url = category_url or settings.blog_category_url
        self.max_documents = max_documents if max_documents is not None else settings.max_source_documents

    async def _scrape(self, url: str, formats: list[str]) -> dict[str, Any]:
        client = self._client or get_http_client()
        endpoint = f"{self.base_url}/scrape"
        try:
            r = await client.post(
                endpoint,
                json={"url": url, "formats": formats},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=float(settings.firecrawl_timeout_seconds),
            )
        except httpx.HTTPError as e:
            logger.warning("Firecrawl request for %s failed: %s", url, e)
            raise AcquisitionError(f"Firecrawl request for {url} failed: {e}") from e
        if r.status_code >= 400:
            logger.warning("Firecrawl POST %s -> %s body=%s", endpoint, r.status_code, (r.text or "")[:500])
            raise AcquisitionError(f"Firecrawl returned {r.status_code} for {url}", status_code=r.status_code)
        try:
            body = r.json()
        except ValueError as e:
            raise AcquisitionError(f"Firecrawl returned invalid JSON for {url}") from e
        if not isinstance(body, dict) or body.get("success") is False:
            error = body.get("error") if isinstance(body, dict) else None
            raise AcquisitionError(f"Firecrawl could not scrape {url}: {error or 'unknown error'}")
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    async def list_candidate_documents(self) -> list[str]:
        logger.info("Scraping category page: %s", self.category_url)
        data = await self._scrape(self.category_url, ["links"])
        links = data.get("links") or []
        urls = select_post_urls(links, settings.blog_post_path_marker, self.max_documents)
        logger.info("Found %d links, %d training-plan posts: %s", len(links), len(urls), urls)
        return urls

    async def fetch_document(self, url: str) -> SourceDocument:
        logger.info("Scraping blog post: %s", url)
        data = await self._scrape(url, ["markdown"])
        markdown = data.get("markdown")
        if not markdown:
            raise AcquisitionError(f"Failed to scrape blog post (no markdown): {url}")
        logger.debug("Scraped %s, markdown length %d", url, len(markdown))
        return SourceDocument(url=url, raw_text=markdown)
