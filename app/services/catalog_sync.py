"""
Collection synchronizer: walk every page of a remote catalog resource, decode
classification tags per item, apply a status filter (and optional search term),
and return the complete result. All-or-nothing: any fetch error propagates and
the partial accumulator is dropped with the call frame.

Termination: empty page, short page (< page size), or no next token.
Safety bound: SyncIncompleteError after max_pages full pages.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from app.config import settings
from app.exceptions import SyncIncompleteError
from app.services.catalog_client import CatalogClient, CatalogItem
from app.services.shopify_service import strip_html
from app.services.tag_codec import ClassificationMetadata, TagCodec, default_codec

logger = logging.getLogger(__name__)


@dataclass
class SyncedItem:
    """A catalog item past the codec boundary: plain tags + decoded metadata."""
    id: str
    tags: list[str]
    metadata: ClassificationMetadata
    fields: dict = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.fields.get("title") or self.fields.get("name") or "")

    @property
    def description(self) -> str:
        html = self.fields.get("body_html") or self.fields.get("descriptionHtml") or self.fields.get("description")
        return strip_html(html)

    @property
    def image(self) -> Optional[str]:
        featured = self.fields.get("featuredImage") or {}
        if featured.get("url"):
            return featured["url"]
        images = self.fields.get("images") or []
        if images and isinstance(images[0], dict):
            return images[0].get("src") or images[0].get("url")
        image = self.fields.get("image") or {}
        return image.get("src") if isinstance(image, dict) else None

    def matches_term(self, term: Optional[str]) -> bool:
        """Case-insensitive substring over title, HTML-stripped description and HS code."""
        if not term:
            return True
        needle = term.lower()
        return (
            needle in self.title.lower()
            or needle in self.description.lower()
            or needle in (self.metadata.code or "").lower()
        )

    def to_dict(self) -> dict:
        out = dict(self.fields)
        out.update({
            "id": self.id,
            "tags": list(self.tags),
            "hsCode": self.metadata.code,
            "confidence": self.metadata.confidence,
            "hsStatus": self.metadata.status,
            "complianceStatus": self.metadata.effective_status,
        })
        return out

    def summary(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "hsCode": self.metadata.code or "",
            "hsStatus": self.metadata.status or "",
            "image": self.image,
        }


@dataclass
class SyncResult:
    items: list[SyncedItem]
    count: int
    pages: int


class CollectionSynchronizer:
    """Drives one CatalogClient to the end of its collection. One instance per request."""

    def __init__(
        self,
        client: CatalogClient,
        codec: Optional[TagCodec] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ):
        self.client = client
        self.codec = codec or default_codec
        self.page_size = min(page_size or settings.CATALOG_PAGE_SIZE, client.max_page_size)
        self.max_pages = max_pages if max_pages is not None else settings.SYNC_MAX_PAGES

    def _decode(self, item: CatalogItem) -> SyncedItem:
        return SyncedItem(
            id=item.id,
            tags=self.codec.strip(item.raw_tags),
            metadata=self.codec.decode(item.raw_tags),
            fields=item.fields,
        )

    async def _run(self, status_filter: Optional[str], search_term: Optional[str], keep_items: bool) -> SyncResult:
        items: list[SyncedItem] = []
        seen: set[str] = set()
        count = 0
        pages = 0
        token: Optional[str] = None

        while True:
            if pages >= self.max_pages:
                logger.error(
                    "Catalog sync aborted: %s %s still returning full pages after %s page(s)",
                    self.client.shop_domain, self.client.resource, pages,
                )
                raise SyncIncompleteError(
                    f"Sync of {self.client.resource} did not finish within {self.max_pages} pages",
                    pages_fetched=pages,
                )

            page = await self.client.fetch_page(token, self.page_size)
            pages += 1

            for raw in page.items:
                if raw.id and raw.id in seen:
                    continue
                if raw.id:
                    seen.add(raw.id)
                item = self._decode(raw)
                if not self.codec.matches(item.metadata, status_filter):
                    continue
                if not item.matches_term(search_term):
                    continue
                count += 1
                if keep_items:
                    items.append(item)

            logger.debug(
                "Catalog %s page %s: got %s (matched so far: %s)",
                self.client.resource, pages, len(page.items), count,
            )

            if not page.items or len(page.items) < self.page_size or page.next_token is None:
                break
            token = page.next_token

        logger.info(
            "Catalog %s sync for %s: %s match(es) across %s page(s) (filter=%s)",
            self.client.resource, self.client.shop_domain, count, pages, status_filter or "none",
        )
        return SyncResult(items=items, count=count, pages=pages)

    async def collect(self, status_filter: Optional[str] = None) -> SyncResult:
        """Mode (a): every item passing the status filter."""
        return await self._run(status_filter, None, keep_items=True)

    async def count(self, status_filter: Optional[str] = None) -> int:
        """Mode (b): number of items passing the status filter; items are not retained."""
        result = await self._run(status_filter, None, keep_items=False)
        return result.count

    async def search(
        self,
        search_term: Optional[str],
        status_filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> SyncResult:
        """Mode (c): filtered and term-matched items, capped to `limit`; count is the full match total."""
        result = await self._run(status_filter, search_term, keep_items=True)
        limit = settings.SEARCH_RESULT_LIMIT if limit is None else limit
        return SyncResult(items=result.items[:limit], count=result.count, pages=result.pages)
