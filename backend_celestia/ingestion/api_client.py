"""
REST client for the upstream data service: paginated full-set fetch at startup.

GET {base}/transactions?offset=&limit= -> {"transactions": [...], "total": n}.
A bare JSON list is accepted as a single, final page. Records are returned
raw; conversion and validation happen in the session so one bad record never
fails the load.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from backend_celestia.celestia_logging import get_logger
from backend_celestia.core.exceptions import UpstreamFetchFailed

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_REQUEST_TIMEOUT_SEC = 15.0
# Hard stop for a service that keeps reporting a larger total than it serves
MAX_PAGES = 10_000


@dataclass(frozen=True)
class TransactionPage:
    records: list[Any]
    total: int


class TransactionApiClient:
    """
    Async client for the transactions endpoint.

    Use as an async context manager; an injected httpx.AsyncClient is left
    open for its owner to close.
    """

    def __init__(
        self,
        base_url: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must be non-empty")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._base_url = base_url.strip().rstrip("/")
        self._page_size = page_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))

    @property
    def transactions_url(self) -> str:
        return f"{self._base_url}/transactions"

    async def __aenter__(self) -> "TransactionApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_page(self, offset: int, limit: int) -> TransactionPage:
        """Fetch one page; raise UpstreamFetchFailed on transport, HTTP or payload errors."""
        url = self.transactions_url
        try:
            resp = await self._client.get(url, params={"offset": offset, "limit": limit})
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchFailed(
                f"data service returned HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"data service request failed: {e}", url=url) from e
        except ValueError as e:
            raise UpstreamFetchFailed("data service returned invalid JSON", url=url) from e

        if isinstance(data, list):
            return TransactionPage(records=data, total=offset + len(data))
        if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
            raise UpstreamFetchFailed("data service returned an unexpected payload", url=url)
        records = data["transactions"]
        total = data.get("total")
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            total = offset + len(records)
        return TransactionPage(records=records, total=total)

    async def fetch_all(self) -> list[Any]:
        """Page through the full set until offset reaches total or a page comes back empty."""
        records: list[Any] = []
        offset = 0
        for page_no in range(MAX_PAGES):
            page = await self.fetch_page(offset, self._page_size)
            records.extend(page.records)
            offset += len(page.records)
            logger.debug(
                "upstream_page_fetched",
                page=page_no,
                count=len(page.records),
                offset=offset,
                total=page.total,
            )
            if not page.records or offset >= page.total:
                break
        else:
            logger.warning("upstream_page_limit_reached", pages=MAX_PAGES, fetched=len(records))
        logger.info("upstream_fetch_complete", fetched=len(records), url=self.transactions_url)
        return records
