"""Web asset storage — resolves asset references against HTTP stores.

Each store maps a set of asset types to a URL template. Loads go through
httpx; progress is reported as (total, loaded) across every asset
requested since the last reset.
"""

import asyncio
import logging
from typing import Optional

import httpx

from packager.errors import FetchError
from packager.runtime.provider import Asset, AssetType, ProgressCallback, UrlTemplate

logger = logging.getLogger(__name__)

# Timeout for asset fetches
ASSET_TIMEOUT = 30

# Upper bound on asset requests in flight per storage
MAX_CONCURRENT_FETCHES = 8


def scratch_asset_url(asset_host: str) -> UrlTemplate:
    """Build the authoring-time URL template for an asset host."""
    base = asset_host.rstrip("/")

    def _url(asset: Asset) -> str:
        return f"{base}/internalapi/asset/{asset.md5ext}/get/"

    return _url


class WebAssetStorage:
    """AssetStorage backed by one or more HTTP web stores."""

    def __init__(
        self,
        timeout: float = ASSET_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_concurrent: int = MAX_CONCURRENT_FETCHES,
    ):
        self._stores: list[tuple[frozenset[AssetType], UrlTemplate]] = []
        self._timeout = timeout
        self._transport = transport
        self._slots = asyncio.Semaphore(max_concurrent)
        self.on_progress: Optional[ProgressCallback] = None
        self.total = 0
        self.loaded = 0

    def add_web_store(self, asset_types: list[AssetType], url_fn: UrlTemplate) -> None:
        self._stores.append((frozenset(asset_types), url_fn))

    def reset_progress(self) -> None:
        self.total = 0
        self.loaded = 0

    def url_for(self, asset: Asset) -> str:
        for asset_types, url_fn in self._stores:
            if asset.asset_type in asset_types:
                return url_fn(asset)
        raise FetchError(asset.md5ext, f"No web store serves {asset.asset_type.value} assets")

    async def load(self, asset: Asset) -> bytes:
        url = self.url_for(asset)
        self.total += 1
        self._report()

        try:
            async with self._slots, httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(url, f"Asset request failed ({exc})") from exc

        # Redirects are not followed, so a 3xx body is never asset content
        if not response.is_success:
            raise FetchError(
                url,
                f"Asset request returned {response.status_code}",
                status_code=response.status_code,
            )

        self.loaded += 1
        self._report()
        logger.debug("Loaded asset %s (%d bytes)", asset.md5ext, len(response.content))
        return response.content

    def _report(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.total, self.loaded)
