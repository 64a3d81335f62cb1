"""Bootstrap resource loader.

Fetches the runtime bootstrap bundles that are inlined into every
generated document, concatenates them in declared order and escapes
closing script tags so the text can sit inside a <script> element.

The result is cached on the loader; only a successful load is cached,
so a failed call can simply be retried.
"""

import asyncio
import logging
import re
from typing import Optional

import httpx

from packager.errors import ResourceLoadError

logger = logging.getLogger(__name__)

# Timeout for resource fetches
RESOURCE_TIMEOUT = 30

DEFAULT_RESOURCE_NAMES = ("scaffolding.js", "addons.js")

# An HTML parser ends a script element at "</script" in any letter case
# when followed by whitespace, "/" or ">"
_SCRIPT_CLOSE = re.compile(r"</(scri)(pt)(?=[\s/>])", re.IGNORECASE)


def escape_script_close(text: str) -> str:
    """Rewrite every literal closing script tag into a non-terminating form."""
    return _SCRIPT_CLOSE.sub(r"</\1'+'\2", text)


class ResourceLoader:
    """Loads and caches the concatenated bootstrap script."""

    def __init__(
        self,
        base_url: str,
        names: tuple[str, ...] = DEFAULT_RESOURCE_NAMES,
        timeout: float = RESOURCE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.names = tuple(names)
        self._timeout = timeout
        self._transport = transport
        self._script: Optional[str] = None

    @property
    def script(self) -> Optional[str]:
        """The cached bootstrap script, or None before a successful load."""
        return self._script

    async def load_resources(self) -> str:
        """Fetch, concatenate and cache the bootstrap resources.

        Raises:
            ResourceLoadError: If any resource returns a non-2xx status or
                the request fails at the transport level.
        """
        if self._script is not None:
            return self._script

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            results = await asyncio.gather(
                *(self._fetch(client, name) for name in self.names)
            )

        failed = [name for name, response in zip(self.names, results) if response is None]
        if failed:
            logger.error("Resource loading failed for %s", ", ".join(failed))
            raise ResourceLoadError(
                f"Resource loading failed: {', '.join(failed)}",
                failed=failed,
            )

        # gather() preserves argument order, so this is declared order
        texts = [response.text for response in results]
        self._script = escape_script_close("\n".join(texts))

        logger.info(
            "Loaded %d bootstrap resources (%d chars)",
            len(self.names), len(self._script),
        )
        return self._script

    async def _fetch(self, client: httpx.AsyncClient, name: str) -> Optional[httpx.Response]:
        """Return the response for one resource, or None if it failed."""
        try:
            response = await client.get(name)
        except httpx.HTTPError as exc:
            logger.warning("Resource %s could not be fetched: %s", name, exc)
            return None

        if not response.is_success:
            logger.warning("Resource %s returned %d", name, response.status_code)
            return None
        return response
