import asyncio
import logging
from typing import Optional

import aiohttp

from sheddinghub.engine.outage import parse_stage
from sheddinghub.errors import TransientNetworkError

log = logging.getLogger(__name__)


class GridStatusClient:
    """
    Fetches the current loadshedding stage.

    The endpoint answers with a bare integer as plain text. Any non-2xx
    status, connection problem or unparseable body surfaces as a
    TransientNetworkError (GridStatusParseError for bad bodies) so the
    caller can fall back to demo data.
    """

    def __init__(self, url: str, timeout_secs: float = 10.0,
                 session: Optional[aiohttp.ClientSession] = None):
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout_secs)
        self._session = session

    async def _get_text(self, session: aiohttp.ClientSession) -> str:
        async with session.get(self.url, timeout=self.timeout,
                               headers={"Accept": "text/plain"}) as r:
            if r.status < 200 or r.status >= 300:
                raise TransientNetworkError(f"Grid status HTTP {r.status}")
            return await r.text()

    async def fetch_stage(self) -> int:
        try:
            if self._session is not None:
                body = await self._get_text(self._session)
            else:
                async with aiohttp.ClientSession() as s:
                    body = await self._get_text(s)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientNetworkError(f"Grid status request failed: {e}") from e

        log.debug(f"Grid status response: {body!r}")
        return parse_stage(body)
