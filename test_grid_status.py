"""
Unit tests for GridStatusClient
Tests HTTP handling with a fake aiohttp session
"""

import asyncio

import aiohttp
import pytest

from sheddinghub.errors import GridStatusParseError, TransientNetworkError
from sheddinghub.grid_status import GridStatusClient

URL = "https://loadshedding.eskom.co.za/LoadShedding/GetStatus"


class FakeResponse:
    def __init__(self, status=200, body="2"):
        self.status = status
        self.body = body

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class TestGridStatusClient:
    """Test stage fetching"""

    @pytest.mark.asyncio
    async def test_fetch_stage(self):
        session = FakeSession(FakeResponse(body="4"))
        client = GridStatusClient(URL, timeout_secs=5, session=session)

        assert await client.fetch_stage() == 4
        url, kwargs = session.calls[0]
        assert url == URL
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_whitespace_body(self):
        client = GridStatusClient(URL, session=FakeSession(FakeResponse(body=" 0\r\n")))

        assert await client.fetch_stage() == 0

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = GridStatusClient(URL, session=FakeSession(FakeResponse(status=503, body="")))

        with pytest.raises(TransientNetworkError, match="503"):
            await client.fetch_stage()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        client = GridStatusClient(URL, session=FakeSession(error=aiohttp.ClientConnectionError("refused")))

        with pytest.raises(TransientNetworkError):
            await client.fetch_stage()

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = GridStatusClient(URL, session=FakeSession(error=asyncio.TimeoutError()))

        with pytest.raises(TransientNetworkError):
            await client.fetch_stage()

    @pytest.mark.asyncio
    async def test_unparseable_body(self):
        client = GridStatusClient(URL, session=FakeSession(FakeResponse(body="<html>maintenance</html>")))

        with pytest.raises(GridStatusParseError):
            await client.fetch_stage()

    @pytest.mark.asyncio
    async def test_out_of_range_stage(self):
        client = GridStatusClient(URL, session=FakeSession(FakeResponse(body="12")))

        with pytest.raises(GridStatusParseError):
            await client.fetch_stage()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
