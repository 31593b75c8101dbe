import io

import httpx
import pytest
from PIL import Image


class FakeDatabase:
    """In-memory stand-in for ``app.core.database.Database``.

    ``responder(query, params)`` returns the rows for a query, or an exception
    instance to raise.
    """

    def __init__(self, responder=None):
        self.queries: list[tuple[str, tuple]] = []
        self.responder = responder or (lambda query, params: [])

    async def fetch_all(self, query, params=None):
        params = tuple(params or ())
        self.queries.append((query, params))
        result = self.responder(query, params)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def fetch_one(self, query, params=None):
        rows = await self.fetch_all(query, params)
        return rows[0] if rows else None


@pytest.fixture
def make_fake_db():
    def _make(responder=None):
        return FakeDatabase(responder)

    return _make


@pytest.fixture
def make_image_bytes():
    def _make(fmt: str = "PNG", size: tuple[int, int] = (100, 50), mode: str = "RGB", color="white") -> bytes:
        buf = io.BytesIO()
        Image.new(mode, size, color=color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def image_host():
    """Factory for an ``httpx.AsyncClient`` serving a fixed url -> (status, body) map.

    Unknown URLs answer 404. Every request is recorded on ``client.requests``.
    """

    def _make(routes: dict[str, tuple[int, bytes]]):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            status, body = routes.get(str(request.url), (404, b"not found"))
            return httpx.Response(status, content=body)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.requests = seen
        return client

    return _make
