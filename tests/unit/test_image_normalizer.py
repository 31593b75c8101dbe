import io

import httpx
import pytest
from PIL import Image

from app.core.config import settings
from app.core.validation import PNG_SIGNATURE
from app.services.image_normalizer import ImageNormalizer
from app.services.image_normalizer import fit_within
from app.services.image_normalizer import is_supported_signature

URL = "https://cdn.example.com/p1.png"


@pytest.mark.parametrize(
    "size, bounds, expected",
    [
        ((1040, 680), (520, 680), (520, 340)),
        ((520, 1360), (520, 680), (340, 680)),
        ((100, 50), (520, 680), (100, 50)),  # never upscaled
        ((520, 680), (520, 680), (520, 680)),
        ((3000, 1), (520, 680), (520, 1)),  # minimum 1px
    ],
)
def test_fit_within(size, bounds, expected):
    assert fit_within(*size, *bounds) == expected


def test_fit_within_stays_in_bounds():
    for w, h in [(521, 681), (999, 7), (7, 999), (1234, 5678)]:
        nw, nh = fit_within(w, h, 520, 680)
        assert nw <= 520 and nh <= 680
        assert nw <= w and nh <= h


def test_is_supported_signature():
    assert is_supported_signature(PNG_SIGNATURE + b"rest")
    assert is_supported_signature(b"\xff\xd8\xff\xe0rest")
    assert not is_supported_signature(b"GIF89a")
    assert not is_supported_signature(b"\x89PNG")  # truncated signature
    assert not is_supported_signature(b"")


@pytest.mark.asyncio
async def test_normalize_shrinks_png(image_host, make_image_bytes):
    client = image_host({URL: (200, make_image_bytes("PNG", (1040, 680)))})
    result = await ImageNormalizer(client).normalize(URL, 520, 680)

    assert result is not None
    assert (result.width, result.height) == (520, 340)
    assert result.data.startswith(PNG_SIGNATURE)
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.size == (520, 340)
    await client.aclose()


@pytest.mark.asyncio
async def test_normalize_reencodes_jpeg_to_png_without_upscaling(image_host, make_image_bytes):
    client = image_host({URL: (200, make_image_bytes("JPEG", (120, 80)))})
    result = await ImageNormalizer(client).normalize(URL, 520, 680)

    assert result is not None
    assert (result.width, result.height) == (120, 80)
    assert result.data.startswith(PNG_SIGNATURE)
    await client.aclose()


@pytest.mark.asyncio
async def test_normalize_converts_cmyk_jpeg(image_host, make_image_bytes):
    client = image_host({URL: (200, make_image_bytes("JPEG", (60, 60), mode="CMYK", color=(0, 0, 0, 0)))})
    result = await ImageNormalizer(client).normalize(URL, 520, 680)

    assert result is not None
    assert result.data.startswith(PNG_SIGNATURE)
    await client.aclose()


@pytest.mark.asyncio
async def test_normalize_sends_user_agent(image_host, make_image_bytes):
    client = image_host({URL: (200, make_image_bytes())})
    await ImageNormalizer(client).normalize(URL, 520, 680)

    assert client.requests[0].headers["user-agent"] == "Mozilla/5.0"
    await client.aclose()


@pytest.mark.asyncio
async def test_normalize_applies_configured_timeout(make_image_bytes):
    seen = []

    def handler(request):
        seen.append(request.extensions["timeout"])
        return httpx.Response(200, content=make_image_bytes())

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    assert await ImageNormalizer(client).normalize(URL, 520, 680) is not None
    await ImageNormalizer(client, timeout=2.5).normalize(URL, 520, 680)

    default = settings.image_fetch_timeout
    assert seen[0] == {"connect": default, "read": default, "write": default, "pool": default}
    assert seen[1]["read"] == 2.5
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body",
    [
        (404, b"missing"),
        (500, PNG_SIGNATURE),
        (204, b""),
        (200, b""),
        (200, b"GIF89a\x01\x00\x01\x00"),
        (200, b"<html>not an image</html>"),
        (200, PNG_SIGNATURE + b"corrupt-body"),
        (200, b"\xff\xd8\x00\x00garbage"),
    ],
)
async def test_normalize_returns_none_on_bad_responses(image_host, status, body):
    client = image_host({URL: (status, body)})
    assert await ImageNormalizer(client).normalize(URL, 520, 680) is None
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [httpx.ReadTimeout("timed out"), httpx.ConnectError("refused")])
async def test_normalize_returns_none_on_network_errors(exc):
    def handler(request):
        raise exc

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    assert await ImageNormalizer(client, timeout=0.1).normalize(URL, 520, 680) is None
    await client.aclose()


@pytest.mark.asyncio
async def test_normalize_returns_none_when_reencode_blows_up(image_host, make_image_bytes, monkeypatch):
    client = image_host({URL: (200, make_image_bytes())})

    def boom(*_args, **_kwargs):
        raise RuntimeError("encoder crashed")

    monkeypatch.setattr("app.services.image_normalizer._reencode_png", boom)
    assert await ImageNormalizer(client).normalize(URL, 520, 680) is None
    await client.aclose()
