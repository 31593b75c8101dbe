"""Downloads worksheet images and normalizes them to bounded PNGs.

Failures never propagate: ``ImageNormalizer.normalize`` logs a warning and
returns ``None`` so one broken image only costs its own cell in the document.
"""

import asyncio
import io
import logging
import math

import httpx
from PIL import Image
from PIL import UnidentifiedImageError

from app.core.config import settings
from app.core.validation import JPEG_SIGNATURE
from app.core.validation import PNG_SIGNATURE
from app.models.piece_models import NormalizedImage

# Configure module logger
logger = logging.getLogger(__name__)

# Modes Pillow can write to PNG without conversion
PNG_NATIVE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


class ResourceFetchError(Exception):
    """Raised internally when a single image cannot be downloaded or decoded."""


def is_supported_signature(data: bytes) -> bool:
    """True when *data* starts with the PNG signature or the JPEG SOI marker."""
    return data[:8] == PNG_SIGNATURE or data[:2] == JPEG_SIGNATURE


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Scale (width, height) down to fit the bounds, keeping the aspect ratio. Never upscales."""
    ratio = min(max_width / width, max_height / height, 1)
    return max(1, math.floor(width * ratio)), max(1, math.floor(height * ratio))


def _reencode_png(data: bytes, max_width: int, max_height: int) -> NormalizedImage:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            if not width or not height:
                raise ResourceFetchError("bad-metadata")

            target = fit_within(width, height, max_width, max_height)
            out = img
            if out.mode not in PNG_NATIVE_MODES:
                out = out.convert("RGBA" if "A" in out.getbands() else "RGB")
            if target != (width, height):
                out = out.resize(target, Image.Resampling.LANCZOS)

            buf = io.BytesIO()
            out.save(buf, format="PNG", compress_level=9)
    except ResourceFetchError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ResourceFetchError(f"decode-failed: {e}") from e

    return NormalizedImage(data=buf.getvalue(), width=target[0], height=target[1])


class ImageNormalizer:
    """Fetches images over a shared ``httpx.AsyncClient`` and returns normalized PNGs."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = settings.image_fetch_timeout if timeout is None else timeout

    async def _download(self, url: str) -> bytes:
        try:
            rsp = await self.client.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": settings.image_user_agent},
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            raise ResourceFetchError(f"request-failed: {e.__class__.__name__}: {e}") from e

        if not 200 <= rsp.status_code < 300:
            raise ResourceFetchError(f"http-status-{rsp.status_code}")
        if not rsp.content:
            raise ResourceFetchError("empty-bytes")
        return rsp.content

    async def normalize(self, url: str, max_width: int, max_height: int) -> NormalizedImage | None:
        """Download *url* and return it as a PNG no larger than max_width x max_height.

        Returns ``None`` on any failure.
        """
        try:
            data = await self._download(url)
            if not is_supported_signature(data):
                raise ResourceFetchError("not-png-or-jpg")
            image = await asyncio.to_thread(_reencode_png, data, max_width, max_height)
            logger.debug("Normalized image %s -> %dx%d", url, image.width, image.height)
            return image
        except ResourceFetchError as e:
            logger.warning("image prepare failed: %s (%s)", url, e)
            return None
        except Exception as e:
            logger.warning("image prepare failed: %s (unexpected %s: %s)", url, e.__class__.__name__, e)
            return None


def build_http_client() -> httpx.AsyncClient:
    """Client used for one export request; the caller closes it."""
    limits = httpx.Limits(max_connections=max(1, settings.image_fetch_concurrency))
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.image_fetch_timeout), limits=limits)
