"""
Image utilities for reading URL lists, fetching remote images and preparing them for the model.
"""
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import unquote, urlsplit

import httpx
from PIL import Image

logger = logging.getLogger(__name__)

USER_AGENT = "photo-captions/1.0"


class ImageFetchError(Exception):
    """Custom exception for image download errors."""
    pass


@dataclass(frozen=True)
class ImageSource:
    """A remote image and the name it is reported under."""
    url: str
    display_name: str

    @classmethod
    def from_url(cls, url: str) -> "ImageSource":
        parts = urlsplit(url)
        name = unquote(parts.path.rsplit('/', 1)[-1])
        return cls(url=url, display_name=name or parts.netloc or url)


def read_url_list(path: Union[str, Path]) -> List[str]:
    """
    Read image URLs from a newline-delimited text file.

    Args:
        path: Path to the URL list

    Returns:
        List[str]: URLs in file order, with blank lines removed

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"URL list not found: {path}")

    text = path.read_text(encoding='utf-8')
    urls = [line.strip() for line in text.splitlines()]
    return [url for url in urls if url]


class ImageFetcher:
    """Downloads image bytes over a shared async HTTP client."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10),
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            )
        return self._client

    async def fetch(self, url: str) -> bytes:
        """
        Download an image.

        Args:
            url: Image URL

        Returns:
            bytes: Raw response body

        Raises:
            ImageFetchError: On transport errors or an error status code
        """
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise ImageFetchError(f"Failed to fetch image {url}: {e}") from e

        if response.status_code >= 400:
            raise ImageFetchError(
                f"Failed to fetch image {url}: HTTP {response.status_code} {response.reason_phrase}"
            )
        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def prepare_for_llm(data: bytes, max_dimension: int = 1024, quality: int = 85) -> Image.Image:
    """Downscale and re-encode image bytes so they are cheap to send to the model."""
    if not 0 <= quality <= 100:
        raise ValueError(f"Quality must be between 0 and 100, got {quality}")

    with Image.open(io.BytesIO(data)) as img:
        # Convert to RGB if necessary
        if img.mode != 'RGB':
            img = img.convert('RGB')

        # Calculate new dimensions
        width, height = img.size
        if width > max_dimension or height > max_dimension:
            if width > height:
                new_width = max_dimension
                new_height = max(1, int(height * (max_dimension / width)))
            else:
                new_height = max_dimension
                new_width = max(1, int(width * (max_dimension / height)))
            logger.debug(f"Resizing image from {width}x{height} to {new_width}x{new_height}")
            img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        img.save(buffer, 'JPEG', quality=quality, optimize=True)

    buffer.seek(0)
    compressed = Image.open(buffer)
    compressed.load()
    return compressed
