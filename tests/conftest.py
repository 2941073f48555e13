import io
import os
import struct
import pytest
from unittest.mock import patch
from PIL import Image

from photo_captions.core.image_utils import ImageFetchError


@pytest.fixture(autouse=True)
def setup_test_env():
    """Set up test environment variables"""
    original_env = dict(os.environ)

    for key in ('CONCURRENCY', 'OUTPUT_FILE', 'OUTPUT_FORMAT', 'INPUT_FILE', 'DEFAULT_MODEL',
                'REQUEST_TIMEOUT', 'VERBOSE_OUTPUT', 'LOG_LEVEL'):
        os.environ.pop(key, None)

    # Set up test environment
    os.environ.update({
        'GOOGLE_API_KEY': 'test_google_key',
        'DEFAULT_MODEL': 'gemini-2.0-flash',
    })

    # Mock google.generativeai configuration
    with patch('google.generativeai.configure'):
        yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def jpeg_bytes():
    """Bytes of a small JPEG without EXIF data."""
    buffer = io.BytesIO()
    Image.new('RGB', (100, 60), color='red').save(buffer, 'JPEG')
    return buffer.getvalue()


def jpeg_with_exposure_double(exposure):
    """JPEG whose Exif IFD stores ExposureTime (0x829A) as a DOUBLE."""
    header = b'MM' + struct.pack('>HI', 42, 8)
    # IFD0 at 8 holds only the Exif IFD pointer; the Exif IFD starts at 26
    ifd0 = struct.pack('>H', 1) + struct.pack('>HHII', 0x8769, 4, 1, 26) + struct.pack('>I', 0)
    exif_ifd = struct.pack('>H', 1) + struct.pack('>HHII', 0x829A, 12, 1, 44) + struct.pack('>I', 0)
    tiff = header + ifd0 + exif_ifd + struct.pack('>d', exposure)

    buffer = io.BytesIO()
    Image.new('RGB', (10, 10)).save(buffer, 'JPEG', exif=b'Exif\x00\x00' + tiff)
    return buffer.getvalue()


@pytest.fixture
def make_exposure_jpeg():
    return jpeg_with_exposure_double


@pytest.fixture
def tiny_exposure_jpeg():
    """A JPEG whose exposure time is the smallest positive double."""
    return jpeg_with_exposure_double(5e-324)


class FakeFetcher:
    """Serves canned bytes (one payload, or a {url: bytes} map); URLs listed in ``failing`` raise."""

    def __init__(self, data=b'', failing=()):
        self.data = data
        self.failing = set(failing)
        self.requested = []
        self.closed = False

    async def fetch(self, url):
        self.requested.append(url)
        if url in self.failing:
            raise ImageFetchError(f"Failed to fetch image {url}: HTTP 404 Not Found")
        if isinstance(self.data, dict):
            return self.data[url]
        return self.data

    async def aclose(self):
        self.closed = True


class FakeProvider:
    """Returns a canned model answer; raises for URLs in ``failing`` or always when ``error`` is set."""

    def __init__(self, response='{"category": "city", "caption": "a street"}', failing=(), error=None):
        self.response = response
        self.failing = set(failing)
        self.error = error
        self.calls = []

    async def analyze(self, image_url):
        self.calls.append(image_url)
        if self.error is not None or image_url in self.failing:
            raise self.error or RuntimeError("provider unavailable")
        return self.response


@pytest.fixture
def fake_fetcher(jpeg_bytes):
    return FakeFetcher(jpeg_bytes)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def make_provider():
    return FakeProvider
