"""
Metadata handler for reading camera EXIF data from remote images using Pillow.

EXIF values come back from Pillow in several shapes (rationals, plain numbers,
strings, byte strings, tuples). They are classified once into the ``RawValue``
union below, and each output field has its own normalizer over that union.
"""
import io
import logging
import math
import numbers
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from PIL import ExifTags, Image
from PIL.TiffImagePlugin import IFDRational
from typing_extensions import TypedDict

from .image_utils import ImageFetcher

logger = logging.getLogger(__name__)

# IFD0 tags
TAG_MAKE = 0x010F
TAG_MODEL = 0x0110

# Exif sub-IFD tags
TAG_EXPOSURE_TIME = 0x829A
TAG_F_NUMBER = 0x829D
TAG_ISO = 0x8827
TAG_FOCAL_LENGTH = 0x920A
TAG_LENS_MODEL = 0xA434

EXIF_IFD_TAGS = {
    'exposure_time': TAG_EXPOSURE_TIME,
    'f_number': TAG_F_NUMBER,
    'iso': TAG_ISO,
    'focal_length': TAG_FOCAL_LENGTH,
    'lens': TAG_LENS_MODEL,
}


@dataclass(frozen=True)
class Number:
    value: Union[int, float]


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class NumberList:
    values: Tuple[Union[int, float], ...]


@dataclass(frozen=True)
class TextList:
    values: Tuple[str, ...]


RawValue = Union[Number, Text, NumberList, TextList]
RawTagTree = Dict[str, RawValue]


class ImageMetadata(TypedDict, total=False):
    focal: str
    aperture: float
    iso: int
    shutter_speed: str
    camera: str
    lens: str


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _clean_text(value: Union[str, bytes]) -> str:
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='ignore')
    return value.replace('\x00', '').strip()


def _plain_number(value: numbers.Real) -> Optional[Union[int, float]]:
    if isinstance(value, int):
        return value
    value = float(value)
    return value if math.isfinite(value) else None


def classify(value: Any) -> Optional[RawValue]:
    """Map a library value onto the RawValue union, or None if the shape is not usable."""
    if value is None or isinstance(value, bool):
        return None
    if _is_number(value):
        number = _plain_number(value)
        return Number(number) if number is not None else None
    if isinstance(value, (str, bytes)):
        text = _clean_text(value)
        return Text(text) if text else None
    if isinstance(value, (list, tuple)) and value:
        if all(_is_number(item) for item in value):
            values = tuple(_plain_number(item) for item in value)
            if any(item is None for item in values):
                return None
            return NumberList(values)
        if all(isinstance(item, (str, bytes)) for item in value):
            texts = tuple(_clean_text(item) for item in value)
            texts = tuple(text for text in texts if text)
            return TextList(texts) if texts else None
    return None


def raw_tags_from_exif(exif: Image.Exif) -> RawTagTree:
    """Collect the camera fields from a Pillow Exif object."""
    tags: RawTagTree = {}
    exif_ifd = exif.get_ifd(ExifTags.IFD.Exif) or {}

    for name, tag in EXIF_IFD_TAGS.items():
        value = exif_ifd.get(tag)
        if name == 'f_number' and isinstance(value, IFDRational):
            # Keep the rational as a pair so the normalizer can round it
            value = (value.numerator, value.denominator)
        raw = classify(value)
        if raw is not None:
            tags[name] = raw

    for name, tag in (('make', TAG_MAKE), ('model', TAG_MODEL)):
        raw = classify(exif.get(tag))
        if raw is not None:
            tags[name] = raw

    return tags


def decode_exif(data: bytes) -> RawTagTree:
    """
    Decode the EXIF block of an image.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a readable image
    """
    with Image.open(io.BytesIO(data)) as img:
        return raw_tags_from_exif(img.getexif())


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, so 2.25 becomes 2.3 rather than 2.2."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _leading_number(text: str, integer: bool = False) -> Optional[Union[int, float]]:
    pattern = r'[+-]?\d+' if integer else r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?'
    match = re.match(pattern, text.strip())
    if not match:
        return None
    return int(match.group(0)) if integer else float(match.group(0))


def normalize_focal(raw: Optional[RawValue]) -> Optional[str]:
    if isinstance(raw, Number):
        return f"{_format_number(raw.value)}mm"
    if isinstance(raw, Text):
        return raw.value
    if isinstance(raw, NumberList):
        return f"{_format_number(raw.values[0])}mm"
    return None


def normalize_aperture(raw: Optional[RawValue]) -> Optional[float]:
    if isinstance(raw, NumberList) and len(raw.values) >= 2:
        numerator, denominator = raw.values[0], raw.values[1]
        if not denominator:
            return None
        return _round_half_up(numerator / denominator, 1)
    if isinstance(raw, Number):
        return raw.value
    if isinstance(raw, Text):
        cleaned = re.sub(r'^f/', '', raw.value, flags=re.IGNORECASE).strip()
        return _leading_number(cleaned)
    return None


def normalize_iso(raw: Optional[RawValue]) -> Optional[int]:
    if isinstance(raw, Number):
        return int(raw.value)
    if isinstance(raw, Text):
        return _leading_number(raw.value, integer=True)
    if isinstance(raw, NumberList):
        return int(raw.values[0])
    return None


def _format_exposure(exposure: Union[int, float]) -> Optional[str]:
    if exposure <= 0:
        return None
    if exposure < 1:
        inverse = 1 / exposure
        if not math.isfinite(inverse):
            return None
        return f"1/{int(_round_half_up(inverse))}s"
    return f"{_format_number(exposure)}s"


def normalize_shutter_speed(raw: Optional[RawValue]) -> Optional[str]:
    if isinstance(raw, Text):
        return raw.value
    if isinstance(raw, Number):
        return _format_exposure(raw.value)
    if isinstance(raw, NumberList):
        return _format_exposure(raw.values[0])
    return None


def _join_text(raw: Optional[RawValue]) -> str:
    if isinstance(raw, Text):
        return raw.value
    if isinstance(raw, TextList):
        return ' '.join(raw.values)
    return ''


def normalize_camera(make: Optional[RawValue], model: Optional[RawValue]) -> Optional[str]:
    make_text = _join_text(make)
    model_text = _join_text(model)
    if make_text and model_text:
        return f"{make_text} {model_text}"
    return model_text or None


def normalize_lens(raw: Optional[RawValue]) -> Optional[str]:
    return _join_text(raw) or None


def normalize_metadata(tags: RawTagTree) -> ImageMetadata:
    """Build an ImageMetadata record, leaving out every field that cannot be read."""
    fields = {
        'focal': normalize_focal(tags.get('focal_length')),
        'aperture': normalize_aperture(tags.get('f_number')),
        'iso': normalize_iso(tags.get('iso')),
        'shutter_speed': normalize_shutter_speed(tags.get('exposure_time')),
        'camera': normalize_camera(tags.get('make'), tags.get('model')),
        'lens': normalize_lens(tags.get('lens')),
    }
    return {key: value for key, value in fields.items() if value is not None}


class MetadataHandler:
    """Handler for reading camera metadata from remote images."""

    def __init__(self, fetcher: Optional[ImageFetcher] = None):
        """Initialize the metadata handler."""
        self.fetcher = fetcher or ImageFetcher()

    async def extract(self, url: str) -> ImageMetadata:
        """
        Fetch an image and return its normalized camera metadata.

        Never raises; fetch, decode or normalization failures yield an empty record.
        """
        try:
            data = await self.fetcher.fetch(url)
            tags = decode_exif(data)
            metadata = normalize_metadata(tags)
        except Exception as e:
            logger.warning(f"Failed to extract metadata from {url}: {str(e)}")
            return {}

        logger.debug(f"Metadata for {url}: {metadata}")
        return metadata
