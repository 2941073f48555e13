"""
Recovers the analysis JSON from free-form model output and coerces it into a canonical record.
"""
import json
import logging
import re
from typing import Any, List, Optional

from typing_extensions import TypedDict

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "unknown"
UNAVAILABLE_CAPTION = "description unavailable"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class AnalysisResult(TypedDict):
    categories: List[str]
    category: str
    caption: str
    footer: str
    footer_en: str


def unknown_analysis() -> AnalysisResult:
    """Fallback used when the model answer is unusable or the call failed."""
    return {
        'categories': [],
        'category': UNKNOWN_CATEGORY,
        'caption': UNAVAILABLE_CAPTION,
        'footer': '',
        'footer_en': '',
    }


def extract_likely_json(text: Optional[str]) -> str:
    """
    Pull the most likely JSON payload out of a model response.

    A fenced code block wins; otherwise the span from the first ``{`` to the
    last ``}``; otherwise the trimmed text itself.
    """
    if not text:
        return ''

    trimmed = str(text).strip()

    fenced = _FENCED_BLOCK.search(trimmed)
    if fenced and fenced.group(1):
        return fenced.group(1).strip()

    first = trimmed.find('{')
    last = trimmed.rfind('}')
    if first != -1 and last > first:
        return trimmed[first:last + 1]

    return trimmed


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def coerce_to_string_list(value: Any) -> List[str]:
    """Turn an array, a single string or anything else into a list of non-empty strings."""
    if isinstance(value, list):
        strings = (_stringify(item) for item in value if item is not None)
        return [item for item in strings if item.strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _text_field(parsed: dict, key: str) -> str:
    value = parsed.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return ''


def parse_analysis(text: Optional[str]) -> AnalysisResult:
    """
    Parse a model response into an AnalysisResult.

    Never raises: anything that is not a JSON object yields ``unknown_analysis()``.
    """
    analysis = try_parse_analysis(text)
    return analysis if analysis is not None else unknown_analysis()


def try_parse_analysis(text: Optional[str]) -> Optional[AnalysisResult]:
    """Like ``parse_analysis`` but returns None when the response holds no JSON object."""
    json_text = extract_likely_json(text)
    try:
        parsed = json.loads(json_text)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Could not parse model response as JSON: {e}")
        return None

    if not isinstance(parsed, dict):
        logger.warning(f"Model response is JSON but not an object: {type(parsed).__name__}")
        return None

    raw_categories = parsed.get('categories')
    if raw_categories is None:
        # Models sometimes misspell the key
        raw_categories = parsed.get('categores')
    if raw_categories is None:
        raw_categories = parsed.get('category')
    categories = coerce_to_string_list(raw_categories)

    category = _text_field(parsed, 'category')
    if not category:
        category = categories[0] if categories else UNKNOWN_CATEGORY

    return {
        'categories': categories,
        'category': category,
        'caption': _text_field(parsed, 'caption'),
        'footer': _text_field(parsed, 'footer'),
        'footer_en': _text_field(parsed, 'footer_en'),
    }
