"""Core module initialization."""
from .image_processor import ImageProcessor, merge_record
from .llm_handler import get_provider
from .metadata_handler import MetadataHandler, normalize_metadata
from .output_handler import OutputHandler
from .pool import run_bounded
from .response_parser import parse_analysis

__all__ = ['ImageProcessor', 'merge_record', 'get_provider', 'MetadataHandler', 'normalize_metadata',
           'OutputHandler', 'run_bounded', 'parse_analysis']
