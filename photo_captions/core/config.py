"""Configuration module for batch captioning."""
import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv, find_dotenv

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
OUTPUT_FORMATS = ('json', 'csv')


class ConfigError(Exception):
    """Exception raised when required configuration is missing."""
    pass


def _parse_concurrency(raw: Optional[str]) -> int:
    """Parse the concurrency bound, falling back to the default on junk or zero."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_CONCURRENCY
    return value or DEFAULT_CONCURRENCY


class Config:
    """Configuration class for batch captioning."""

    def __init__(self):
        """Initialize configuration from the environment and an optional .env file."""
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path)
            logger.debug(f"Loaded environment from: {env_path}")

        # Credentials
        self.api_key = os.getenv('GOOGLE_API_KEY')

        # Model settings
        self.default_model = os.getenv('DEFAULT_MODEL')
        if not self.default_model:
            logger.warning("DEFAULT_MODEL not found in environment, using default: gemini-2.0-flash")
            self.default_model = 'gemini-2.0-flash'
        else:
            logger.debug(f"Using DEFAULT_MODEL from environment: {self.default_model}")

        # Logging
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')

        # Batch processing
        self.concurrency = _parse_concurrency(os.getenv('CONCURRENCY'))
        self.request_timeout = float(os.getenv('REQUEST_TIMEOUT', '30'))

        # Image preparation for the model
        self.max_dimension = int(os.getenv('MAX_DIMENSION', '1024'))
        self.compression_quality = int(os.getenv('COMPRESSION_QUALITY', '85'))

        # Input / output
        self.input_file = os.getenv('INPUT_FILE', 'urls.txt')
        self.output_format = os.getenv('OUTPUT_FORMAT', 'json').lower()
        self.output_file = os.getenv('OUTPUT_FILE')

        # Verbose output
        self.verbose_output = os.getenv('VERBOSE_OUTPUT', 'true').lower() == 'true'

    def require_api_key(self) -> str:
        """Return the API key or fail before any processing starts."""
        if not self.api_key:
            raise ConfigError("GOOGLE_API_KEY environment variable not set")
        return self.api_key

    def get_output_path(self, output_format: Optional[str] = None) -> Path:
        """Get the output path for the given format."""
        output_format = (output_format or self.output_format).lower()
        if self.output_file:
            return Path(self.output_file)
        return Path(f"captions.{output_format}")
