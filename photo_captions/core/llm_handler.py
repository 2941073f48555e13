"""LLM provider module for image captioning."""
import asyncio
import logging
from typing import Optional

import absl.logging
import google.generativeai as genai

from . import image_utils
from .config import Config
from .image_utils import ImageFetcher

logger = logging.getLogger(__name__)

# Prevent absl from writing to stderr
logging.root.removeHandler(absl.logging._absl_handler)

# Prompt sent with every image
PROMPT = """Analyze the image and answer ONLY with JSON using this structure:

{
  "categories": ["an array of categories (e.g. city, landscape, architecture, people, portrait, event)"],
  "footer": "short, natural and descriptive photo footer in neutral Spanish, using Chilean idioms only when needed",
  "footer_en": "the footer in English",
  "caption": "detailed description of the image in neutral Spanish, without value judgements"
}

Do not add any text outside the JSON."""


class GeminiProvider:
    """Provider class for Google's Gemini vision models."""

    def __init__(self, api_key: str, model: Optional[str] = None,
                 fetcher: Optional[ImageFetcher] = None, config: Optional[Config] = None):
        """Initialize the Gemini provider."""
        self.api_key = api_key
        self.config = config or Config()
        self.fetcher = fetcher or ImageFetcher(timeout=self.config.request_timeout)

        # Configure the API
        genai.configure(api_key=api_key)

        self.model_name = model or self.config.default_model
        logger.debug(f"Selected model_name: {self.model_name}")

        try:
            self.model = genai.GenerativeModel(
                self.model_name,
                generation_config={"response_mime_type": "application/json"},
            )
        except Exception as e:
            raise Exception(f"Failed to initialize Gemini model: {str(e)}")

    async def analyze(self, image_url: str) -> str:
        """
        Ask the model to describe a remote image.

        Args:
            image_url: URL of the image

        Returns:
            str: Raw response text, expected (but not guaranteed) to be JSON

        Raises:
            ImageFetchError: If the image cannot be downloaded
            ValueError: If the model returns no usable text
        """
        data = await self.fetcher.fetch(image_url)
        img = await asyncio.to_thread(
            image_utils.prepare_for_llm,
            data,
            max_dimension=self.config.max_dimension,
            quality=self.config.compression_quality,
        )

        logger.debug(f"Sending {image_url} to {self.model_name} ({img.width}x{img.height})")
        response = await self.model.generate_content_async([PROMPT, img])

        if not response.candidates or not response.text:
            raise ValueError("No valid response generated")

        logger.debug(f"Raw response for {image_url}: {response.text[:200]}")
        return response.text


def get_provider(api_key: str, model: Optional[str] = None,
                 fetcher: Optional[ImageFetcher] = None, config: Optional[Config] = None) -> GeminiProvider:
    """Get an instance of the Gemini provider."""
    return GeminiProvider(api_key, model=model, fetcher=fetcher, config=config)
