"""
Image processor module: per-image analysis and batch orchestration.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from typing_extensions import TypedDict

from .config import Config
from .image_utils import ImageFetcher, ImageSource, read_url_list
from .llm_handler import get_provider
from .metadata_handler import ImageMetadata, MetadataHandler
from .output_handler import OutputHandler
from .pool import run_bounded
from .response_parser import AnalysisResult, try_parse_analysis, unknown_analysis

logger = logging.getLogger(__name__)


class OutputRecord(TypedDict, total=False):
    url: str
    file: str
    categories: List[str]
    category: str
    caption: str
    footer: str
    footer_en: str
    stars: int
    portfolio: bool
    visible: bool
    focal: str
    aperture: float
    iso: int
    shutter_speed: str
    camera: str
    lens: str


def merge_record(source: ImageSource, analysis: AnalysisResult, metadata: ImageMetadata) -> OutputRecord:
    """Combine identity, analysis and whatever metadata was found into one record."""
    record: OutputRecord = {
        'url': source.url,
        'file': source.display_name,
        'categories': list(analysis['categories']),
        'category': analysis['category'],
        'caption': analysis['caption'],
        'footer': analysis['footer'],
        'footer_en': analysis['footer_en'],
        'stars': 0,
        'portfolio': False,
        'visible': True,
    }
    record.update(metadata)
    return record


class ImageProcessor:
    """Runs the metadata and caption analysis for a list of image URLs."""

    def __init__(self, api_key: Optional[str] = None, config: Optional[Config] = None,
                 model: Optional[str] = None, concurrency: Optional[int] = None,
                 provider: Optional[Any] = None, metadata_handler: Optional[MetadataHandler] = None,
                 fetcher: Optional[ImageFetcher] = None,
                 progress_callback: Optional[Callable[[int, OutputRecord], None]] = None):
        """Initialize the image processor.

        Args:
            api_key: API key for the model provider (unused when ``provider`` is given)
            config: Optional configuration object
            model: Optional model name to use
            concurrency: Maximum number of images processed at once
            provider: Object with an async ``analyze(url) -> str`` method
            metadata_handler: Optional metadata handler
            fetcher: Shared image downloader
            progress_callback: Called as ``callback(index, record)`` after each image
        """
        self.config = config or Config()
        self.fetcher = fetcher or ImageFetcher(timeout=self.config.request_timeout)
        self.metadata_handler = metadata_handler or MetadataHandler(self.fetcher)
        self.output_handler = OutputHandler()
        self.provider = provider or get_provider(
            api_key or self.config.require_api_key(),
            model=model,
            fetcher=self.fetcher,
            config=self.config,
        )
        self.concurrency = concurrency if concurrency is not None else self.config.concurrency
        self.progress_callback = progress_callback

        # Processing statistics
        self.stats = {
            'total': 0,
            'processed': 0,
            'analysis_failed': 0,
            'metadata_missing': 0,
            'start_time': None,
            'elapsed': 0.0,
        }

    async def _safe_analysis(self, source: ImageSource) -> AnalysisResult:
        try:
            text = await self.provider.analyze(source.url)
        except Exception as e:
            logger.error(f"Error processing {source.display_name}: {str(e)}")
            self.stats['analysis_failed'] += 1
            return unknown_analysis()

        analysis = try_parse_analysis(text)
        if analysis is None:
            self.stats['analysis_failed'] += 1
            return unknown_analysis()
        return analysis

    async def analyze_image(self, source: ImageSource) -> OutputRecord:
        """
        Analyze a single image.

        Metadata extraction and the model call run concurrently. Failures in
        either branch degrade the record instead of raising.
        """
        logger.info(f"Processing {source.display_name}...")
        metadata, analysis = await asyncio.gather(
            self.metadata_handler.extract(source.url),
            self._safe_analysis(source),
        )
        if not metadata:
            self.stats['metadata_missing'] += 1
        return merge_record(source, analysis, metadata)

    async def _process_one(self, source: ImageSource, index: int) -> OutputRecord:
        record = await self.analyze_image(source)

        self.stats['processed'] += 1

        if self.progress_callback:
            self.progress_callback(index, record)
        return record

    async def process_batch(self, urls: List[str]) -> List[OutputRecord]:
        """
        Analyze every URL, at most ``self.concurrency`` at a time.

        Returns:
            One record per URL, in input order
        """
        sources = [ImageSource.from_url(url) for url in urls]
        self.stats.update(total=len(sources), processed=0, analysis_failed=0,
                          metadata_missing=0, start_time=time.time())
        try:
            results = await run_bounded(self.concurrency, sources, self._process_one)
        finally:
            await self.fetcher.aclose()
            self.stats['elapsed'] = time.time() - self.stats['start_time']

        logger.info(
            f"Processed {self.stats['processed']} images in {self.stats['elapsed']:.1f}s "
            f"({self.stats['analysis_failed']} without analysis)"
        )
        return results

    async def run(self, input_path: Union[str, Path], output_path: Union[str, Path],
                  output_format: str = 'json') -> List[OutputRecord]:
        """Read the URL list, analyze every image and write the results."""
        urls = read_url_list(input_path)
        logger.info(f"Found {len(urls)} image URLs in {input_path}")

        results = await self.process_batch(urls)
        self.output_handler.save(results, output_path, output_format)
        return results
