import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional

from google import genai

from menu_decoder.clients import build_genai_client, build_vision_client
from menu_decoder.config import (
    EXTRACTOR_OCR,
    EXTRACTOR_STRUCTURED,
    ILLUSTRATOR_GENERATE,
    ILLUSTRATOR_SEARCH,
    Settings,
)
from menu_decoder.errors import ConfigurationMissing
from menu_decoder.image_generating.base import Illustrator, PlaceholderIllustrator
from menu_decoder.image_generating.image_search import ImageSearchIllustrator
from menu_decoder.image_generating.nanobanana import GeminiImageIllustrator
from menu_decoder.logging_config import logger
from menu_decoder.menu_extraction.base import Extractor, MockExtractor
from menu_decoder.menu_extraction.constants import DEFAULT_LANGUAGE
from menu_decoder.menu_extraction.gemini_calls import GeminiMenuExtractor
from menu_decoder.menu_extraction.line_filter import MAX_ITEMS, filter_menu_lines
from menu_decoder.menu_extraction.vision_ocr import VisionOcrExtractor
from menu_decoder.schema import (
    GENERATION_UNAVAILABLE,
    ExtractionResult,
    IllustrationOutcome,
    MenuItem,
    ResponsePayload,
)
from menu_decoder.utils.image_utils import normalize_image

MISSING_GEMINI = "Missing Gemini API key (GOOGLE_API_KEY) or Vertex AI project (GOOGLE_CLOUD_PROJECT)"


def assemble(items: List[MenuItem], outcomes: List[IllustrationOutcome]) -> ResponsePayload:
    """
    Zips each item with its illustration outcome, in input order.

    searchWarning is the first recorded error, but only when no item got an
    image at all; partial success never raises a warning.
    """
    results = [
        item.model_copy(update={"image": outcome.image, "error": outcome.error})
        for item, outcome in zip(items, outcomes)
    ]
    errors = [outcome.error for outcome in outcomes if outcome.error]
    has_images = any(result.image for result in results)
    return ResponsePayload(
        results=results,
        searchWarning=errors[0] if not has_images and errors else None,
    )


class MenuDecoder:
    """Extract -> Filter (OCR lines only) -> Illustrate -> Assemble, for one request at a time."""

    def __init__(
        self,
        extractor: Extractor,
        illustrator: Illustrator,
        max_items: int = MAX_ITEMS,
        illustration_timeout: float = 30.0,
        max_image_side: int = 2048,
        jpeg_quality: int = 80,
        max_image_bytes: int = 4 * 1024 * 1024,
    ):
        self.extractor = extractor
        self.illustrator = illustrator
        self.max_items = min(max_items, MAX_ITEMS)
        self.illustration_timeout = illustration_timeout
        self.max_image_side = max_image_side
        self.jpeg_quality = jpeg_quality
        self.max_image_bytes = max_image_bytes

    def decode(self, image_bytes: bytes, language: str = DEFAULT_LANGUAGE) -> ResponsePayload:
        started_at = time.perf_counter()
        normalized = normalize_image(
            image_bytes,
            max_side=self.max_image_side,
            quality=self.jpeg_quality,
            max_bytes=self.max_image_bytes,
        )
        logger.info(
            "Decoding menu with %s/%s: image_bytes=%d normalized_bytes=%d language=%s",
            self.extractor.name, self.illustrator.name, len(image_bytes), len(normalized), language,
        )

        extraction = self.extractor.extract(normalized, language)
        items = self.select_items(extraction)
        logger.info("Illustrating %d items: %s", len(items), ", ".join(item.dish for item in items))

        outcomes = self.illustrate_all(items)
        payload = assemble(items, outcomes)
        logger.info(
            "Decoded %d items (%d with images) in %.1fs",
            len(payload.results),
            sum(1 for r in payload.results if r.image),
            time.perf_counter() - started_at,
        )
        return payload

    def select_items(self, extraction: ExtractionResult) -> List[MenuItem]:
        if extraction.needs_line_filter:
            lines = filter_menu_lines(extraction.lines, limit=self.max_items)
            return [MenuItem(dish=line.strip()) for line in lines]
        return list(extraction.items or [])[:self.max_items]

    def illustrate_all(self, items: List[MenuItem]) -> List[IllustrationOutcome]:
        """
        Runs one illustration call per item concurrently and waits for all of
        them. Each call gets the same deadline; a late or crashed call becomes
        a failure outcome for that item only.
        """
        if not items:
            return []

        executor = ThreadPoolExecutor(max_workers=len(items))
        try:
            futures = [executor.submit(self.illustrator.illustrate, item) for item in items]
            deadline = time.monotonic() + self.illustration_timeout
            return [self._collect(item, future, deadline) for item, future in zip(items, futures)]
        finally:
            # Timed-out calls keep running in the background; nobody waits for them
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(self, item: MenuItem, future, deadline: float) -> IllustrationOutcome:
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            logger.warning(
                "%s timed out after %.0fs for %r",
                self.illustrator.name, self.illustration_timeout, item.dish,
            )
            return IllustrationOutcome.failure(
                GENERATION_UNAVAILABLE,
                f"Timed out after {self.illustration_timeout:.0f}s",
            )
        except Exception:
            logger.exception("%s crashed for %r", self.illustrator.name, item.dish)
            return IllustrationOutcome.failure(GENERATION_UNAVAILABLE, "Illustration failed")


def build_extractor(settings: Settings, genai_client: Optional[genai.Client]) -> Extractor:
    if settings.mock_mode:
        return MockExtractor()
    if settings.extractor == EXTRACTOR_OCR:
        client = build_vision_client(settings.vision_credentials)
        if client is None and not settings.google_api_key:
            raise ConfigurationMissing(
                "Google Cloud Vision API Error: Missing Service Account or API Key."
            )
        return VisionOcrExtractor(client=client, api_key=settings.google_api_key)
    if settings.extractor == EXTRACTOR_STRUCTURED:
        if genai_client is None:
            raise ConfigurationMissing(MISSING_GEMINI)
        return GeminiMenuExtractor(genai_client, settings.gemini_model)
    raise ConfigurationMissing(f"Unknown MENU_DECODER_EXTRACTOR: {settings.extractor!r}")


def build_illustrator(settings: Settings, genai_client: Optional[genai.Client]) -> Illustrator:
    if settings.mock_mode:
        return PlaceholderIllustrator()
    if settings.illustrator == ILLUSTRATOR_SEARCH:
        if not settings.search_api_key:
            raise ConfigurationMissing("Missing Google Custom Search API Key (GOOGLE_API_KEY)")
        if not settings.search_engine_id:
            raise ConfigurationMissing(
                "Missing Google Custom Search Engine ID (GOOGLE_CUSTOM_SEARCH_ENGINE_ID)"
            )
        return ImageSearchIllustrator(
            settings.search_api_key,
            settings.search_engine_id,
            timeout=settings.illustration_timeout,
        )
    if settings.illustrator == ILLUSTRATOR_GENERATE:
        if genai_client is None:
            raise ConfigurationMissing(MISSING_GEMINI)
        return GeminiImageIllustrator(genai_client, settings.image_model)
    raise ConfigurationMissing(f"Unknown MENU_DECODER_ILLUSTRATOR: {settings.illustrator!r}")


def build_decoder(settings: Settings) -> MenuDecoder:
    """
    Picks the extraction and illustration strategies from configuration and
    creates the provider clients once.

    Raises:
        ConfigurationMissing: a credential the chosen strategies need is not set.
    """
    if settings.mock_mode:
        logger.warning("MENU_DECODER_MOCK_MODE is on: provider calls are replaced with sample data")

    genai_client = None
    needs_gemini = (
        settings.extractor == EXTRACTOR_STRUCTURED or settings.illustrator == ILLUSTRATOR_GENERATE
    )
    if needs_gemini and not settings.mock_mode:
        genai_client = build_genai_client(settings)

    return MenuDecoder(
        extractor=build_extractor(settings, genai_client),
        illustrator=build_illustrator(settings, genai_client),
        max_items=settings.max_items,
        illustration_timeout=settings.illustration_timeout,
        max_image_side=settings.max_image_side,
        jpeg_quality=settings.jpeg_quality,
        max_image_bytes=settings.max_image_bytes,
    )
