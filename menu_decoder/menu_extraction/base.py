from abc import ABC, abstractmethod

from menu_decoder.menu_extraction.constants import SAMPLE_MENU_LINES
from menu_decoder.schema import ExtractionResult


class Extractor(ABC):
    """Turns menu image bytes into either raw OCR lines or typed dish records."""

    name = "extractor"

    @abstractmethod
    def extract(self, image_bytes: bytes, language: str) -> ExtractionResult:
        """Raises ExtractionFailure when the provider cannot produce a usable result."""


class MockExtractor(Extractor):
    name = "mock"

    def extract(self, image_bytes: bytes, language: str) -> ExtractionResult:
        return ExtractionResult(lines=list(SAMPLE_MENU_LINES))
