import base64
from typing import List, Optional

import requests
from google.api_core import exceptions as google_exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import vision

from menu_decoder.errors import ExtractionFailure
from menu_decoder.logging_config import logger
from menu_decoder.menu_extraction.base import Extractor
from menu_decoder.menu_extraction.constants import (
    PLACEHOLDER_MENU_LINES,
    VISION_REST_URL,
    VISION_TIMEOUT,
)
from menu_decoder.schema import ExtractionResult
from menu_decoder.utils.helpers import http_error_message, redact


class VisionResponseError(RuntimeError):
    """The Vision client answered, but with an error payload instead of annotations."""


def _split_full_text(description: str) -> List[str]:
    return description.split("\n")


class VisionOcrExtractor(Extractor):
    """
    Text detection with Google Cloud Vision.

    The service-account client is tried first. If it is missing or fails, the
    REST endpoint is called once with the API key. Only the first (full text)
    annotation is used, split into lines.
    """

    name = "vision-ocr"

    def __init__(
        self,
        client: Optional[vision.ImageAnnotatorClient] = None,
        api_key: Optional[str] = None,
        timeout: float = VISION_TIMEOUT,
    ):
        self.client = client
        self.api_key = api_key
        self.timeout = timeout

    def extract(self, image_bytes: bytes, language: str) -> ExtractionResult:
        lines = self._detect_lines(image_bytes)
        if not lines:
            # TODO: fail with ExtractionFailure instead once the frontend shows an "unreadable menu" state
            logger.warning("Text detection returned no lines, falling back to the placeholder menu")
            lines = list(PLACEHOLDER_MENU_LINES)
        logger.info("Text detection returned %d lines", len(lines))
        return ExtractionResult(lines=lines)

    def _detect_lines(self, image_bytes: bytes) -> List[str]:
        if self.client is not None:
            try:
                return self._detect_with_client(image_bytes)
            except (google_exceptions.GoogleAPIError, GoogleAuthError, VisionResponseError) as e:
                logger.warning("vision-client failed, trying REST fallback with API key: %s", e)

        if not self.api_key:
            logger.error("vision-rest: no working credentials found")
            raise ExtractionFailure(
                ExtractionFailure.NO_CREDENTIALS,
                "Google Cloud Vision API Error: Missing Service Account or API Key.",
            )
        return self._detect_with_rest(image_bytes)

    def _detect_with_client(self, image_bytes: bytes) -> List[str]:
        response = self.client.text_detection(image=vision.Image(content=image_bytes))
        if response.error.message:
            raise VisionResponseError(response.error.message)
        annotations = response.text_annotations
        if not annotations:
            return []
        return _split_full_text(annotations[0].description)

    def _detect_with_rest(self, image_bytes: bytes) -> List[str]:
        payload = {
            "requests": [{
                "image": {"content": base64.b64encode(image_bytes).decode("utf-8")},
                "features": [{"type": "TEXT_DETECTION"}],
            }]
        }
        try:
            resp = requests.post(
                VISION_REST_URL,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            message = redact(http_error_message(e), [self.api_key])
            logger.error("vision-rest failed: %s", message)
            raise ExtractionFailure(
                ExtractionFailure.PROVIDER_ERROR, f"Google Vision API Error: {message}"
            )

        result = (data.get("responses") or [{}])[0]
        annotations = result.get("textAnnotations")
        if annotations:
            return _split_full_text(annotations[0].get("description", ""))
        if result.get("error"):
            message = redact(result["error"].get("message", "unknown error"), [self.api_key])
            logger.error("vision-rest returned an error: %s", message)
            raise ExtractionFailure(
                ExtractionFailure.PROVIDER_ERROR, f"Google Vision API Error: {message}"
            )
        return []
