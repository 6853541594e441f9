import base64
import io
import threading

import pytest
from PIL import Image

from menu_decoder.config import Settings
from menu_decoder.image_generating.base import Illustrator
from menu_decoder.menu_extraction.base import Extractor
from menu_decoder.pipeline import MenuDecoder
from menu_decoder.schema import SEARCH_FAILED, ExtractionResult, IllustrationOutcome


def _png(size=(40, 20), color="white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeExtractor(Extractor):
    name = "fake-extractor"

    def __init__(self, result=None, error=None):
        self.result = result or ExtractionResult(lines=[])
        self.error = error
        self.calls = []

    def extract(self, image_bytes, language):
        self.calls.append((image_bytes, language))
        if self.error is not None:
            raise self.error
        return self.result


class FakeIllustrator(Illustrator):
    """Image URL per dish; dishes listed in `failing` get an error, in `crashing` raise, in `blocking` hang."""

    name = "fake-illustrator"

    def __init__(self, failing=(), crashing=(), blocking=()):
        self.failing = set(failing)
        self.crashing = set(crashing)
        self.blocking = set(blocking)
        self.release = threading.Event()
        self.seen = []

    def illustrate(self, item):
        self.seen.append(item.dish)
        if item.dish in self.blocking:
            self.release.wait(5)
        if item.dish in self.crashing:
            raise RuntimeError("unexpected provider payload")
        if item.dish in self.failing:
            return IllustrationOutcome.failure(SEARCH_FAILED, f"quota exceeded for {item.dish}")
        return IllustrationOutcome.success(f"https://img.example/{item.dish.replace(' ', '_')}.jpg")


@pytest.fixture
def png_bytes():
    return _png()


@pytest.fixture
def png_data_uri(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("utf-8")


@pytest.fixture
def make_png():
    return _png


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_extractor_cls():
    return FakeExtractor


@pytest.fixture
def fake_illustrator_cls():
    return FakeIllustrator


@pytest.fixture
def make_decoder():
    def _make(extractor, illustrator, **kwargs):
        return MenuDecoder(extractor=extractor, illustrator=illustrator, **kwargs)
    return _make
