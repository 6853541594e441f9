from types import SimpleNamespace

import pytest
import requests
from google.api_core import exceptions as google_exceptions

from menu_decoder.errors import ExtractionFailure
from menu_decoder.menu_extraction import vision_ocr
from menu_decoder.menu_extraction.constants import PLACEHOLDER_MENU_LINES, VISION_REST_URL
from menu_decoder.menu_extraction.vision_ocr import VisionOcrExtractor


class FakeVisionClient:
    def __init__(self, description=None, error_message="", raises=None):
        self.description = description
        self.error_message = error_message
        self.raises = raises
        self.calls = 0

    def text_detection(self, image):
        self.calls += 1
        if self.raises is not None:
            raise self.raises
        annotations = [SimpleNamespace(description=self.description)] if self.description is not None else []
        return SimpleNamespace(
            error=SimpleNamespace(message=self.error_message),
            text_annotations=annotations,
        )


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)


@pytest.fixture
def rest_calls(monkeypatch):
    calls = []

    def install(response):
        def fake_post(url, params=None, json=None, timeout=None):
            calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
            if isinstance(response, Exception):
                raise response
            return response
        monkeypatch.setattr(vision_ocr.requests, "post", fake_post)
        return calls
    return install


def test_client_full_text_is_split_into_lines():
    client = FakeVisionClient(description="MENU\nPad Thai\nGreen Curry $12")
    result = VisionOcrExtractor(client=client).extract(b"img", "English")
    assert result.lines == ["MENU", "Pad Thai", "Green Curry $12"]
    assert result.needs_line_filter


def test_client_failure_falls_back_to_rest(rest_calls):
    calls = rest_calls(FakeResponse({"responses": [{"textAnnotations": [{"description": "Pad Thai\nLaab"}]}]}))
    client = FakeVisionClient(raises=google_exceptions.PermissionDenied("billing disabled"))

    result = VisionOcrExtractor(client=client, api_key="k-123").extract(b"img", "English")

    assert result.lines == ["Pad Thai", "Laab"]
    assert client.calls == 1
    assert calls[0]["url"] == VISION_REST_URL
    assert calls[0]["params"] == {"key": "k-123"}
    request = calls[0]["json"]["requests"][0]
    assert request["image"]["content"] == "aW1n"
    assert request["features"] == [{"type": "TEXT_DETECTION"}]


def test_client_error_payload_also_falls_back(rest_calls):
    rest_calls(FakeResponse({"responses": [{"textAnnotations": [{"description": "Laab"}]}]}))
    client = FakeVisionClient(error_message="Bad image data.")
    assert VisionOcrExtractor(client=client, api_key="k").extract(b"img", "English").lines == ["Laab"]


def test_no_client_and_no_key_is_a_credentials_failure():
    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor().extract(b"img", "English")
    assert exc.value.reason == ExtractionFailure.NO_CREDENTIALS
    assert "Missing Service Account or API Key" in exc.value.message


def test_client_failure_without_key_is_a_credentials_failure():
    client = FakeVisionClient(raises=google_exceptions.ServiceUnavailable("down"))
    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor(client=client).extract(b"img", "English")
    assert exc.value.reason == ExtractionFailure.NO_CREDENTIALS


def test_rest_http_error_is_a_provider_error_without_the_key(rest_calls):
    body = {"error": {"message": "API key not valid: secret-key"}}
    rest_calls(FakeResponse(body, status_code=400))

    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor(api_key="secret-key").extract(b"img", "English")

    assert exc.value.reason == ExtractionFailure.PROVIDER_ERROR
    assert exc.value.message == "Google Vision API Error: API key not valid: HIDDEN_KEY"


def test_rest_oauth_style_error_is_a_provider_error(rest_calls):
    rest_calls(FakeResponse({"error": "invalid_grant"}, status_code=403))

    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor(api_key="k").extract(b"img", "English")

    assert exc.value.reason == ExtractionFailure.PROVIDER_ERROR
    assert exc.value.message == "Google Vision API Error: invalid_grant"


def test_rest_connection_error_is_a_provider_error(rest_calls):
    rest_calls(requests.ConnectionError("connection refused"))
    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor(api_key="k").extract(b"img", "English")
    assert exc.value.reason == ExtractionFailure.PROVIDER_ERROR


def test_rest_error_entry_is_a_provider_error(rest_calls):
    rest_calls(FakeResponse({"responses": [{"error": {"message": "Image too large"}}]}))
    with pytest.raises(ExtractionFailure) as exc:
        VisionOcrExtractor(api_key="k").extract(b"img", "English")
    assert exc.value.message == "Google Vision API Error: Image too large"


def test_no_text_uses_the_placeholder_menu():
    result = VisionOcrExtractor(client=FakeVisionClient(description=None)).extract(b"img", "English")
    assert result.lines == PLACEHOLDER_MENU_LINES


def test_empty_rest_response_uses_the_placeholder_menu(rest_calls):
    rest_calls(FakeResponse({"responses": [{}]}))
    result = VisionOcrExtractor(api_key="k").extract(b"img", "English")
    assert result.lines == PLACEHOLDER_MENU_LINES
