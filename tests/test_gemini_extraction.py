import json
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from menu_decoder.errors import ExtractionFailure
from menu_decoder.menu_extraction.gemini_calls import (
    GeminiMenuExtractor,
    list_generation_models,
    parse_dish_records,
)
from menu_decoder.schema import DishRecord


class FakeModels:
    def __init__(self, text=None, raises=None, models=()):
        self.text = text
        self.raises = raises
        self.models = list(models)
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.raises is not None:
            raise self.raises
        return SimpleNamespace(text=self.text)

    def list(self):
        return iter(self.models)


def _client(**kwargs):
    return SimpleNamespace(models=FakeModels(**kwargs))


RECORDS = [
    {"dish": "Spaghetti Carbonara", "price": "$14.50", "description": "Egg, pecorino, guanciale"},
    {"dish": "Tiramisu", "price": "", "description": ""},
    {"dish": "   ", "price": "$1", "description": "nothing"},
]


def test_records_become_menu_items():
    client = _client(text=json.dumps(RECORDS))
    result = GeminiMenuExtractor(client, "gemini-test").extract(b"jpeg", "English")

    assert not result.needs_line_filter
    assert [item.dish for item in result.items] == ["Spaghetti Carbonara", "Tiramisu"]
    assert result.items[0].price == "$14.50"
    assert result.items[0].description == "Egg, pecorino, guanciale"
    assert result.items[1].price is None
    assert result.items[1].description is None


def test_request_carries_language_image_and_schema():
    client = _client(text="[]")
    GeminiMenuExtractor(client, "gemini-test").extract(b"jpeg-bytes", "Korean")

    call = client.models.calls[0]
    assert call["model"] == "gemini-test"
    parts = call["contents"][0].parts
    assert "translated into Korean" in parts[0].text
    assert parts[1].inline_data.data == b"jpeg-bytes"
    assert parts[1].inline_data.mime_type == "image/jpeg"
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].temperature == 0


@pytest.mark.parametrize("text", [
    '[{"dish": "Tiramisu", "price": "$7.00", "descrip',
    '{"items": []}',
    '[{"dish": "Tiramisu", "price": "$7.00"}]',
    "not json",
    "",
    None,
])
def test_malformed_output_is_rejected(text):
    client = _client(text=text)
    with pytest.raises(ExtractionFailure) as exc:
        GeminiMenuExtractor(client, "gemini-test").extract(b"jpeg", "English")
    assert exc.value.reason == ExtractionFailure.MALFORMED_MODEL_OUTPUT


def test_parse_keeps_order():
    records = parse_dish_records(json.dumps(RECORDS[:2]))
    assert records == [DishRecord(**RECORDS[0]), DishRecord(**RECORDS[1])]


def test_api_error_is_a_provider_error():
    error = genai_errors.APIError(503, {"error": {"message": "The model is overloaded.", "status": "UNAVAILABLE"}})
    client = _client(raises=error)
    with pytest.raises(ExtractionFailure) as exc:
        GeminiMenuExtractor(client, "gemini-test").extract(b"jpeg", "English")
    assert exc.value.reason == ExtractionFailure.PROVIDER_ERROR
    assert exc.value.message == "Gemini API Error: The model is overloaded."


def test_list_generation_models_filters_on_generate_content():
    models = [
        SimpleNamespace(name="models/gemini-2.5-flash", supported_actions=["generateContent", "countTokens"]),
        SimpleNamespace(name="models/text-embedding-004", supported_actions=["embedContent"]),
        SimpleNamespace(name="models/legacy", supported_actions=None),
    ]
    assert list_generation_models(_client(models=models)) == ["models/gemini-2.5-flash"]
