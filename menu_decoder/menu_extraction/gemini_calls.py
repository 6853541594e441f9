from typing import List, Optional
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from menu_decoder.errors import ExtractionFailure
from menu_decoder.logging_config import logger
from menu_decoder.menu_extraction.base import Extractor
from menu_decoder.menu_extraction.constants import MENU_READ_PROMPT
from menu_decoder.schema import DishRecord, ExtractionResult, MenuItem

DISH_RECORDS = TypeAdapter(List[DishRecord])


def parse_dish_records(json_text: Optional[str]) -> List[DishRecord]:
    """Strict parse of the model output. Anything that is not a full, valid array is rejected."""
    if not json_text:
        raise ExtractionFailure(
            ExtractionFailure.MALFORMED_MODEL_OUTPUT, "Gemini returned no menu data"
        )
    try:
        return DISH_RECORDS.validate_json(json_text)
    except ValidationError as e:
        logger.error("Gemini menu output failed schema validation: %s", e.errors()[:3])
        raise ExtractionFailure(
            ExtractionFailure.MALFORMED_MODEL_OUTPUT, "Gemini returned malformed menu data"
        )


def records_to_items(records: List[DishRecord]) -> List[MenuItem]:
    items = []
    for record in records:
        dish = record.dish.strip()
        if not dish:
            continue
        items.append(MenuItem(
            dish=dish,
            price=record.price.strip() or None,
            description=record.description.strip() or None,
        ))
    return items


class GeminiMenuExtractor(Extractor):
    """Reads dish, price and description straight off the image with a schema-constrained Gemini call."""

    name = "gemini"

    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    def extract(self, image_bytes: bytes, language: str) -> ExtractionResult:
        prompt = MENU_READ_PROMPT.format(language=language)

        logger.info("Running %s for menu extraction (language=%s)...", self.model, language)
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_text(text=prompt),
                            types.Part.from_bytes(data=image_bytes, mime_type="image/jpeg"),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=list[DishRecord],
                    temperature=0,
                ),
            )
        except genai_errors.APIError as e:
            logger.error("gemini menu extraction failed: %s", e)
            raise ExtractionFailure(ExtractionFailure.PROVIDER_ERROR, f"Gemini API Error: {e.message or e}")

        records = parse_dish_records(response.text)
        items = records_to_items(records)
        logger.info("Successfully extracted %d items", len(items))
        return ExtractionResult(items=items)


def list_generation_models(client: genai.Client) -> List[str]:
    """Names of the models that support generateContent."""
    names = []
    for model in client.models.list():
        actions = getattr(model, "supported_actions", None) or []
        if "generateContent" in actions:
            names.append(model.name)
    return names
