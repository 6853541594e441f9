from typing import Optional, Tuple
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from menu_decoder.image_generating.base import Illustrator
from menu_decoder.image_generating.constants import BLOCKING_FINISH_REASONS, PROMPT_TEMPLATE
from menu_decoder.logging_config import logger
from menu_decoder.schema import (
    CONTENT_BLOCKED,
    GENERATION_UNAVAILABLE,
    IllustrationOutcome,
    MenuItem,
)
from menu_decoder.utils.helpers import to_data_uri


def prepare_prompt(item: MenuItem) -> str:
    description_clause = f" ({item.description})" if item.description else ""
    return PROMPT_TEMPLATE.format(name=item.dish, description_clause=description_clause)


def _reason_name(reason) -> str:
    # SDK enums and plain strings both show up depending on the backend
    return getattr(reason, "name", None) or str(reason)


def first_inline_image(response) -> Optional[Tuple[bytes, str]]:
    """Returns (data, mime_type) of the first image part of the first candidate, if any."""
    candidate = response.candidates[0] if response.candidates else None
    if candidate is None or candidate.content is None:
        return None
    for part in candidate.content.parts or []:
        if part.inline_data and part.inline_data.data:
            return part.inline_data.data, part.inline_data.mime_type or "image/png"
    return None


def classify_missing_image(response) -> Tuple[str, str]:
    """
    Decides why a response carried no image: the safety filter (prompt block
    or a blocking finish reason) or the model simply not producing one.
    """
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason and not _reason_name(block_reason).endswith("UNSPECIFIED"):
        return CONTENT_BLOCKED, f"Image blocked by safety filter ({_reason_name(block_reason)})"

    candidate = response.candidates[0] if response.candidates else None
    finish_reason = getattr(candidate, "finish_reason", None)
    if finish_reason and _reason_name(finish_reason) in BLOCKING_FINISH_REASONS:
        return CONTENT_BLOCKED, f"Image blocked by safety filter ({_reason_name(finish_reason)})"

    return GENERATION_UNAVAILABLE, "Image generation unavailable for this dish"


def call_nanobanana(client: genai.Client, model: str, prompt: str):
    return client.models.generate_content(
        model=model,
        contents=[
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=prompt)],
            )
        ],
        config=types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio="1:1"),
        ),
    )


class GeminiImageIllustrator(Illustrator):
    """Generates a food photo for each dish with a Gemini image model."""

    name = "gemini-image"

    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    def illustrate(self, item: MenuItem) -> IllustrationOutcome:
        prompt = prepare_prompt(item)
        try:
            response = call_nanobanana(self.client, self.model, prompt)
        except genai_errors.APIError as e:
            logger.error("gemini-image failed for %r: %s", item.dish, e)
            return IllustrationOutcome.failure(GENERATION_UNAVAILABLE, e.message or str(e))

        image = first_inline_image(response)
        if image is None:
            kind, message = classify_missing_image(response)
            logger.warning("gemini-image returned no image for %r: %s", item.dish, message)
            return IllustrationOutcome.failure(kind, message)

        data, mime_type = image
        return IllustrationOutcome.success(to_data_uri(data, mime_type))
