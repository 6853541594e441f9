from abc import ABC, abstractmethod
from urllib.parse import quote

from menu_decoder.image_generating.constants import PLACEHOLDER_IMAGE_URL
from menu_decoder.schema import IllustrationOutcome, MenuItem


class Illustrator(ABC):
    """Finds or generates one picture for one dish."""

    name = "illustrator"

    @abstractmethod
    def illustrate(self, item: MenuItem) -> IllustrationOutcome:
        """Must not raise for provider failures; return IllustrationOutcome.failure instead."""


def placeholder_image_url(dish: str) -> str:
    return PLACEHOLDER_IMAGE_URL.format(text=quote(dish))


class PlaceholderIllustrator(Illustrator):
    """Mock mode: a deterministic stand-in image per dish, no network."""

    name = "placeholder"

    def illustrate(self, item: MenuItem) -> IllustrationOutcome:
        return IllustrationOutcome.success(placeholder_image_url(item.dish))
