import requests

from menu_decoder.image_generating.base import Illustrator
from menu_decoder.image_generating.constants import CUSTOM_SEARCH_URL
from menu_decoder.logging_config import logger
from menu_decoder.schema import SEARCH_FAILED, IllustrationOutcome, MenuItem
from menu_decoder.utils.helpers import http_error_message, redact


class ImageSearchIllustrator(Illustrator):
    """First image hit from Google Programmable Search for the dish name."""

    name = "custom-search"

    def __init__(self, api_key: str, engine_id: str, timeout: float = 30):
        self.api_key = api_key
        self.engine_id = engine_id
        self.timeout = timeout

    def illustrate(self, item: MenuItem) -> IllustrationOutcome:
        params = {
            "q": item.dish,
            "cx": self.engine_id,
            "key": self.api_key,
            "searchType": "image",
            "num": 1,
        }
        try:
            resp = requests.get(CUSTOM_SEARCH_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            message = redact(http_error_message(e), [self.api_key])
            logger.error("custom-search failed for %r: %s", item.dish, message)
            return IllustrationOutcome.failure(SEARCH_FAILED, message)

        hits = data.get("items") or []
        link = hits[0].get("link") if hits else None
        if link is None:
            logger.info("custom-search found no image for %r", item.dish)
        return IllustrationOutcome.success(link)
