from pathlib import Path

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x400?text={text}"

# finish_reason values that mean the safety system stopped the image
BLOCKING_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "IMAGE_PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
    "RECITATION",
}

with open(Path(__file__).resolve().parent / "prompt_template.txt", "r") as file:
    PROMPT_TEMPLATE = file.read().strip()
