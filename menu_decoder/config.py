import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from menu_decoder.menu_extraction.line_filter import MAX_ITEMS
from menu_decoder.utils.path_utils import ENV_FILE, ENV_LOCAL_FILE, SERVICE_ACCOUNT_FILE

EXTRACTOR_OCR = "ocr"
EXTRACTOR_STRUCTURED = "structured"
ILLUSTRATOR_SEARCH = "search"
ILLUSTRATOR_GENERATE = "generate"

# Values copied from .env.example that were never filled in
PLACEHOLDER_MARKER = "YOUR_"

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    if not value or PLACEHOLDER_MARKER in value:
        return default
    return value


def _env_first(*names: str) -> Optional[str]:
    for name in names:
        value = _env(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    extractor: str = EXTRACTOR_OCR
    illustrator: str = ILLUSTRATOR_SEARCH
    mock_mode: bool = False

    vision_credentials: Optional[str] = None
    google_api_key: Optional[str] = None
    search_api_key: Optional[str] = None
    search_engine_id: Optional[str] = None
    gcp_project_id: Optional[str] = None
    gcp_location: str = "global"

    gemini_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"

    max_items: int = MAX_ITEMS
    illustration_timeout: float = 30.0
    max_image_side: int = 2048
    jpeg_quality: int = 80
    max_image_bytes: int = 4 * 1024 * 1024
    max_request_bytes: int = 10 * 1024 * 1024
    frontend_url: str = "*"

    @classmethod
    def from_env(cls) -> "Settings":
        vision_credentials = _env("GOOGLE_CLOUD_VISION_CREDENTIALS")
        if vision_credentials is None and SERVICE_ACCOUNT_FILE.exists():
            vision_credentials = str(SERVICE_ACCOUNT_FILE)

        return cls(
            extractor=(_env("MENU_DECODER_EXTRACTOR", EXTRACTOR_OCR)).lower(),
            illustrator=(_env("MENU_DECODER_ILLUSTRATOR", ILLUSTRATOR_SEARCH)).lower(),
            mock_mode=(_env("MENU_DECODER_MOCK_MODE", "") or "").lower() in _TRUTHY,
            vision_credentials=vision_credentials,
            google_api_key=_env("GOOGLE_API_KEY"),
            search_api_key=_env_first("GOOGLE_CUSTOM_SEARCH_KEY", "GOOGLE_API_KEY"),
            search_engine_id=_env_first("GOOGLE_CUSTOM_SEARCH_ENGINE_ID", "SEARCH_ENGINE_ID"),
            gcp_project_id=_env("GOOGLE_CLOUD_PROJECT"),
            gcp_location=_env("GOOGLE_CLOUD_REGION", "global"),
            gemini_model=_env("GEMINI_MODEL", cls.gemini_model),
            image_model=_env("IMAGE_MODEL", cls.image_model),
            # Can only lower the cap, never raise it
            max_items=min(MAX_ITEMS, max(1, int(_env("MENU_DECODER_MAX_ITEMS", str(MAX_ITEMS))))),
            illustration_timeout=float(
                _env("MENU_DECODER_ILLUSTRATION_TIMEOUT", str(cls.illustration_timeout))
            ),
            max_image_side=int(_env("MENU_DECODER_MAX_IMAGE_SIDE", str(cls.max_image_side))),
            jpeg_quality=int(_env("MENU_DECODER_JPEG_QUALITY", str(cls.jpeg_quality))),
            max_image_bytes=int(_env("MENU_DECODER_MAX_IMAGE_BYTES", str(cls.max_image_bytes))),
            max_request_bytes=int(
                _env("MENU_DECODER_MAX_REQUEST_BYTES", str(cls.max_request_bytes))
            ),
            frontend_url=_env("FRONTEND_URL", "*"),
        )


def load_settings() -> Settings:
    """Read .env, then .env.local on top of it, then build Settings from the environment."""
    load_dotenv(ENV_FILE)
    load_dotenv(ENV_LOCAL_FILE, override=True)
    return Settings.from_env()
