import json
from typing import Optional

from google import genai
from google.genai import types
from google.auth.exceptions import GoogleAuthError
from google.cloud import vision
from google.oauth2 import service_account

from menu_decoder.config import Settings
from menu_decoder.logging_config import logger


def build_vision_client(credentials: Optional[str]) -> Optional[vision.ImageAnnotatorClient]:
    """
    Creates the Cloud Vision client from inline service-account JSON or a key-file path.
    Returns None when there is nothing usable, leaving the REST fallback to the API key.
    """
    if not credentials:
        return None
    try:
        if credentials.lstrip().startswith("{"):
            info = json.loads(credentials)
            creds = service_account.Credentials.from_service_account_info(info)
            return vision.ImageAnnotatorClient(credentials=creds)
        return vision.ImageAnnotatorClient.from_service_account_file(credentials)
    except (ValueError, OSError, GoogleAuthError) as e:
        logger.warning("Could not build Vision client from GOOGLE_CLOUD_VISION_CREDENTIALS: %s", e)
        return None


def build_genai_client(settings: Settings) -> Optional[genai.Client]:
    """
    One Gemini client per process, shared read-only by every request. Its HTTP
    timeout matches the illustration deadline so abandoned calls do not linger.
    """
    http_options = types.HttpOptions(timeout=int(settings.illustration_timeout * 1000))
    if settings.google_api_key:
        return genai.Client(api_key=settings.google_api_key, http_options=http_options)
    if settings.gcp_project_id:
        return genai.Client(
            vertexai=True,
            project=settings.gcp_project_id,
            location=settings.gcp_location,
            http_options=http_options,
        )
    return None
