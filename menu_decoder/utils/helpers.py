import base64
from typing import Iterable, Optional

HIDDEN_KEY = "HIDDEN_KEY"


def redact(message: str, secrets: Iterable[Optional[str]]) -> str:
    """Replace every configured secret in a provider message before it is logged or returned."""
    for secret in secrets:
        if secret:
            message = message.replace(secret, HIDDEN_KEY)
    return message


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    """Encodes raw image bytes as a data URI the frontend can put straight into <img src>."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"


def http_error_message(error) -> str:
    """Best human-readable message from a requests error: the Google error body when there is one."""
    response = getattr(error, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            # API errors nest {"message": ...}; OAuth errors are a bare code string
            error_body = body.get("error")
            message = error_body.get("message") if isinstance(error_body, dict) else error_body
            if message and isinstance(message, str):
                return message
    return str(error)
