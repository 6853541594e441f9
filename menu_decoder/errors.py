class MenuDecoderError(Exception):
    """Base error; carries the HTTP status and the single message shown to the client."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(MenuDecoderError):
    status_code = 400


class MethodNotAllowed(MenuDecoderError):
    status_code = 405

    def __init__(self, message: str = "Method Not Allowed"):
        super().__init__(message)


class PayloadTooLarge(MenuDecoderError):
    status_code = 413

    def __init__(self, message: str = "Image payload too large"):
        super().__init__(message)


class ConfigurationMissing(MenuDecoderError):
    status_code = 500


class ExtractionFailure(MenuDecoderError):
    """The OCR or model call failed, or returned data that could not be parsed."""

    status_code = 500

    NO_CREDENTIALS = "no_credentials"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_MODEL_OUTPUT = "malformed_model_output"

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class InternalFault(MenuDecoderError):
    status_code = 500

    def __init__(self, message: str = "Processing failed"):
        super().__init__(message)
