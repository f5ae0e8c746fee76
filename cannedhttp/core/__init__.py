"""Core data models, configuration and errors for cannedhttp."""

from .models import (
    JSON_CONTENT_TYPE,
    CannedResponse,
    CapturedRequest,
    RequestMethod,
)
from .config import MockServerConfig
from .errors import MockServerError, MultipartFileError, ServerStateError

__all__ = [
    "JSON_CONTENT_TYPE",
    "CannedResponse",
    "CapturedRequest",
    "RequestMethod",
    "MockServerConfig",
    "MockServerError",
    "MultipartFileError",
    "ServerStateError",
]
