"""cannedhttp - Mock HTTP server for stubbing external dependencies in tests.

Modules:
    core          - Data models, configuration and errors
    mock          - The mock server and request key construction
    pytest_plugin - Fixtures exposing a shared, per-test reset server
"""

__version__ = "0.1.0"
__author__ = "cannedhttp Team"

from .core.config import MockServerConfig
from .core.errors import MockServerError, MultipartFileError, ServerStateError
from .core.models import CannedResponse, CapturedRequest, RequestMethod
from .mock.keys import get_request_key, post_request_key
from .mock.server import MockServer, Server

__all__ = [
    # Config
    "MockServerConfig",
    # Errors
    "MockServerError",
    "MultipartFileError",
    "ServerStateError",
    # Models
    "CannedResponse",
    "CapturedRequest",
    "RequestMethod",
    # Keys
    "get_request_key",
    "post_request_key",
    # Server
    "Server",
    "MockServer",
]
