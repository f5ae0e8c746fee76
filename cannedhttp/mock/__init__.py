"""Mock HTTP server serving canned responses."""

from .server import MockServer, Server
from .keys import get_request_key, post_request_key

__all__ = ["MockServer", "Server", "get_request_key", "post_request_key"]
