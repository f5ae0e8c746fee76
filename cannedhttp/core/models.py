"""Core data models for cannedhttp."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


JSON_CONTENT_TYPE = "application/json"


class RequestMethod(str, Enum):
    """HTTP methods the mock server answers."""
    GET = "GET"
    POST = "POST"


class CannedResponse(BaseModel):
    """A pre-configured response served for a request key."""
    status_code: int = 200
    body: str = ""
    content_type: str = JSON_CONTENT_TYPE


class CapturedRequest(BaseModel):
    """Snapshot of an inbound request recorded under its key.

    The framework request object is bound to the request context and cannot
    be read once the response is sent, so everything a test may want to
    inspect is copied here.
    """
    key: str
    method: RequestMethod
    path: str
    query_string: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    data: bytes = b""
    form: dict[str, list[str]] = Field(default_factory=dict)
    file_name: Optional[str] = None
    file_content: Optional[bytes] = None
    remote_addr: Optional[str] = None
    received_at: datetime = Field(default_factory=datetime.now)

    @property
    def text(self) -> str:
        """Raw body decoded as UTF-8."""
        return self.data.decode("utf-8", errors="replace")

    def get_json(self) -> Any:
        """Parse the raw body as JSON.

        Returns:
            Decoded JSON value.
        """
        return json.loads(self.data)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup.

        Args:
            name: Header name.
            default: Value returned when the header is absent.

        Returns:
            Header value or default.
        """
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default
