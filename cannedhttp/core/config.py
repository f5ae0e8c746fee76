"""Configuration management for cannedhttp."""

from pydantic import BaseModel, Field


class MockServerConfig(BaseModel):
    """Configuration for the mock server listener."""
    host: str = "127.0.0.1"
    port: int = Field(default=0, ge=0, le=65535)  # 0 picks an ephemeral port
    threaded: bool = True
    shutdown_timeout: float = Field(default=5.0, gt=0)

    @property
    def scheme(self) -> str:
        """URL scheme served by the listener."""
        return "http"
