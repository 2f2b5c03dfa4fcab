"""
Configuration model for the speaker control layer
"""

import os
import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1400
DEFAULT_USER_AGENT = "sonos-speaker/1.0"


class SpeakerConfig(BaseModel):
    """Connection and runtime settings shared by transport handles"""
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Device HTTP control port")
    timeout_s: float = Field(default=5.0, gt=0, le=60.0, description="Timeout for every network call")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["text", "json"] = Field(default="text", description="Log format (text|json)")
    cli_retries: int = Field(default=0, ge=0, le=10, description="Retries the CLI applies on transport errors")

    @classmethod
    def from_env(cls) -> "SpeakerConfig":
        """Create configuration from environment variables"""
        return cls(
            port=int(os.getenv("SONOS_PORT", str(DEFAULT_PORT))),
            timeout_s=float(os.getenv("SONOS_TIMEOUT_S", "5.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
            cli_retries=int(os.getenv("SONOS_CLI_RETRIES", "0")),
        )

    def base_url(self, address: str) -> str:
        """Root URL of the device's HTTP server"""
        return f"http://{address}:{self.port}"
