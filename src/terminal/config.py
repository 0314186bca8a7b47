"""
Runtime configuration for the dev terminal, read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

ABORT_LEAVE_BUILDING = "leave_building"
ABORT_MARK_FAILED = "mark_failed"
ABORT_POLICIES = (ABORT_LEAVE_BUILDING, ABORT_MARK_FAILED)

ANALYZER_BACKENDS = ("rules", "claude")


@dataclass
class Config:
    """Settings shared by the service and the pipeline."""

    database_url: Optional[str] = None
    analyzer_backend: str = "rules"
    anthropic_api_key: Optional[str] = None
    analyzer_model: str = "claude-3-sonnet-20240229"
    abort_policy: str = ABORT_LEAVE_BUILDING
    status_recent_limit: int = 20
    status_artifact_limit: int = 10
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    def __post_init__(self):
        if self.abort_policy not in ABORT_POLICIES:
            raise ValueError(
                f"ABORT_POLICY must be one of {', '.join(ABORT_POLICIES)}, got {self.abort_policy!r}"
            )
        if self.analyzer_backend not in ANALYZER_BACKENDS:
            raise ValueError(
                f"ANALYZER_BACKEND must be one of {', '.join(ANALYZER_BACKENDS)}, got {self.analyzer_backend!r}"
            )

    @classmethod
    def from_env(cls) -> "Config":
        """Build a Config from environment variables (and .env, if present)."""
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            analyzer_backend=os.getenv("ANALYZER_BACKEND", "rules").lower(),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            analyzer_model=os.getenv("ANALYZER_MODEL", "claude-3-sonnet-20240229"),
            abort_policy=os.getenv("ABORT_POLICY", ABORT_LEAVE_BUILDING).lower(),
            status_recent_limit=int(os.getenv("STATUS_RECENT_LIMIT", "20")),
            status_artifact_limit=int(os.getenv("STATUS_ARTIFACT_LIMIT", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )
