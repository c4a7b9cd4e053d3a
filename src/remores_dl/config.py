"""Settings loaded from environment variables.

For local use, put the variables in a .env file in the directory the
command is run from.
"""

from typing import Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError

DEFAULT_CANVAS_API_URL = "https://canvas.kth.se/api/v1"
DEFAULT_REMORES_URL = "https://www.csc.kth.se/cgi-bin/bokning/remores1.4/server/decoder"
DEFAULT_EMAIL_DOMAIN = "kth.se"


class Settings(BaseSettings):
    """Runtime settings for both clients and the CLI."""

    canvas_api_token: Optional[str] = Field(
        default=None,
        description="Canvas access token, from https://canvas.kth.se/profile/settings",
    )
    canvas_api_url: str = Field(
        default=DEFAULT_CANVAS_API_URL,
        description="Canvas REST API root",
    )
    remores_url: str = Field(
        default=DEFAULT_REMORES_URL,
        description="REMORES decoder endpoint",
    )
    email_domain: str = Field(
        default=DEFAULT_EMAIL_DOMAIN,
        validation_alias=AliasChoices("INSTITUTION_EMAIL_DOMAIN", "email_domain"),
        description="Mail domain of institutional addresses",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout in seconds",
    )
    per_page: int = Field(
        default=100,
        gt=0,
        validation_alias=AliasChoices("CANVAS_PER_PAGE", "per_page"),
        description="Page size requested from Canvas",
    )
    match_threshold: float = Field(
        default=0.8,
        ge=0,
        le=1,
        description="Name similarity a fuzzy match must exceed",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_ignore_empty": True,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment and .env.

        Raises:
            ConfigError: If a variable fails validation
        """
        try:
            return cls()
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigError(f"Invalid configuration: {problems}") from e

    def require_token(self) -> str:
        """Return the Canvas token or fail with a helpful message."""
        if not self.canvas_api_token:
            raise ConfigError(
                "Missing Canvas API token. Set CANVAS_API_TOKEN or pass "
                "--canvas-api-token (get one from https://canvas.kth.se/profile/settings)."
            )
        return self.canvas_api_token
