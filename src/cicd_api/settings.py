"""Settings for the pipelines API."""

from typing import Dict
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the pipelines API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from environment variables and, for local development, a .env file.

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (jwt_secret, domain_db_connection_string).
    """

    # Session tokens
    jwt_secret: str
    """Shared secret used to verify HS256 signed session tokens (required)."""

    jwt_algorithm: str = "HS256"
    """Signing algorithm expected on session tokens."""

    jwt_audience: Optional[str] = None
    """Expected `aud` claim. Audience is not verified when unset."""

    # Pipeline and user stores
    domain_db_connection_string: Optional[str] = None
    """PostgreSQL connection string for the pipeline/user database.
    When unset the stores are not initialised and must be injected (tests)."""

    db_pool_min_size: int = 2
    """Minimum connections kept in the asyncpg pool."""

    db_pool_max_size: int = 10
    """Maximum connections in the asyncpg pool."""

    # Source control
    scm_contexts: Dict[str, str] = {"github:github.com": "https://api.github.com"}
    """Mapping of scm context to the REST API base URL of that SCM (JSON in the environment)."""

    scm_request_timeout: float = 10.0
    """Timeout in seconds for permission lookups against the SCM."""

    # Logging
    log_level: str = "INFO"
    """Minimum level for the stdout log sink."""

    log_serialize: bool = False
    """Emit stdout logs as JSON documents instead of the colourised text format."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )
