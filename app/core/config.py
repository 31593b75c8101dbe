"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins (the dashboard front end is deployed separately)
DEFAULT_CORS_ORIGINS = ["*"]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        environment: Deployment mode. Anything other than "production" exposes
            internal error details in 5xx responses.
        log_level: Level of the `app.*` loggers (DEBUG, INFO, ...).
        db_host: MySQL host.
        db_user: MySQL user.
        db_password: MySQL password.
        db_name: Default schema used by the connection pool.
        db_port: MySQL port.
        db_pool_size: Maximum number of pooled connections.
        db_connect_retries: Attempts made to create the pool at startup.
        jwt_secret: Secret used to sign login tokens.
        jwt_algorithm: JWT signing algorithm.
        jwt_expires_hours: Lifetime of issued tokens.
        cors_allowed_origins: List of allowed origins for CORS.
        image_fetch_timeout: Timeout in seconds for each remote image download.
        image_user_agent: User-Agent header sent when downloading images.
        image_max_width: Maximum width (px) of an embedded worksheet image.
        image_max_height: Maximum height (px) of an embedded worksheet image.
        image_fetch_concurrency: Number of images normalized at the same time per export.
        document_creator: Author written into the exported DOCX core properties.
    """

    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")

    db_host: str = Field(default="localhost")
    db_user: str = Field(default="statisticuser")
    db_password: str = Field(default="")
    db_name: str = Field(default="pulley")
    db_port: int = Field(default=3306)
    db_pool_size: int = Field(default=10)
    db_connect_retries: int = Field(default=3)

    jwt_secret: str = Field(default="your-secret-key")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_hours: int = Field(default=24)

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),  # Use a copy of the default list
    )

    image_fetch_timeout: float = Field(default=15.0, description="Remote image download timeout in seconds.")
    image_user_agent: str = Field(default="Mozilla/5.0")
    image_max_width: int = Field(default=520)
    image_max_height: int = Field(default=680)
    image_fetch_concurrency: int = Field(default=4)
    document_creator: str = Field(default="PulleyCampus")

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of strings representing allowed CORS origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)


settings = Settings()
