from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource
from pydantic import AliasChoices, Field
from typing import Tuple, Type
from pathlib import Path

"""
Manages application settings using Pydantic Settings.

This module defines the `Settings` class, which loads configuration from environment variables,
.env files, and a YAML configuration file (`config.yaml` at the project root).
It provides a single `settings` instance for easy access to configuration values throughout the application.
"""

class Settings(BaseSettings):
    """
    Application settings model.

    Defines all configurable parameters for the issuer service, their default values, and validation rules.
    Settings are loaded from multiple sources with a defined priority (see `settings_customise_sources`).
    """
    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind the FastAPI server to.")
    port: int = Field(default=3000, description="Port to bind the FastAPI server to.")
    reload: bool = Field(default=False, description="Enable auto-reload for the FastAPI server (for development). Uvicorn's --reload flag.")

    # Application metadata
    app_name: str = Field(default="didvc", description="Application name, used for logging and the API title.")

    # Operational settings
    debug: bool = Field(default=False, description="Enable debug mode. This might affect logging verbosity and FastAPI debug features.")
    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field(
        default="json",
        description="Log format. Supported values: 'json' for structured JSON logs, 'text' for plain text logs."
    )

    # Identity settings
    base_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("base_url", "DIDVC_BASE_URL", "BASE_URL"),
        description="Public base address of the service. The did:web identifier is derived from it.",
    )
    key_dir: Path = Field(
        default=Path("./keys"),
        validation_alias=AliasChoices("key_dir", "DIDVC_KEY_DIR", "KEY_DIR"),
        description="Directory holding private.pem and public.pem. Relative paths resolve against the working directory.",
    )

    # Credential store settings
    database_url: str = Field(
        default="sqlite://",
        description="Credential store URL. The default is an in-memory SQLite database that lives as long as the process."
    )

    model_config = SettingsConfigDict(
        env_prefix="DIDVC_", # Prefix for environment variables (e.g., DIDVC_HOST, DIDVC_PORT)
        extra="ignore",    # Ignore extra fields from sources rather than raising an error
        validate_default=True, # Validate default values as well
        populate_by_name=True,
        # config.yaml lives at the project root, one level above the didvc package
        yaml_file=Path(__file__).resolve().parent.parent / "config.yaml"
    )


    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customizes the priority of settings sources for Pydantic.

        The order defines the override precedence (earlier sources win):
        1. `init_settings`: Values provided during `Settings` class initialization (highest priority).
        2. `env_settings`: Environment variables (e.g., `DIDVC_PORT`, `BASE_URL`).
        3. `dotenv_settings`: Variables loaded from a `.env` file.
        4. `YamlConfigSettingsSource`: Variables loaded from the `config.yaml` file specified in `model_config`.
        5. `file_secret_settings`: Settings loaded from files typically used for secrets (e.g., Docker secrets).

        Returns:
            A tuple of settings sources in the desired order of precedence.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# Instantiate a single shared Settings object for use across the application
settings = Settings()
