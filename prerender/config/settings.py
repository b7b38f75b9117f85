"""
Application Settings
===================

Server, queue, static-file and renderer settings using Pydantic Settings.
Values come from keyword overrides, ``PRERENDER_*`` environment variables,
an optional ``.env`` file and, through ``load_settings``, a YAML config file.
"""

from typing import Optional, List, Union, Dict, Any
from pathlib import Path
import json
import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml


DEFAULT_FILES_MATCH = (
    r"\.(?:css|js|jpg|jpeg|png|gif|ico|svg|woff|woff2|ttf|eot|swf|map|txt|xml|json)(?:\?|$)"
)

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


class ConfigurationError(Exception):
    """Exception raised when a configuration file cannot be loaded."""

    pass


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Prerender Server", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Base server port")
    process_num: int = Field(
        default=0, ge=0, description="Process index, added to the port and the log tag"
    )
    graceful_exit: bool = Field(
        default=True, description="Drain open connections before exiting on renderer shutdown"
    )
    graceful_exit_timeout: Optional[int] = Field(
        default=30,
        description="Seconds to wait for open connections when draining, None waits forever",
    )

    # Queue Configuration
    max_queue_size: int = Field(default=50, ge=0, description="Maximum pending render jobs")

    # Static File Configuration
    files_match: str = Field(
        default=DEFAULT_FILES_MATCH, description="Regex identifying static file requests"
    )
    serve_files: bool = Field(default=True, description="Proxy static files from app_url")
    serve_files_log: bool = Field(default=True, description="Log static file requests")
    app_url: str = Field(default="http://localhost:4200/", description="Application base URL")
    static_timeout: int = Field(
        default=30, description="Static file upstream timeout in seconds, 0 to disable"
    )

    # Renderer Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    render_timeout: int = Field(default=30000, description="Page render timeout in milliseconds")
    render_wait_until: str = Field(
        default="networkidle", description="Playwright load state awaited on navigation"
    )
    render_ready_check: Optional[str] = Field(
        default=None, description="JavaScript expression that is truthy once the page is ready"
    )
    render_ready_hook: Optional[str] = Field(
        default=None, description="Global function the application calls when it is ready"
    )
    render_user_agent: Optional[str] = Field(default=None, description="Renderer user agent")
    viewport_width: int = Field(default=1280, description="Renderer viewport width")
    viewport_height: int = Field(default=800, description="Renderer viewport height")
    max_renders_per_context: int = Field(
        default=0, ge=0, description="Recycle the browser context after N renders, 0 to disable"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_categories: List[str] = Field(
        default=["server", "error", "renderer"], description="Enabled log categories"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("files_match")
    @classmethod
    def validate_files_match(cls, v: str) -> str:
        """Ensure the static file pattern compiles."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid files_match pattern: {e}")
        return v

    @field_validator("app_url")
    @classmethod
    def validate_app_url(cls, v: str) -> str:
        """Static paths are appended without their leading slash."""
        return v if v.endswith("/") else v + "/"

    @field_validator("render_wait_until")
    @classmethod
    def validate_wait_until(cls, v: str) -> str:
        allowed = {"load", "domcontentloaded", "networkidle", "commit"}
        if v not in allowed:
            raise ValueError(f"render_wait_until must be one of: {allowed}")
        return v

    @field_validator("render_ready_hook")
    @classmethod
    def validate_ready_hook(cls, v: Optional[str]) -> Optional[str]:
        """The hook is installed as a property of ``window``."""
        if v is not None and not _JS_IDENTIFIER.match(v):
            raise ValueError(f"render_ready_hook must be a JavaScript identifier: {v!r}")
        return v

    @field_validator("log_categories", mode="before")
    @classmethod
    def parse_log_categories(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse log categories from string or list."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [category.strip() for category in v.split(",") if category.strip()]
        return v

    @property
    def listen_port(self) -> int:
        """Port this process instance binds to."""
        return self.port + self.process_num

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="PRERENDER_",
        extra="ignore",
    )


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def normalize_config_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert camelCase config keys (``maxQueueSize``) to field names."""
    return {_CAMEL_BOUNDARY.sub(r"_\1", key).lower(): value for key, value in data.items()}


def read_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML config file into a dict of settings fields."""
    path = Path(config_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return normalize_config_keys(data)


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def load_settings(config_path: Optional[Union[str, Path]] = None, **overrides: Any) -> Settings:
    """
    Build and install the global settings.

    Args:
        config_path: Optional YAML file, keys in camelCase or snake_case
        **overrides: Explicit values, ``None`` values are ignored

    Returns:
        The new global settings instance
    """
    global settings
    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(read_config_file(config_path))
    values.update({key: value for key, value in overrides.items() if value is not None})
    settings = Settings(**values)
    return settings
