"""Configuration management package."""

from .settings import Config, load_config, save_config, validate_upload_url
from .defaults import DEFAULT_CONFIG

__all__ = ["Config", "load_config", "save_config", "validate_upload_url", "DEFAULT_CONFIG"]
