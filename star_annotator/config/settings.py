"""Configuration dataclass and loading utilities.

Provides a strongly-typed configuration object that is injected into
services instead of a global module-level dictionary. Precedence is
defaults, then ``config.json``, then environment variables.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional
import json, os, logging, math
from urllib.parse import urlparse

from .defaults import DEFAULT_CONFIG
from .env_config import load_environment_config
from ..core.constants import MIN_CONNECT_TIMEOUT, MIN_WRITE_TIMEOUT, MIN_READ_TIMEOUT
from ..core.exceptions import ConfigError


@dataclass(slots=True)
class Config:
    # Annotation service endpoint
    upload_url: str = DEFAULT_CONFIG["upload_url"]
    connect_timeout: float = DEFAULT_CONFIG["connect_timeout"]
    write_timeout: float = DEFAULT_CONFIG["write_timeout"]
    read_timeout: float = DEFAULT_CONFIG["read_timeout"]

    # Local files
    temp_dir: str = DEFAULT_CONFIG["temp_dir"]
    cleanup_temp_files: bool = DEFAULT_CONFIG["cleanup_temp_files"]
    output_dir: str = DEFAULT_CONFIG["output_dir"]

    # Rendering
    label_font_path: str = DEFAULT_CONFIG["label_font_path"]

    # Camera capture
    camera_index: int = DEFAULT_CONFIG["camera_index"]
    camera_width: int = DEFAULT_CONFIG["camera_width"]
    camera_height: int = DEFAULT_CONFIG["camera_height"]
    camera_warmup_frames: int = DEFAULT_CONFIG["camera_warmup_frames"]

    # UI
    window_width: int = DEFAULT_CONFIG["window_width"]
    window_height: int = DEFAULT_CONFIG["window_height"]

    # Debug and logging
    debug: bool = DEFAULT_CONFIG["debug"]
    log_level: str = DEFAULT_CONFIG["log_level"]
    log_dir: str = DEFAULT_CONFIG["log_dir"]
    enable_file_logging: bool = DEFAULT_CONFIG["enable_file_logging"]
    structured_logging: bool = DEFAULT_CONFIG["structured_logging"]

    # Arbitrary extra values retained for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        # merge extra keys at top-level for saving
        extra = d.pop("extra", {})
        d.update(extra)
        return d

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def load_config(path: str = "config.json", env_file: Optional[str] = None) -> Config:
    """Load configuration from a JSON file with environment overrides.

    Args:
        path: Path to config.json file
        env_file: Path to .env file (optional)

    Returns:
        Config: Loaded and validated configuration. Unreadable or malformed
        files fall back to defaults.
    """
    data: Dict[str, Any] = {}

    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded_data = json.load(f)
            if loaded_data is None:
                logging.warning(f"Configuration file '{path}' is empty, using defaults")
            elif not isinstance(loaded_data, dict):
                logging.error(f"Configuration file '{path}' does not contain a valid JSON object, using defaults")
            else:
                data = loaded_data
                logging.info(f"Successfully loaded configuration from '{path}'")
        except json.JSONDecodeError as e:
            logging.error(f"Failed to parse JSON configuration file '{path}': {e}. Using defaults.")
        except PermissionError:
            logging.error(f"Permission denied reading configuration file '{path}'. Using defaults.")
        except OSError as e:
            logging.error(f"Error reading configuration file '{path}': {e}. Using defaults.")
    else:
        logging.info(f"Configuration file '{path}' does not exist. Using defaults.")

    merged = {**DEFAULT_CONFIG, **data, **load_environment_config(env_file)}

    _validate_types(merged)
    _validate_upload_url(merged)
    _validate_timeouts(merged)

    # capture unknown keys
    extra = {k: v for k, v in merged.items() if k not in Config.__annotations__}
    if extra:
        logging.info(f"Found extra configuration keys: {list(extra.keys())}")

    return Config(**{k: merged[k] for k in Config.__annotations__ if k != 'extra'}, extra=extra)


def save_config(cfg: Config, path: str = "config.json") -> None:
    """Save configuration to JSON file, keeping a backup until the write succeeds."""
    backup_path = f"{path}.backup"
    try:
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as src, open(backup_path, "w", encoding="utf-8") as dst:
                    dst.write(src.read())
                logging.debug(f"Created backup configuration at '{backup_path}'")
            except OSError as e:
                logging.warning(f"Failed to create configuration backup: {e}")

        with open(path, "w", encoding="utf-8") as f:
            json.dump(cfg.to_dict(), f, indent=2, ensure_ascii=False)
        logging.info(f"Configuration saved successfully to '{path}'")

        if os.path.exists(backup_path):
            os.remove(backup_path)
    except PermissionError:
        logging.error(f"Permission denied writing configuration file '{path}'")
    except OSError as e:
        logging.error(f"OS error saving configuration file '{path}': {e}")


def _validate_types(config_dict: Dict[str, Any]) -> None:
    """Replace values whose type does not match the default's type."""
    for key, default in DEFAULT_CONFIG.items():
        value = config_dict.get(key)
        if isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, float):
            ok = isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
            if ok:
                config_dict[key] = float(value)
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = isinstance(value, type(default))
        if not ok:
            logging.warning(f"Setting '{key}' has invalid value {value!r}. Using default.")
            config_dict[key] = default


def validate_upload_url(url: str) -> str:
    """Return ``url`` if it is an absolute http(s) URL.

    Raises:
        ConfigError: for any other value.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Upload URL '{url}' is not an http(s) URL")
    return url


def _validate_upload_url(config_dict: Dict[str, Any]) -> None:
    try:
        validate_upload_url(config_dict["upload_url"])
    except ConfigError as e:
        logging.warning(f"{e}. Using default.")
        config_dict["upload_url"] = DEFAULT_CONFIG["upload_url"]


def _validate_timeouts(config_dict: Dict[str, Any]) -> None:
    """Raise timeouts to their floors; the read timeout must dominate."""
    floors = {
        "connect_timeout": MIN_CONNECT_TIMEOUT,
        "write_timeout": MIN_WRITE_TIMEOUT,
        "read_timeout": MIN_READ_TIMEOUT,
    }
    for key, floor in floors.items():
        if config_dict[key] < floor:
            logging.warning(f"Setting '{key}'={config_dict[key]}s is below the minimum of {floor}s. Using {floor}s.")
            config_dict[key] = floor

    dominant = max(config_dict["connect_timeout"], config_dict["write_timeout"])
    if config_dict["read_timeout"] <= dominant:
        logging.warning(
            f"Read timeout {config_dict['read_timeout']}s must exceed connect/write timeouts; "
            f"using {dominant * 10}s."
        )
        config_dict["read_timeout"] = dominant * 10
