"""Environment variable configuration.

Values come from a ``.env`` file (if present) and the process environment,
the latter taking precedence. Only non-empty, well-formed values are
returned; everything else is logged and ignored so the file/default value
stays in effect.
"""
import os
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "STAR_ANNOTATOR_"

# env suffix -> (config key, converter)
ENV_KEYS = {
    "UPLOAD_URL": ("upload_url", str),
    "CONNECT_TIMEOUT": ("connect_timeout", float),
    "WRITE_TIMEOUT": ("write_timeout", float),
    "READ_TIMEOUT": ("read_timeout", float),
    "TEMP_DIR": ("temp_dir", str),
    "LOG_LEVEL": ("log_level", str),
    "CAMERA_INDEX": ("camera_index", int),
    "DEBUG": ("debug", "bool"),
}


def load_env_file(env_path: Optional[str] = None) -> Dict[str, str]:
    """Load KEY=VALUE pairs from a .env file.

    Args:
        env_path: Path to .env file. Defaults to .env in current directory.

    Returns:
        Dict of variables found in the file (empty if the file is missing).
    """
    env_path = env_path or ".env"
    env_vars: Dict[str, str] = {}

    if not os.path.isfile(env_path):
        return env_vars

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line_num, raw in enumerate(f, 1):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    logger.warning(f"Invalid line format in {env_path}:{line_num}: {line}")
                    continue
                key, value = line.split("=", 1)
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                    value = value[1:-1]
                env_vars[key.strip()] = value
        logger.info(f"Loaded {len(env_vars)} variables from {env_path}")
    except OSError as e:
        logger.error(f"Error reading environment file {env_path}: {e}")

    return env_vars


def _convert(value: str, converter: Any) -> Any:
    if converter == "bool":
        return value.strip().lower() in ("true", "1", "yes", "on")
    return converter(value)


def load_environment_config(env_file_path: Optional[str] = None) -> Dict[str, Any]:
    """Collect configuration overrides from the environment.

    Args:
        env_file_path: Path to .env file

    Returns:
        Mapping of config keys to converted override values.
    """
    file_vars = load_env_file(env_file_path)
    overrides: Dict[str, Any] = {}

    for suffix, (key, converter) in ENV_KEYS.items():
        name = ENV_PREFIX + suffix
        raw = os.environ.get(name, file_vars.get(name))
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[key] = _convert(raw.strip(), converter)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {name}: {raw!r}")

    if overrides:
        logger.debug(f"Environment overrides applied for: {sorted(overrides)}")
    return overrides
