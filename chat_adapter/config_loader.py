"""YAML configuration loading with ``${VAR}`` substitution.

Placeholders are filled from the ``.env`` file paired with the config file
first, then from the process environment. The ``.env`` file is read with
python-dotenv and never written into ``os.environ``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("chat-adapter")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
CONFIG_PATH_ENV = "CHAT_ADAPTER_CONFIG"

# ${NAME} or $NAME
_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Anchor relative paths at the project root."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path, env_path: Optional[str] = None) -> Path:
    """Pick the ``.env`` file paired with a config file.

    ``config_<name>.yaml`` pairs with ``.env_<name>``; anything else with a
    sibling ``.env``.
    """
    if env_path:
        return resolve_config_path(env_path)
    stem = config_path.stem
    if stem.startswith("config_"):
        return config_path.with_name(".env_" + stem.removeprefix("config_"))
    return config_path.with_name(".env")


def _read_env_file(env_file: Path) -> dict[str, str]:
    if not env_file.exists():
        return {}
    logger.info(f"Reading substitution values from {env_file}")
    return {key: value for key, value in dotenv_values(env_file).items() if value is not None}


def load_config(
    path: Optional[str] = None,
    env_path: Optional[str] = None,
    substitute_env: bool = True,
    missing_ok: bool = False,
) -> dict:
    """Read the adapter config file.

    Args:
        path: Config file path; falls back to CHAT_ADAPTER_CONFIG, then
            configs/config_default.yaml under the project root.
        env_path: Explicit ``.env`` file for substitution values.
        substitute_env: Fill ``${VAR}`` / ``$VAR`` placeholders.
        missing_ok: Return ``{}`` for a missing file instead of raising.

    Raises:
        RuntimeError: The file is missing (and ``missing_ok`` is false) or
            does not hold a mapping.
    """
    config_path = resolve_config_path(path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        if missing_ok:
            logger.warning(f"No config file at {config_path}; using built-in defaults")
            return {}
        raise RuntimeError(f"Config file not found: {config_path}")

    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Config file must contain a mapping: {config_path}")

    if substitute_env:
        data = _substitute_env_vars(data, _read_env_file(resolve_env_path(config_path, env_path)))

    logger.info(f"Loaded configuration from {config_path}")
    return data


def _substitute_env_vars(obj: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Fill placeholders in every string of a nested dict/list structure.

    A placeholder whose variable is unset in both sources is left as is.
    """
    values = env_values or {}

    def lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        value = values.get(name, os.environ.get(name))
        if value is None:
            logger.warning(f"Config placeholder '{match.group(0)}' has no value; keeping it")
            return match.group(0)
        return value

    if isinstance(obj, str):
        return _ENV_PATTERN.sub(lookup, obj)
    if isinstance(obj, list):
        return [_substitute_env_vars(item, values) for item in obj]
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(item, values) for key, item in obj.items()}
    return obj
