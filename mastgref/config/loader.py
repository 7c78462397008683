import logging
import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from mastgref.config.schema import WorkspaceConfig
from mastgref.constants import CONFIG_FILENAME
from mastgref.errors import ConfigError

logger = logging.getLogger(__name__)

_ENV_VAR = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(config: object) -> object:
    """Recursively replace ``${VAR}`` patterns with environment values.

    Unknown variables are left as written.
    """
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            return os.getenv(match.group(1), match.group(0))

        return _ENV_VAR.sub(replace_env_var, config)
    return config


def _warn_unknown_keys(model: BaseModel, path: str, config_path: Path) -> None:
    """Recursively warn about unknown keys in a model and its nested models."""
    if model.model_extra:
        logger.warning("Unknown keys in %s at %s: %s", path, config_path, list(model.model_extra.keys()))
    for field_name, field_value in model.__dict__.items():
        if isinstance(field_value, BaseModel):
            _warn_unknown_keys(field_value, f"{path}.{field_name}", config_path)


def load_config(path: Path) -> WorkspaceConfig:
    """Load and validate a ``mastgref.yml`` file.

    Missing or unreadable files give the defaults; schema violations raise
    ConfigError.
    """
    if not path.exists():
        return WorkspaceConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file %s: %s", path, e)
        return WorkspaceConfig()

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    try:
        model = WorkspaceConfig.model_validate(expand_env_vars(raw))
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e
    _warn_unknown_keys(model, "root", path)
    return model


def load_workspace_config(root: Path) -> WorkspaceConfig:
    """Load ``<root>/mastgref.yml`` after pulling ``<root>/.env`` into the environment."""
    env_path = root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return load_config(root / CONFIG_FILENAME)
