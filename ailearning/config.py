"""
Settings - Runtime configuration for AI Learning Lab.

Sources, lowest to highest precedence:
- Built-in defaults
- Optional YAML file (config.yaml in the working directory, or AILEARNING_CONFIG)
- Environment variables (a local .env file is loaded first)

Missing Azure OpenAI settings are not an error: the model client reports
itself as unconfigured and labs show an actionable message instead.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ailearning.schemas import AzureOpenAIConfig
from ailearning.utils import load_yaml

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILE = Path("config.yaml")
DEFAULT_PROGRESS_DIR = Path.home() / ".ailearning"
DEFAULT_REQUEST_TIMEOUT = 60.0

# environment variable -> (section, key)
ENV_OVERRIDES = {
    "AZURE_OPENAI_ENDPOINT": ("azure_openai", "endpoint"),
    "AZURE_OPENAI_API_KEY": ("azure_openai", "api_key"),
    "AZURE_OPENAI_DEPLOYMENT_NAME": ("azure_openai", "deployment_name"),
    "AZURE_OPENAI_API_VERSION": ("azure_openai", "api_version"),
    "AILEARNING_PROGRESS_DIR": (None, "progress_dir"),
    "AILEARNING_CLOUD_DB": (None, "cloud_db_path"),
    "AILEARNING_REQUEST_TIMEOUT": (None, "request_timeout"),
    "AILEARNING_AUTH_ENABLED": (None, "auth_enabled"),
}


class Settings(BaseModel):
    azure_openai: AzureOpenAIConfig = Field(default_factory=AzureOpenAIConfig)
    progress_dir: Path = DEFAULT_PROGRESS_DIR
    cloud_db_path: Optional[Path] = None  # durable store disabled when unset
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    auth_enabled: bool = False


def load_settings(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from defaults, an optional YAML file and the environment.

    Args:
        config_path: Explicit YAML config file. Must exist if given.
        env: Environment mapping. Defaults to os.environ after loading .env.

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If an explicit config_path doesn't exist
        pydantic.ValidationError: If a value can't be coerced
    """
    if env is None:
        load_dotenv()
        env = os.environ

    raw: dict = {}

    path = config_path
    if path is None and env.get("AILEARNING_CONFIG"):
        path = Path(env["AILEARNING_CONFIG"])
    if path is not None:
        raw = load_yaml(path)
        logger.info(f"Loaded config file: {path}")
    elif DEFAULT_CONFIG_FILE.exists():
        raw = load_yaml(DEFAULT_CONFIG_FILE)
        logger.info(f"Loaded config file: {DEFAULT_CONFIG_FILE}")

    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if section is None:
            raw[key] = value
        else:
            if not isinstance(raw.get(section), dict):
                raw[section] = {}
            raw[section][key] = value

    return Settings.model_validate(raw)
