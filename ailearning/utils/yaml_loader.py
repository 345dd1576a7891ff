"""
YAML loader utility for AI Learning Lab.

Loads YAML documents used for bundled content and optional config files.
"""

from pathlib import Path
from typing import Any
import yaml


def parse_yaml(text: str, source: str = "<string>") -> dict[str, Any]:
    """
    Parse a YAML document that must contain a mapping at the top level.

    Args:
        text: YAML text
        source: Name used in error messages

    Returns:
        Parsed mapping (empty dict for an empty document)

    Raises:
        ValueError: If the document is not a mapping
        yaml.YAMLError: If YAML parsing fails
    """
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {source}, got {type(data).__name__}")
    return data


def load_yaml(file_path: Path) -> dict[str, Any]:
    """
    Load a YAML mapping from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"YAML file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return parse_yaml(f.read(), source=str(file_path))


def get_yaml_files(directory: Path) -> list[Path]:
    """List YAML files in a directory, sorted by name."""
    if not directory.exists():
        return []
    return sorted([*directory.glob("*.yaml"), *directory.glob("*.yml")])
