"""AI Learning Lab utilities."""

from .yaml_loader import parse_yaml, load_yaml, get_yaml_files

__all__ = ["parse_yaml", "load_yaml", "get_yaml_files"]
