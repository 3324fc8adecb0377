"""
Run reporting configuration.

- Pydantic-based settings (environment variables, .env files)
- YAML config file overlay for per-project and user-level settings
"""

from runreport.config.loader import get_config_path, load_settings
from runreport.config.settings import Settings

__all__ = [
    "Settings",
    "get_config_path",
    "load_settings",
]
