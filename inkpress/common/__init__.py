# Common utilities and shared modules
"""
Shared components used by every Inkpress package:
- Data models (Pydantic schemas)
- Error taxonomy
- Logging configuration
- Project configuration and provider credentials
"""

from .config import PROJECT_ROOT, ProviderCredentials, Settings, settings
from .errors import (
    ConfigurationError,
    PipelineError,
    ProviderCallError,
    ProviderParseError,
    ValidationError,
)
from .logging import setup_logging

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
    "ProviderCredentials",
    "setup_logging",
    "PipelineError",
    "ConfigurationError",
    "ValidationError",
    "ProviderCallError",
    "ProviderParseError",
]
