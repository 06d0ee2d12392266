"""
Capability Mint Authority

Public service interface and configuration.
"""

from .config import ConfigurationError, ConfigurationManager, setup_logging
from .service import IssuanceAuthority

__all__ = [
    "IssuanceAuthority",
    "ConfigurationManager",
    "ConfigurationError",
    "setup_logging",
]
