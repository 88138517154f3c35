"""
Vellum Core Module
==================

Application-wide configuration.
"""

from vellum.core.config import Config, get_config

__all__ = [
    "Config",
    "get_config",
]
