"""
Config Module

YAML run configuration loading and validation.
"""

from .loader import ConfigLoader, OutputConfig, RunConfig, SessionConfig

__all__ = [
    "ConfigLoader",
    "RunConfig",
    "SessionConfig",
    "OutputConfig",
]
