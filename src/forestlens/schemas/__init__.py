"""Pydantic configuration schemas for Forestlens.

All configuration validation, coercion, and normalization happens at schema
validation time via Pydantic. Runtime code only ever sees InternalConfig.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from forestlens.schemas.resolve import resolve_config
from forestlens.schemas.internal import InternalConfig
from forestlens.schemas.param import ParamConfig
from forestlens.schemas.user import UserConfig
from forestlens.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
