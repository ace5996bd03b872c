"""Configuration for lineage flow rendering."""

import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional, Union

from ..core.errors import SQLFlowError, UnsupportedFormatError
from .validation import validate_dialect, validate_image_format

DEFAULT_FLOW_CONFIG: Dict[str, Any] = {
    # sqlglot dialect used to read column expressions
    'dialect': 'spark',
    'case_sensitive': False,
    # render nodes that are both named and cached as cache boundaries
    'cache_precedence': False,
    'image_format': None,
    'overwrite': False,
}

_ENV_KEYS = {
    'SQLFLOW_DIALECT': ('dialect', str),
    'SQLFLOW_CASE_SENSITIVE': ('case_sensitive', bool),
    'SQLFLOW_CACHE_PRECEDENCE': ('cache_precedence', bool),
    'SQLFLOW_IMAGE_FORMAT': ('image_format', str),
}


def merge_config(base_config: Dict, user_config: Dict) -> None:
    """Recursively merge user configuration into ``base_config``."""
    for key, value in user_config.items():
        if key in base_config and isinstance(base_config[key], dict) and isinstance(value, dict):
            merge_config(base_config[key], value)
        else:
            base_config[key] = value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def load_flow_config(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the effective configuration.

    Layers, lowest to highest precedence: ``DEFAULT_FLOW_CONFIG``, the JSON
    ``config_file``, ``SQLFLOW_*`` environment variables, ``overrides``.

    Raises:
        SQLFlowError: if the config file cannot be read or a value is invalid
    """
    config = copy.deepcopy(DEFAULT_FLOW_CONFIG)

    if config_file:
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                merge_config(config, json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise SQLFlowError(f"Cannot load configuration from {config_file}: {e}") from e

    for env_name, (key, kind) in _ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == '':
            continue
        config[key] = _parse_bool(raw) if kind is bool else raw

    if overrides:
        merge_config(config, {k: v for k, v in overrides.items() if v is not None})

    error = validate_dialect(config['dialect'])
    if error:
        raise SQLFlowError(error)
    if validate_image_format(config['image_format']):
        raise UnsupportedFormatError(config['image_format'])

    return config
