"""
YAML configuration loader with validation.
"""

import math

import yaml
from pathlib import Path
from typing import Dict, Any, Union
from dataclasses import fields, is_dataclass

from loguru import logger

from wray_agarwal.errors import ConfigurationError
from .schema import (
    CaseConfig, ChannelMeshConfig, FlowConfig, SolverControls,
    RunConfig, OutputConfig, DeltaConfig,
)


def _coerce_type(value, field_type):
    """Coerce value to the expected field type."""
    # Handle string representations of numbers (e.g., "1.5e-5")
    if field_type == float and isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    if field_type == int and isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _dict_to_dataclass(cls, data: dict, section: str = ""):
    """Convert a nested dictionary to a dataclass instance."""
    if not is_dataclass(cls):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be a mapping, got {type(data).__name__}")

    field_types = {f.name: f.type for f in fields(cls)}
    kwargs = {}

    for key, value in data.items():
        if key not in field_types:
            logger.debug(f"Ignoring unknown key '{key}' in section '{section}'")
            continue

        field_type = field_types[key]

        if is_dataclass(field_type) and isinstance(value, dict):
            kwargs[key] = _dict_to_dataclass(field_type, value, f"{section}.{key}")
        else:
            kwargs[key] = _coerce_type(value, field_type)

    return cls(**kwargs)


def _as_float(value, key: str, block: str) -> float:
    """Parse a scalar coefficient, rejecting anything that is not a finite number."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{block}: '{key}' must be a number, got {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"{block}: '{key}' must be a number, got {value!r}") from err
    if not math.isfinite(out):
        raise ConfigurationError(f"{block}: '{key}' must be finite, got {value!r}")
    return out


def parse_coeffs(cls, block: Dict[str, Any], block_name: str):
    """
    Build a coefficient dataclass from a ``<TypeName>Coeffs`` block.

    Missing entries take the published defaults. Derived entries
    (``C2ke``, ``C2kw``) are recomputed, never read.

    Raises
    ------
    ConfigurationError
        If an entry is not a finite number or a coefficient that must be
        positive is not.
    """
    if block is None:
        block = {}
    if not isinstance(block, dict):
        raise ConfigurationError(f"{block_name} must be a mapping, got {type(block).__name__}")

    names = {f.name for f in fields(cls)}
    kwargs = {}
    for key, value in block.items():
        if key in names:
            kwargs[key] = _as_float(value, key, block_name)
        elif key in ('C2ke', 'C2kw'):
            logger.debug(f"{block_name}: '{key}' is derived from C1/kappa/sigma, ignoring given value")
        else:
            logger.debug(f"{block_name}: ignoring unknown coefficient '{key}'")

    coeffs = cls(**kwargs)
    for key in cls._positive:
        if getattr(coeffs, key) <= 0.0:
            raise ConfigurationError(f"{block_name}: '{key}' must be positive, got {getattr(coeffs, key)}")
    for key in cls._below_one:
        if getattr(coeffs, key) >= 1.0:
            raise ConfigurationError(f"{block_name}: '{key}' must be below one, got {getattr(coeffs, key)}")
    return coeffs


def parse_delta(data: Dict[str, Any]) -> DeltaConfig:
    """
    Parse the LES delta selection (``delta`` + ``<delta>Coeffs``).

    Only ``maxDeltaxyz`` is available.
    """
    delta_type = data.get('delta', 'maxDeltaxyz')
    if delta_type != 'maxDeltaxyz':
        raise ConfigurationError(f"Unknown delta type '{delta_type}'. Supported: maxDeltaxyz")
    block_name = f"{delta_type}Coeffs"
    block = data.get(block_name) or {}
    if not isinstance(block, dict):
        raise ConfigurationError(f"{block_name} must be a mapping")
    delta_coeff = _as_float(block.get('deltaCoeff', DeltaConfig.deltaCoeff), 'deltaCoeff', block_name)
    if delta_coeff <= 0.0:
        raise ConfigurationError(f"{block_name}: 'deltaCoeff' must be positive, got {delta_coeff}")
    return DeltaConfig(delta=delta_type, deltaCoeff=delta_coeff)


def load_yaml(path: Union[str, Path]) -> CaseConfig:
    """
    Load case configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        CaseConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    return from_dict(data)


def from_dict(data: Dict[str, Any]) -> CaseConfig:
    """
    Create CaseConfig from a dictionary.

    Handles nested structures and applies defaults for missing values.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Case configuration must be a mapping")

    config_dict = {}

    sections = {
        'mesh': ChannelMeshConfig,
        'flow': FlowConfig,
        'solver': SolverControls,
        'run': RunConfig,
        'output': OutputConfig,
    }
    for name, cls in sections.items():
        if name in data:
            config_dict[name] = _dict_to_dataclass(cls, data[name], name)

    if 'turbulence' in data:
        turbulence = data['turbulence']
        if not isinstance(turbulence, dict):
            raise ConfigurationError("Section 'turbulence' must be a mapping")
        config_dict['turbulence'] = dict(turbulence)

    if 'fields' in data:
        if not isinstance(data['fields'], dict):
            raise ConfigurationError("Section 'fields' must be a mapping")
        config_dict['fields'] = dict(data['fields'])

    if 'log_level' in data:
        config_dict['log_level'] = data['log_level']

    return CaseConfig(**config_dict)


def apply_cli_overrides(config: CaseConfig, args) -> CaseConfig:
    """
    Apply command-line argument overrides to a configuration.

    Only overrides values that were explicitly set (not None).
    """
    config_dict = config.to_dict()

    cli_mapping = {
        'steps': ('run', 'steps'),
        'model': ('turbulence', 'model'),
        'delta_t': ('solver', 'delta_t'),
        'ni': ('mesh', 'NI'),
        'nj': ('mesh', 'NJ'),
        'output_dir': ('output', 'directory'),
        'case_name': ('output', 'case_name'),
        'log_level': ('log_level',),
    }

    for cli_name, config_path in cli_mapping.items():
        value = getattr(args, cli_name, None)
        if value is not None:
            target = config_dict
            for key in config_path[:-1]:
                target = target[key]
            target[config_path[-1]] = value

    return from_dict(config_dict)


def save_yaml(config: CaseConfig, path: Union[str, Path]) -> None:
    """Save configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
