"""
Configuration module for the closure engine.

Provides YAML-based configuration with dataclass schema and the
re-readable turbulence-properties source.
"""

from .schema import (
    WrayAgarwalCoeffs,
    BoundedCoeffs,
    DESCoeffs,
    DITCoeffs,
    DeltaConfig,
    SolverControls,
    ChannelMeshConfig,
    FlowConfig,
    OutputConfig,
    RunConfig,
    CaseConfig,
)

from .loader import (
    load_yaml,
    from_dict,
    parse_coeffs,
    parse_delta,
    apply_cli_overrides,
    save_yaml,
)

from .properties import TurbulenceProperties

__all__ = [
    # Schema classes
    'WrayAgarwalCoeffs',
    'BoundedCoeffs',
    'DESCoeffs',
    'DITCoeffs',
    'DeltaConfig',
    'SolverControls',
    'ChannelMeshConfig',
    'FlowConfig',
    'OutputConfig',
    'RunConfig',
    'CaseConfig',
    # Loader functions
    'load_yaml',
    'from_dict',
    'parse_coeffs',
    'parse_delta',
    'apply_cli_overrides',
    'save_yaml',
    # Properties source
    'TurbulenceProperties',
]
