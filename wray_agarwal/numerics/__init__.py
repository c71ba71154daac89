"""
Numerical operators for the closure engine.

This module provides:
- Green-Gauss gradient reconstruction
- Linear cell-to-face interpolation and face fluxes
- Implicit scalar transport equation (assembly and sparse solve)
"""

from .gradients import (
    green_gauss,
    compute_gradient,
    compute_gradient_zero_flux,
)

from .interpolation import (
    interpolate,
    interpolate_arrays,
    interpolate_cells,
    interpolate_faces,
    flux,
)

from .fv_matrix import (
    ScalarTransportEquation,
    SolverPerformance,
)

__all__ = [
    # Gradients
    'green_gauss',
    'compute_gradient',
    'compute_gradient_zero_flux',
    # Interpolation
    'interpolate',
    'interpolate_arrays',
    'interpolate_cells',
    'interpolate_faces',
    'flux',
    # Transport equation
    'ScalarTransportEquation',
    'SolverPerformance',
]
