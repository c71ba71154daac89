"""
Grid module.

This module provides tools for:
- Computing FVM grid metrics (cell centers, volumes, face normals,
  interpolation weights, wall distance)
- Building a single-block structured mesh with named boundary patches
"""

from .metrics import (
    MetricComputer,
    FVMMetrics,
    GCLValidation,
    compute_metrics
)

from .mesh import (
    StructuredMesh,
    BoundaryPatch,
    PATCH_TYPES,
)

__all__ = [
    # Metrics
    'MetricComputer',
    'FVMMetrics',
    'GCLValidation',
    'compute_metrics',
    # Mesh
    'StructuredMesh',
    'BoundaryPatch',
    'PATCH_TYPES',
]
