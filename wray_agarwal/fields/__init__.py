"""
Volume and surface fields and their name registry.
"""

from .geometric import (
    VolField,
    VolScalarField,
    VolVectorField,
    SurfaceScalarField,
)

from .registry import FieldRegistry

__all__ = [
    'VolField',
    'VolScalarField',
    'VolVectorField',
    'SurfaceScalarField',
    'FieldRegistry',
]
