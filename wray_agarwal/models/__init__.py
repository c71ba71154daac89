"""
Wray-Agarwal closure models.

- WrayAgarwal2017:  RANS
- WrayAgarwal2017m: RANS with bounded destruction
- WA2017DES:        hybrid RANS/LES
- WA2017DESDIT:     hybrid, LES branch forced
"""

from .variants import (
    ClosureKind,
    ClosureVariant,
    DESLengthScale,
    DITLengthScale,
    VARIANTS,
    variant_for,
)

from .closure import WrayAgarwalModel, BLENDING_FIELDS

from .factory import create_model, available_models

__all__ = [
    'ClosureKind',
    'ClosureVariant',
    'DESLengthScale',
    'DITLengthScale',
    'VARIANTS',
    'variant_for',
    'WrayAgarwalModel',
    'BLENDING_FIELDS',
    'create_model',
    'available_models',
]
