"""
Boundary conditions for volume fields.

Importing this package registers every patch-field type by name.
"""

from .patch_fields import (
    PatchField,
    FixedValuePatchField,
    ZeroGradientPatchField,
    FixedGradientPatchField,
    CalculatedPatchField,
    PatchMapper,
    new_patch_field,
    patch_field_types,
    register_patch_field,
)

from .field_based_gradient import FieldBasedGradientPatchField

__all__ = [
    'PatchField',
    'FixedValuePatchField',
    'ZeroGradientPatchField',
    'FixedGradientPatchField',
    'CalculatedPatchField',
    'FieldBasedGradientPatchField',
    'PatchMapper',
    'new_patch_field',
    'patch_field_types',
    'register_patch_field',
]
