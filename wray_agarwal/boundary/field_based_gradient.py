"""
Field-based gradient boundary condition (``fieldBasedGradient``).

Fixed-gradient patch whose gradient is recomputed on every coefficient
update from another registered field:

    gradient = gradCoeff * (values of `field` in the patch-adjacent cells)

Used for rough-wall treatments where the wall flux of Rnu is proportional
to a local quantity. Dictionary entry::

    bottom:
      type: fieldBasedGradient
      field: U
      gradCoeff: 2.0
      gradient: 0        # optional initial gradient
      value: 0           # optional initial face value
"""

import math

from wray_agarwal.errors import ConfigurationError, FieldLookupError
from .patch_fields import FixedGradientPatchField, register_patch_field


@register_patch_field
class FieldBasedGradientPatchField(FixedGradientPatchField):
    """
    Fixed-gradient patch field driven by a named field.

    The referenced field is resolved by name in the registry of the field
    this patch belongs to, with the same value rank (scalar for a scalar
    field, vector for a vector field).
    """

    type_name = "fieldBasedGradient"
    _config_attrs = ('field_name', 'grad_coeff')

    def __init__(self, patch, internal_field, field_name: str = "", grad_coeff: float = 0.0):
        super().__init__(patch, internal_field)
        self.field_name = field_name
        self.grad_coeff = grad_coeff

    @classmethod
    def from_dict(cls, patch, internal_field, data):
        label = f"{internal_field.name}.{patch.name}"
        missing = [key for key in ('field', 'gradCoeff') if key not in data]
        if missing:
            raise ConfigurationError(f"{label}: fieldBasedGradient requires {missing}")

        field_name = data['field']
        if not isinstance(field_name, str) or not field_name:
            raise ConfigurationError(f"{label}: 'field' must be a field name, got {field_name!r}")
        grad_coeff = data['gradCoeff']
        if isinstance(grad_coeff, bool) or not isinstance(grad_coeff, (int, float)) \
                or not math.isfinite(grad_coeff):
            raise ConfigurationError(f"{label}: 'gradCoeff' must be a finite number, got {grad_coeff!r}")

        pf = super().from_dict(patch, internal_field, data)
        pf.field_name = field_name
        pf.grad_coeff = float(grad_coeff)
        return pf

    def source_field(self):
        """
        The referenced field.

        Raises
        ------
        FieldLookupError
            If the owning field is not registered or the name is unknown.
        FieldTypeError
            If the referenced field has a different value rank.
        """
        registry = self.internal_field.db
        if registry is None:
            raise FieldLookupError(
                f"{self.internal_field.name}.{self.patch.name}: field is not registered, "
                f"cannot look up '{self.field_name}'")
        return registry.lookup(self.field_name, rank=self.rank)

    def update_coeffs(self):
        if self.updated:
            return
        source = self.source_field()
        self.gradient = self.grad_coeff * source.patch_internal_field(self.patch)
        super().update_coeffs()

    def to_dict(self):
        base = super().to_dict()
        return {
            'type': self.type_name,
            'gradient': base['gradient'],
            'field': self.field_name,
            'gradCoeff': self.grad_coeff,
            'value': base['value'],
        }
