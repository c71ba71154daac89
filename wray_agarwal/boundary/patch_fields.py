"""
Patch (boundary) fields for cell-centred finite-volume fields.

Each volume field carries one patch field per mesh patch. A patch field
stores the face values on its patch and provides the coefficients the
transport matrix needs:

    face value       x_b    = vic * x_P + vbc
    normal gradient  dx/dn  = gic * x_P + gbc

where x_P is the adjacent cell value. ``update_coeffs()`` refreshes any
state that depends on other fields, ``evaluate()`` recomputes the face
values.

Types are looked up by name (``type:`` entry of a boundaryField block)
through :func:`new_patch_field`.
"""

from typing import Dict, Type, Any

import numpy as np
import yaml

from wray_agarwal.constants import SCALAR
from wray_agarwal.errors import ConfigurationError


_PATCH_FIELD_TYPES: Dict[str, Type["PatchField"]] = {}


def register_patch_field(cls):
    """Class decorator adding a patch-field type to the name table."""
    if cls.type_name in _PATCH_FIELD_TYPES:
        raise ConfigurationError(f"Patch field type '{cls.type_name}' registered twice")
    _PATCH_FIELD_TYPES[cls.type_name] = cls
    return cls


def patch_field_types():
    return sorted(_PATCH_FIELD_TYPES)


def new_patch_field(patch, internal_field, data: Dict[str, Any]) -> "PatchField":
    """
    Construct a patch field from its dictionary entry.

    Raises
    ------
    ConfigurationError
        If the entry has no ``type`` or the type is unknown.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{internal_field.name}: boundaryField entry for '{patch.name}' must be a mapping")
    if 'type' not in data:
        raise ConfigurationError(
            f"{internal_field.name}: patch '{patch.name}' has no 'type'")
    type_name = data['type']
    try:
        cls = _PATCH_FIELD_TYPES[type_name]
    except KeyError:
        raise ConfigurationError(
            f"{internal_field.name}: unknown patch field type '{type_name}' on '{patch.name}'. "
            f"Valid types: {patch_field_types()}") from None
    return cls.from_dict(patch, internal_field, data)


class PatchMapper:
    """Face index map from a new patch onto an existing one."""

    def __init__(self, addressing):
        self.addressing = np.asarray(addressing, dtype=np.int64)

    @property
    def size(self) -> int:
        return len(self.addressing)

    def __call__(self, values: np.ndarray) -> np.ndarray:
        return np.array(values[self.addressing])


def parse_patch_values(raw, size: int, rank: int, what: str) -> np.ndarray:
    """
    Patch values from a dictionary entry: a uniform value or one per face.

    A single number is uniform over faces and components. Scalars also take
    a list of ``size`` numbers; vectors a pair or a list of ``size`` pairs.
    """
    shape = (size,) if rank == SCALAR else (size, 2)
    try:
        arr = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"{what}: cannot parse value {raw!r}") from err

    if arr.ndim == 0:
        return np.full(shape, float(arr))
    if rank != SCALAR and arr.shape == (2,):
        return np.tile(arr, (size, 1))
    if arr.shape == shape:
        return arr.copy()
    raise ConfigurationError(
        f"{what}: expected uniform value or shape {shape}, got shape {arr.shape}")


def _value_to_yaml(values: np.ndarray):
    """Compact representation: uniform values collapse to a single entry."""
    if values.size and np.all(values == values[0]):
        first = values[0]
        return first.tolist() if np.ndim(first) else float(first)
    return values.tolist()


class PatchField:
    """
    Base patch field: stores face values, no update logic.

    Subclasses list their per-face arrays in ``_array_attrs`` and their
    configuration entries in ``_config_attrs`` so copies and mapped
    copies preserve them.
    """

    type_name = None
    _array_attrs = ('value',)
    _config_attrs = ()

    def __init__(self, patch, internal_field):
        self.patch = patch
        self.internal_field = internal_field
        shape = (patch.size,) if internal_field.rank == SCALAR else (patch.size, 2)
        self.value = np.zeros(shape)
        self.updated = False

    # ------------------------------------------------------------------
    # Construction variants
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, patch, internal_field, data: Dict[str, Any]):
        pf = cls(patch, internal_field)
        if 'value' in data:
            pf.value = parse_patch_values(data['value'], patch.size, internal_field.rank,
                                          f"{internal_field.name}.{patch.name}.value")
        else:
            pf.value = pf.patch_internal_field()
        return pf

    def copy(self):
        """Independent copy on the same patch and internal field."""
        return self.clone(self.internal_field)

    def clone(self, internal_field):
        """Copy rebound to another internal field (same patch)."""
        new = type(self)(self.patch, internal_field)
        for attr in self._array_attrs:
            setattr(new, attr, np.array(getattr(self, attr)))
        for attr in self._config_attrs:
            setattr(new, attr, getattr(self, attr))
        return new

    def mapped(self, patch, internal_field, mapper: PatchMapper):
        """Copy onto another patch, per-face arrays taken through ``mapper``."""
        if mapper.size != patch.size:
            raise ConfigurationError(
                f"Mapper size {mapper.size} does not match patch '{patch.name}' ({patch.size} faces)")
        new = type(self)(patch, internal_field)
        for attr in self._array_attrs:
            setattr(new, attr, mapper(getattr(self, attr)))
        for attr in self._config_attrs:
            setattr(new, attr, getattr(self, attr))
        return new

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    @property
    def rank(self) -> int:
        return self.internal_field.rank

    def patch_internal_field(self) -> np.ndarray:
        return self.internal_field.patch_internal_field(self.patch)

    def _delta(self) -> np.ndarray:
        d = self.patch.delta_coeffs
        return d if self.rank == SCALAR else d[:, None]

    def update_coeffs(self) -> None:
        self.updated = True

    def evaluate(self) -> None:
        if not self.updated:
            self.update_coeffs()
        self.updated = False

    def sn_grad(self) -> np.ndarray:
        """Face-normal gradient from the current face and cell values."""
        return (self.value - self.patch_internal_field()) * self._delta()

    def value_internal_coeffs(self) -> np.ndarray:
        raise NotImplementedError

    def value_boundary_coeffs(self) -> np.ndarray:
        raise NotImplementedError

    def gradient_internal_coeffs(self) -> np.ndarray:
        raise NotImplementedError

    def gradient_boundary_coeffs(self) -> np.ndarray:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        out = {'type': self.type_name}
        out['value'] = _value_to_yaml(self.value)
        return out

    def write(self) -> str:
        """Human-readable YAML block of the entry."""
        return yaml.safe_dump({self.patch.name: self.to_dict()},
                              default_flow_style=None, sort_keys=False)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.internal_field.name}.{self.patch.name})"


@register_patch_field
class FixedValuePatchField(PatchField):
    """Face value fixed to ``value``."""

    type_name = "fixedValue"

    @classmethod
    def from_dict(cls, patch, internal_field, data):
        if 'value' not in data:
            raise ConfigurationError(
                f"{internal_field.name}: fixedValue patch '{patch.name}' requires 'value'")
        return super().from_dict(patch, internal_field, data)

    def value_internal_coeffs(self):
        return np.zeros_like(self.value)

    def value_boundary_coeffs(self):
        return self.value

    def gradient_internal_coeffs(self):
        return -np.broadcast_to(self._delta(), self.value.shape)

    def gradient_boundary_coeffs(self):
        return self._delta() * self.value


@register_patch_field
class ZeroGradientPatchField(PatchField):
    """Face value equal to the adjacent cell value."""

    type_name = "zeroGradient"

    @classmethod
    def from_dict(cls, patch, internal_field, data):
        pf = cls(patch, internal_field)
        pf.value = pf.patch_internal_field()
        return pf

    def evaluate(self):
        if not self.updated:
            self.update_coeffs()
        self.value = self.patch_internal_field()
        self.updated = False

    def value_internal_coeffs(self):
        return np.ones_like(self.value)

    def value_boundary_coeffs(self):
        return np.zeros_like(self.value)

    def gradient_internal_coeffs(self):
        return np.zeros_like(self.value)

    def gradient_boundary_coeffs(self):
        return np.zeros_like(self.value)

    def to_dict(self):
        return {'type': self.type_name}


@register_patch_field
class FixedGradientPatchField(PatchField):
    """
    Face-normal gradient fixed to ``gradient``.

    Face values follow from the gradient and the cell-to-face distance:
        x_b = x_P + gradient / deltaCoeffs
    """

    type_name = "fixedGradient"
    _array_attrs = ('value', 'gradient')

    def __init__(self, patch, internal_field):
        super().__init__(patch, internal_field)
        self.gradient = np.zeros_like(self.value)

    @classmethod
    def from_dict(cls, patch, internal_field, data):
        pf = cls(patch, internal_field)
        label = f"{internal_field.name}.{patch.name}"
        pf.gradient = parse_patch_values(data.get('gradient', 0.0), patch.size,
                                         internal_field.rank, f"{label}.gradient")
        if 'value' in data:
            pf.value = parse_patch_values(data['value'], patch.size, internal_field.rank,
                                          f"{label}.value")
        else:
            pf._evaluate_value()
        return pf

    def _evaluate_value(self):
        self.value = self.patch_internal_field() + self.gradient / self._delta()

    def evaluate(self):
        if not self.updated:
            self.update_coeffs()
        self._evaluate_value()
        self.updated = False

    def sn_grad(self):
        return np.array(self.gradient)

    def value_internal_coeffs(self):
        return np.ones_like(self.value)

    def value_boundary_coeffs(self):
        return self.gradient / self._delta()

    def gradient_internal_coeffs(self):
        return np.zeros_like(self.value)

    def gradient_boundary_coeffs(self):
        return self.gradient

    def to_dict(self):
        out = {'type': self.type_name}
        out['gradient'] = _value_to_yaml(self.gradient)
        out['value'] = _value_to_yaml(self.value)
        return out


@register_patch_field
class CalculatedPatchField(PatchField):
    """Face values assigned by the owner of the field (e.g. nut)."""

    type_name = "calculated"

    def _not_solvable(self):
        raise ConfigurationError(
            f"{self.internal_field.name}: calculated patch '{self.patch.name}' "
            f"cannot be used in a transport equation")

    def value_internal_coeffs(self):
        self._not_solvable()

    def value_boundary_coeffs(self):
        self._not_solvable()

    def gradient_internal_coeffs(self):
        self._not_solvable()

    def gradient_boundary_coeffs(self):
        self._not_solvable()
