"""
Cell-centred and face-centred fields on a StructuredMesh.

Volume fields hold cell values, shape (NI, NJ) for scalars and (NI, NJ, 2)
for vectors, plus one patch field per mesh patch. Surface fields hold
i-face values (NI+1, NJ) and j-face values (NI, NJ+1).

Field dictionaries follow the layout::

    internalField: 0.0          # uniform value, or full array
    boundaryField:
      inlet:  {type: fixedValue, value: 1.0e-4}
      outlet: {type: zeroGradient}
      ...
"""

from typing import Dict, Any, Optional

import numpy as np

from wray_agarwal.constants import SCALAR, VECTOR
from wray_agarwal.errors import ConfigurationError
from wray_agarwal.boundary import new_patch_field, CalculatedPatchField


class VolField:
    """
    Cell-centred field with boundary patch fields.

    Parameters
    ----------
    name : str
        Registry name.
    mesh : StructuredMesh
    values : ndarray
        Cell values, shape (NI, NJ) or (NI, NJ, 2).

    Patch fields default to ``calculated`` (face values copied from the
    adjacent cells) until :meth:`set_boundary` or :meth:`from_dict`
    assigns them.
    """

    rank = None

    def __init__(self, name: str, mesh, values: Optional[np.ndarray] = None):
        self.name = name
        self.mesh = mesh
        self.db = None                 # Set when registered
        if values is None:
            values = np.zeros(self.shape)
        values = np.array(values, dtype=np.float64)
        if values.shape != self.shape:
            raise ConfigurationError(
                f"{name}: internal field shape {values.shape} does not match {self.shape}")
        self.values = values
        self._old_values = None

        self.boundary_field: Dict[str, Any] = {}
        for patch in mesh.boundary:
            pf = CalculatedPatchField(patch, self)
            pf.value = self.patch_internal_field(patch)
            self.boundary_field[patch.name] = pf

    @property
    def shape(self):
        base = (self.mesh.NI, self.mesh.NJ)
        return base if self.rank == SCALAR else base + (2,)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def uniform(cls, name: str, mesh, value, patch_type: str = "calculated"):
        """Uniform field whose patches all share one generic type."""
        field = cls(name, mesh, _uniform_values(cls.rank, mesh, value, name))
        if patch_type != "calculated":
            entries = {p.name: {'type': patch_type} for p in mesh.boundary}
            if patch_type == "fixedValue":
                entries = {p.name: {'type': patch_type, 'value': value} for p in mesh.boundary}
            field.set_boundary(entries)
        return field

    @classmethod
    def from_dict(cls, name: str, mesh, data: Dict[str, Any]):
        """
        Build a field from its dictionary.

        Every mesh patch needs a ``boundaryField`` entry.

        Raises
        ------
        ConfigurationError
            On a missing or unknown patch entry or malformed values.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"{name}: field dictionary must be a mapping")
        if 'internalField' not in data:
            raise ConfigurationError(f"{name}: 'internalField' missing")

        raw = data['internalField']
        try:
            arr = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"{name}: cannot parse internalField") from err
        field = cls(name, mesh)
        if arr.shape == field.shape:
            field.values = arr.copy()
        else:
            field.values = _uniform_values(cls.rank, mesh, raw, name)

        field.set_boundary(data.get('boundaryField') or {})
        return field

    def set_boundary(self, entries: Dict[str, Any]) -> None:
        """Replace the patch fields from ``boundaryField`` entries."""
        unknown = set(entries) - set(self.mesh.patch_names)
        if unknown:
            raise ConfigurationError(
                f"{self.name}: boundaryField entries for unknown patches {sorted(unknown)}")
        missing = [n for n in self.mesh.patch_names if n not in entries]
        if missing:
            raise ConfigurationError(f"{self.name}: boundaryField missing patches {missing}")
        for patch in self.mesh.boundary:
            self.boundary_field[patch.name] = new_patch_field(patch, self, entries[patch.name])

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def patch_internal_field(self, patch) -> np.ndarray:
        """Cell values adjacent to ``patch`` (a copy)."""
        return np.array(self.values[patch.cells_i, patch.cells_j])

    def patch_values(self, patch) -> np.ndarray:
        return self.boundary_field[patch.name].value

    def correct_boundary_conditions(self) -> None:
        """Re-evaluate every patch field from the current cell values."""
        for pf in self.boundary_field.values():
            pf.evaluate()

    def store_old_time(self) -> None:
        self._old_values = np.array(self.values)

    def old_time(self) -> np.ndarray:
        """Cell values stored by the last :meth:`store_old_time` (or current)."""
        if self._old_values is None:
            return np.array(self.values)
        return self._old_values

    def min(self) -> float:
        return float(np.min(self.values))

    def max(self) -> float:
        return float(np.max(self.values))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        first = self.values.reshape(-1, *self.shape[2:])[0]
        if np.all(self.values == first):
            internal = first.tolist() if self.rank != SCALAR else float(first)
        else:
            internal = self.values.tolist()
        return {
            'internalField': internal,
            'boundaryField': {n: pf.to_dict() for n, pf in self.boundary_field.items()},
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.mesh.NI}x{self.mesh.NJ})"


class VolScalarField(VolField):
    rank = SCALAR


class VolVectorField(VolField):
    rank = VECTOR

    def component(self, c: int) -> np.ndarray:
        return self.values[..., c]


class SurfaceScalarField:
    """
    Face-centred scalar (fluxes, interpolated blend factors).

    ``i_faces[i, j]`` lies between cells (i-1, j) and (i, j);
    ``j_faces[i, j]`` between (i, j-1) and (i, j).
    """

    rank = SCALAR

    def __init__(self, name: str, mesh, i_faces=None, j_faces=None):
        self.name = name
        self.mesh = mesh
        self.db = None
        NI, NJ = mesh.NI, mesh.NJ
        self.i_faces = np.zeros((NI + 1, NJ)) if i_faces is None else np.array(i_faces, dtype=np.float64)
        self.j_faces = np.zeros((NI, NJ + 1)) if j_faces is None else np.array(j_faces, dtype=np.float64)
        if self.i_faces.shape != (NI + 1, NJ) or self.j_faces.shape != (NI, NJ + 1):
            raise ConfigurationError(f"{name}: face array shapes do not match the mesh")

    def assign(self, other: "SurfaceScalarField") -> None:
        """Copy face values in place."""
        self.i_faces[...] = other.i_faces
        self.j_faces[...] = other.j_faces

    def min(self) -> float:
        return float(min(self.i_faces.min(), self.j_faces.min()))

    def max(self) -> float:
        return float(max(self.i_faces.max(), self.j_faces.max()))

    def __repr__(self) -> str:
        return f"SurfaceScalarField({self.name!r})"


def _uniform_values(rank, mesh, value, name):
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"{name}: cannot parse value {value!r}") from err
    if rank == SCALAR:
        if arr.ndim != 0:
            raise ConfigurationError(f"{name}: scalar field needs a number, got {value!r}")
        return np.full((mesh.NI, mesh.NJ), float(arr))
    if arr.shape != (2,):
        raise ConfigurationError(f"{name}: vector field needs a pair, got {value!r}")
    return np.tile(arr, (mesh.NI, mesh.NJ, 1))
