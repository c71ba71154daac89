"""
Cell-to-face interpolation and face fluxes.

Interior faces use geometric linear weights (see FVMMetrics.wi / wj);
boundary faces take the patch face values of the field, or the adjacent
cell values for plain cell data.
"""

import numpy as np

from wray_agarwal.constants import SCALAR, I_MIN, I_MAX, J_MIN, J_MAX
from wray_agarwal.fields import SurfaceScalarField


def interpolate_arrays(mesh, values: np.ndarray, boundary: dict):
    """Face arrays (i_faces, j_faces) of cell data with given boundary values."""
    m = mesh.metrics
    NI, NJ = m.NI, m.NJ
    tail = values.shape[2:]

    wi = m.wi[1:-1, :].reshape(NI - 1, NJ, *([1] * len(tail)))
    wj = m.wj[:, 1:-1].reshape(NI, NJ - 1, *([1] * len(tail)))

    fi = np.empty((NI + 1, NJ) + tail)
    fi[1:-1] = wi * values[:-1, :] + (1.0 - wi) * values[1:, :]
    fi[0] = boundary[I_MIN]
    fi[-1] = boundary[I_MAX]

    fj = np.empty((NI, NJ + 1) + tail)
    fj[:, 1:-1] = wj * values[:, :-1] + (1.0 - wj) * values[:, 1:]
    fj[:, 0] = boundary[J_MIN]
    fj[:, -1] = boundary[J_MAX]
    return fi, fj


def interpolate_faces(field):
    """
    Face values of a volume field (boundary faces from its patch fields).

    Returns
    -------
    i_faces, j_faces : ndarray
        (NI+1, NJ[, 2]) and (NI, NJ+1[, 2]).
    """
    mesh = field.mesh
    boundary = {p.side: field.patch_values(p) for p in mesh.boundary}
    return interpolate_arrays(mesh, field.values, boundary)


def interpolate(field, name: str = None) -> SurfaceScalarField:
    """Linear interpolation of a scalar volume field onto the faces."""
    if field.rank != SCALAR:
        raise ValueError(f"interpolate() expects a scalar field, '{field.name}' is not")
    fi, fj = interpolate_faces(field)
    return SurfaceScalarField(name or f"interpolate({field.name})", field.mesh, fi, fj)


def interpolate_cells(mesh, values: np.ndarray, name: str = "interpolate") -> SurfaceScalarField:
    """Linear interpolation of plain cell data (boundary faces copy the adjacent cell)."""
    boundary = {p.side: values[p.cells_i, p.cells_j] for p in mesh.boundary}
    fi, fj = interpolate_arrays(mesh, np.asarray(values, dtype=np.float64), boundary)
    return SurfaceScalarField(name, mesh, fi, fj)


def flux(U, name: str = "phi") -> SurfaceScalarField:
    """
    Volumetric face flux phi = U_f . S_f.

    Positive flux runs in the +i (i-faces) or +j (j-faces) direction.
    """
    m = U.mesh.metrics
    Ui, Uj = interpolate_faces(U)
    phi_i = Ui[..., 0] * m.Si_x + Ui[..., 1] * m.Si_y
    phi_j = Uj[..., 0] * m.Sj_x + Uj[..., 1] * m.Sj_y
    return SurfaceScalarField(name, U.mesh, phi_i, phi_j)
