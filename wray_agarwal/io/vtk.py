"""
VTK file writer for closure fields.

Legacy ASCII structured-grid files with one point per cell centre, so the
files open directly in ParaView.
"""

from pathlib import Path
from typing import Dict, Union

import numpy as np
from loguru import logger

def _finite(values) -> np.ndarray:
    """Float64 copy with NaN/Inf replaced by zero."""
    result = np.array(values, dtype=np.float64)
    result[~np.isfinite(result)] = 0.0
    return result


def write_fields_vtk(
    filename: Union[str, Path],
    mesh,
    fields: Dict[str, np.ndarray],
    title: str = "Wray-Agarwal closure fields",
) -> Path:
    """Save cell fields to VTK legacy format (structured grid).

    Parameters
    ----------
    filename : str or Path
        Output VTK file path (parent directories are created).
    mesh : StructuredMesh
        Mesh providing the cell centres.
    fields : dict
        Name to cell array, shape (NI, NJ) for scalars or (NI, NJ, 2) for
        vectors. Volume field objects (with ``.values``) are accepted too.
    title : str
        Header line.

    Returns
    -------
    Path
        The written file.
    """
    filename = Path(filename)
    filename.parent.mkdir(parents=True, exist_ok=True)

    xc = mesh.metrics.xc
    yc = mesh.metrics.yc
    ni, nj = xc.shape

    with open(filename, 'w') as f:
        f.write("# vtk DataFile Version 3.0\n")
        f.write(f"{title}\n")
        f.write("ASCII\n")
        f.write("DATASET STRUCTURED_GRID\n")
        f.write(f"DIMENSIONS {ni} {nj} 1\n")

        # Grid points (cell centers)
        f.write(f"POINTS {ni * nj} double\n")
        for j in range(nj):
            for i in range(ni):
                f.write(f"{xc[i, j]:.10e} {yc[i, j]:.10e} 0.0\n")

        f.write(f"\nPOINT_DATA {ni * nj}\n")

        for name, data in fields.items():
            values = _finite(getattr(data, "values", data))
            if values.shape == (ni, nj):
                _write_scalar_field(f, name, values, ni, nj)
            elif values.shape == (ni, nj, 2):
                _write_vector_field(f, name, values, ni, nj)
            else:
                raise ValueError(f"Field '{name}' has shape {values.shape}, "
                                 f"expected ({ni}, {nj}) or ({ni}, {nj}, 2)")

    logger.info(f"Saved VTK file to: {filename}")
    return filename


def _write_scalar_field(f, name: str, data: np.ndarray, ni: int, nj: int) -> None:
    """Write a scalar field to VTK file."""
    f.write(f"\nSCALARS {name} double 1\n")
    f.write("LOOKUP_TABLE default\n")
    for j in range(nj):
        for i in range(ni):
            f.write(f"{data[i, j]:.10e}\n")


def _write_vector_field(f, name: str, data: np.ndarray, ni: int, nj: int) -> None:
    """Write a 2D vector field (z = 0) to VTK file."""
    f.write(f"\nVECTORS {name} double\n")
    for j in range(nj):
        for i in range(ni):
            f.write(f"{data[i, j, 0]:.10e} {data[i, j, 1]:.10e} 0.0\n")
