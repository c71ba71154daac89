"""
Grid Metrics Computer for Finite Volume Method.

This module provides the MetricComputer class for computing all grid metrics
required by the closure engine, including validation of the Geometric
Conservation Law (GCL).

Grid Layout:
    - Node coordinates X, Y have shape (NI+1, NJ+1)
    - Cell (i,j) is bounded by nodes (i,j), (i+1,j), (i+1,j+1), (i,j+1)
    - There are NI×NJ cells total
    - I-face (i,j) joins nodes (i,j)-(i,j+1); J-face (i,j) joins (i,j)-(i+1,j)
"""

import numpy as np
from numba import njit
from typing import NamedTuple, Tuple, Optional, Sequence
from dataclasses import dataclass

from wray_agarwal.constants import I_MIN, I_MAX, J_MIN, J_MAX


class FVMMetrics(NamedTuple):
    """
    Finite Volume Method metrics for 2D structured grid.

    All arrays use the convention that:
    - Cell quantities have shape (NI, NJ)
    - I-face quantities have shape (NI+1, NJ) - faces between i-1 and i
    - J-face quantities have shape (NI, NJ+1) - faces between j-1 and j

    Face normals are scaled by face area (length in 2D), pointing in the
    positive coordinate direction.
    """

    # Cell properties
    volume: np.ndarray      # (NI, NJ) Cell areas
    xc: np.ndarray          # (NI, NJ) Cell center x
    yc: np.ndarray          # (NI, NJ) Cell center y

    # I-face normals (scaled by face length), from cell (i-1,j) toward (i,j)
    Si_x: np.ndarray        # (NI+1, NJ)
    Si_y: np.ndarray        # (NI+1, NJ)

    # J-face normals (scaled by face length), from cell (i,j-1) toward (i,j)
    Sj_x: np.ndarray        # (NI, NJ+1)
    Sj_y: np.ndarray        # (NI, NJ+1)

    # Face centres
    xfi: np.ndarray         # (NI+1, NJ)
    yfi: np.ndarray         # (NI+1, NJ)
    xfj: np.ndarray         # (NI, NJ+1)
    yfj: np.ndarray         # (NI, NJ+1)

    # Linear interpolation weight of the lower-index cell at each face
    # (1 at min boundaries, 0 at max boundaries)
    wi: np.ndarray          # (NI+1, NJ)
    wj: np.ndarray          # (NI, NJ+1)

    # Inverse normal distance across each face (cell-cell or cell-face)
    delta_i: np.ndarray     # (NI+1, NJ)
    delta_j: np.ndarray     # (NI, NJ+1)

    # Maximum normal cell-centre to face-centre distance (maxDeltaxyz)
    hmax: np.ndarray        # (NI, NJ)

    # Wall distance (for turbulence models)
    wall_distance: np.ndarray  # (NI, NJ) Distance to nearest wall

    @property
    def NI(self) -> int:
        """Number of cells in i-direction."""
        return self.volume.shape[0]

    @property
    def NJ(self) -> int:
        """Number of cells in j-direction."""
        return self.volume.shape[1]

    @property
    def Si_mag(self) -> np.ndarray:
        """I-face area (length in 2D)."""
        return np.sqrt(self.Si_x**2 + self.Si_y**2)

    @property
    def Sj_mag(self) -> np.ndarray:
        """J-face area (length in 2D)."""
        return np.sqrt(self.Sj_x**2 + self.Sj_y**2)


@dataclass
class GCLValidation:
    """Results of Geometric Conservation Law validation."""

    passed: bool
    max_x_residual: float
    max_y_residual: float
    mean_x_residual: float
    mean_y_residual: float
    message: str

    def __str__(self) -> str:
        status = "✓" if self.passed else "✗"
        return (f"{status} GCL: max residual ({self.max_x_residual:.2e}, {self.max_y_residual:.2e}), "
                f"mean ({self.mean_x_residual:.2e}, {self.mean_y_residual:.2e})")


@njit(cache=True)
def _wall_distance_kernel(xc: np.ndarray, yc: np.ndarray,
                          seg_ax: np.ndarray, seg_ay: np.ndarray,
                          seg_bx: np.ndarray, seg_by: np.ndarray,
                          dist: np.ndarray) -> None:
    """
    Minimum distance from every cell centre to a set of wall segments.

    The closest point on a segment AB is the projection of P clamped to
    the segment ends.
    """
    NI, NJ = xc.shape
    n_seg = seg_ax.shape[0]
    for i in range(NI):
        for j in range(NJ):
            px = xc[i, j]
            py = yc[i, j]
            d_min = np.inf
            for k in range(n_seg):
                abx = seg_bx[k] - seg_ax[k]
                aby = seg_by[k] - seg_ay[k]
                apx = px - seg_ax[k]
                apy = py - seg_ay[k]
                ab_sq = abx * abx + aby * aby
                if ab_sq < 1e-30:
                    t = 0.0
                else:
                    t = (apx * abx + apy * aby) / ab_sq
                    t = max(0.0, min(1.0, t))
                dx = px - (seg_ax[k] + t * abx)
                dy = py - (seg_ay[k] + t * aby)
                d = np.sqrt(dx * dx + dy * dy)
                if d < d_min:
                    d_min = d
            dist[i, j] = d_min


class MetricComputer:
    """
    Computes Finite Volume Method metrics from grid coordinates.

    Given node coordinates X[i,j], Y[i,j], computes:
    - Cell volumes (areas in 2D) and centres
    - Face normals scaled by area, face centres
    - Interpolation weights and face delta coefficients
    - Maximum cell extent (for the LES filter width)
    - Wall distance to the boundary sides flagged as walls

    Also validates the Geometric Conservation Law (GCL).

    Example
    -------
    >>> computer = MetricComputer(X, Y, wall_sides=["j_min", "j_max"])
    >>> metrics = computer.compute()
    >>> gcl = computer.validate_gcl()
    >>> print(gcl)
    ✓ GCL: max residual (1.23e-15, 4.56e-16), mean (2.34e-16, 1.23e-16)
    """

    def __init__(self, X: np.ndarray, Y: np.ndarray,
                 wall_sides: Sequence[str] = (J_MIN,)):
        """
        Initialize the metric computer.

        Parameters
        ----------
        X, Y : ndarray, shape (NI+1, NJ+1)
            Node coordinates.
        wall_sides : sequence of str
            Block sides that are walls (any of i_min, i_max, j_min, j_max).
        """
        self.X = np.asarray(X, dtype=np.float64)
        self.Y = np.asarray(Y, dtype=np.float64)
        self.wall_sides = tuple(wall_sides)

        self.NI = self.X.shape[0] - 1
        self.NJ = self.X.shape[1] - 1

        self._metrics: Optional[FVMMetrics] = None

    def compute(self) -> FVMMetrics:
        """
        Compute all FVM metrics.

        Returns
        -------
        metrics : FVMMetrics
            Named tuple containing all computed metrics.
        """
        xc, yc = self._compute_cell_centers()
        volume = self._compute_cell_volumes()
        Si_x, Si_y = self._compute_i_face_normals()
        Sj_x, Sj_y = self._compute_j_face_normals()
        xfi, yfi, xfj, yfj = self._compute_face_centers()

        wi, delta_i = self._face_weights(xc, yc, xfi, yfi, Si_x, Si_y, axis=0)
        wj, delta_j = self._face_weights(xc, yc, xfj, yfj, Sj_x, Sj_y, axis=1)

        hmax = self._compute_max_extent(xc, yc, xfi, yfi, xfj, yfj,
                                        Si_x, Si_y, Sj_x, Sj_y)
        wall_distance = self._compute_wall_distance(xc, yc)

        self._metrics = FVMMetrics(
            volume=volume,
            xc=xc, yc=yc,
            Si_x=Si_x, Si_y=Si_y,
            Sj_x=Sj_x, Sj_y=Sj_y,
            xfi=xfi, yfi=yfi, xfj=xfj, yfj=yfj,
            wi=wi, wj=wj,
            delta_i=delta_i, delta_j=delta_j,
            hmax=hmax,
            wall_distance=wall_distance,
        )

        return self._metrics

    def _compute_cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Cell centres as the average of the four corner nodes."""
        X, Y = self.X, self.Y

        xc = 0.25 * (X[:-1, :-1] + X[1:, :-1] + X[1:, 1:] + X[:-1, 1:])
        yc = 0.25 * (Y[:-1, :-1] + Y[1:, :-1] + Y[1:, 1:] + Y[:-1, 1:])

        return xc, yc

    def _compute_cell_volumes(self) -> np.ndarray:
        """
        Compute cell volumes using cross-product of diagonals.

        Area = 0.5 * |d1 × d2|

        where d1 = AC and d2 = BD are the diagonals of the quadrilateral.
        A = (i,j), B = (i+1,j), C = (i+1,j+1), D = (i,j+1)
        """
        X, Y = self.X, self.Y

        dx_ac = X[1:, 1:] - X[:-1, :-1]
        dy_ac = Y[1:, 1:] - Y[:-1, :-1]

        dx_bd = X[:-1, 1:] - X[1:, :-1]
        dy_bd = Y[:-1, 1:] - Y[1:, :-1]

        return 0.5 * np.abs(dx_ac * dy_bd - dy_ac * dx_bd)

    def _compute_i_face_normals(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        I-face normals: face (i, j) connects nodes (i, j) and (i, j+1).

        Face vector (dx, dy) rotated 90° CW gives the +i normal (dy, -dx).
        """
        X, Y = self.X, self.Y

        dx = X[:, 1:] - X[:, :-1]
        dy = Y[:, 1:] - Y[:, :-1]

        return dy, -dx

    def _compute_j_face_normals(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        J-face normals: face (i, j) connects nodes (i, j) and (i+1, j).

        Face vector (dx, dy) rotated 90° CCW gives the +j normal (-dy, dx).
        """
        X, Y = self.X, self.Y

        dx = X[1:, :] - X[:-1, :]
        dy = Y[1:, :] - Y[:-1, :]

        return -dy, dx

    def _compute_face_centers(self):
        X, Y = self.X, self.Y
        xfi = 0.5 * (X[:, :-1] + X[:, 1:])
        yfi = 0.5 * (Y[:, :-1] + Y[:, 1:])
        xfj = 0.5 * (X[:-1, :] + X[1:, :])
        yfj = 0.5 * (Y[:-1, :] + Y[1:, :])
        return xfi, yfi, xfj, yfj

    @staticmethod
    def _face_weights(xc, yc, xf, yf, Sx, Sy, axis: int):
        """
        Interpolation weights and delta coefficients along one index direction.

        Interior faces use the normal distances from the two cell centres to
        the face; boundary faces use the single cell-to-face normal distance.
        """
        mag = np.sqrt(Sx**2 + Sy**2)
        nx = Sx / mag
        ny = Sy / mag

        # Normal distance from lower cell (owner) and upper cell (neighbour)
        if axis == 0:
            own = (slice(None, -1), slice(None))
            nei = (slice(1, None), slice(None))
            f_int = (slice(1, -1), slice(None))
        else:
            own = (slice(None), slice(None, -1))
            nei = (slice(None), slice(1, None))
            f_int = (slice(None), slice(1, -1))

        w = np.zeros_like(mag)
        delta = np.zeros_like(mag)

        # d_own: from owner centre to face; d_nei: from face to neighbour centre
        d_own = np.abs(nx[f_int] * (xf[f_int] - xc[own])
                       + ny[f_int] * (yf[f_int] - yc[own]))
        d_nei = np.abs(nx[f_int] * (xc[nei] - xf[f_int])
                       + ny[f_int] * (yc[nei] - yf[f_int]))
        w[f_int] = d_nei / (d_own + d_nei)
        delta[f_int] = 1.0 / (d_own + d_nei)

        # Boundary faces
        if axis == 0:
            lo_f, hi_f = (0, slice(None)), (-1, slice(None))
            lo_c, hi_c = (0, slice(None)), (-1, slice(None))
        else:
            lo_f, hi_f = (slice(None), 0), (slice(None), -1)
            lo_c, hi_c = (slice(None), 0), (slice(None), -1)
        d_lo = np.abs(nx[lo_f] * (xc[lo_c] - xf[lo_f]) + ny[lo_f] * (yc[lo_c] - yf[lo_f]))
        d_hi = np.abs(nx[hi_f] * (xf[hi_f] - xc[hi_c]) + ny[hi_f] * (yf[hi_f] - yc[hi_c]))
        w[lo_f] = 0.0
        w[hi_f] = 1.0
        delta[lo_f] = 1.0 / d_lo
        delta[hi_f] = 1.0 / d_hi

        return w, delta

    @staticmethod
    def _compute_max_extent(xc, yc, xfi, yfi, xfj, yfj, Si_x, Si_y, Sj_x, Sj_y):
        """Maximum normal distance from each cell centre to its four faces."""
        def normal_dist(xf, yf, Sx, Sy):
            mag = np.sqrt(Sx**2 + Sy**2)
            return np.abs((Sx * (xf - xc) + Sy * (yf - yc)) / mag)

        faces = (
            normal_dist(xfi[:-1, :], yfi[:-1, :], Si_x[:-1, :], Si_y[:-1, :]),
            normal_dist(xfi[1:, :], yfi[1:, :], Si_x[1:, :], Si_y[1:, :]),
            normal_dist(xfj[:, :-1], yfj[:, :-1], Sj_x[:, :-1], Sj_y[:, :-1]),
            normal_dist(xfj[:, 1:], yfj[:, 1:], Sj_x[:, 1:], Sj_y[:, 1:]),
        )
        return np.maximum.reduce(faces)

    def wall_segments(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Start/end coordinates of every boundary face on a wall side."""
        X, Y = self.X, self.Y
        lines = {
            I_MIN: (X[0, :], Y[0, :]),
            I_MAX: (X[-1, :], Y[-1, :]),
            J_MIN: (X[:, 0], Y[:, 0]),
            J_MAX: (X[:, -1], Y[:, -1]),
        }
        ax, ay, bx, by = [], [], [], []
        for side in self.wall_sides:
            if side not in lines:
                raise ValueError(f"Unknown block side '{side}'")
            xs, ys = lines[side]
            ax.append(xs[:-1])
            ay.append(ys[:-1])
            bx.append(xs[1:])
            by.append(ys[1:])
        if not ax:
            empty = np.zeros(0)
            return empty, empty, empty, empty
        return (np.concatenate(ax), np.concatenate(ay),
                np.concatenate(bx), np.concatenate(by))

    def _compute_wall_distance(self, xc: np.ndarray, yc: np.ndarray) -> np.ndarray:
        """
        Compute wall distance for each cell center using point-to-segment distance.

        Without any wall side, the distance is infinite (no wall influence).
        """
        ax, ay, bx, by = self.wall_segments()
        if ax.size == 0:
            return np.full(xc.shape, np.inf)

        wall_dist = np.empty(xc.shape, dtype=np.float64)
        _wall_distance_kernel(np.ascontiguousarray(xc), np.ascontiguousarray(yc),
                              ax, ay, bx, by, wall_dist)
        return wall_dist

    def validate_gcl(self, tol: float = 1e-10) -> GCLValidation:
        """
        Validate the Geometric Conservation Law.

        For a closed cell the sum of all outward face normals must vanish,
        which ensures that a uniform field has zero divergence.

        Parameters
        ----------
        tol : float
            Tolerance for GCL residual (relative to cell perimeter).

        Returns
        -------
        validation : GCLValidation
            Results of the GCL validation.
        """
        if self._metrics is None:
            self.compute()

        m = self._metrics

        residual_x = (m.Si_x[1:, :] - m.Si_x[:-1, :] +
                      m.Sj_x[:, 1:] - m.Sj_x[:, :-1])
        residual_y = (m.Si_y[1:, :] - m.Si_y[:-1, :] +
                      m.Sj_y[:, 1:] - m.Sj_y[:, :-1])

        perimeter = (m.Si_mag[:-1, :] + m.Si_mag[1:, :] +
                     m.Sj_mag[:, :-1] + m.Sj_mag[:, 1:])

        rel_residual_x = np.abs(residual_x) / (perimeter + 1e-30)
        rel_residual_y = np.abs(residual_y) / (perimeter + 1e-30)

        max_rel = max(np.max(rel_residual_x), np.max(rel_residual_y))
        passed = max_rel < tol

        if passed:
            message = f"GCL satisfied (max relative residual: {max_rel:.2e})"
        else:
            message = f"GCL VIOLATED (max relative residual: {max_rel:.2e} > {tol:.2e})"

        return GCLValidation(
            passed=passed,
            max_x_residual=np.max(np.abs(residual_x)),
            max_y_residual=np.max(np.abs(residual_y)),
            mean_x_residual=np.mean(np.abs(residual_x)),
            mean_y_residual=np.mean(np.abs(residual_y)),
            message=message
        )


def compute_metrics(X: np.ndarray, Y: np.ndarray,
                    wall_sides: Sequence[str] = (J_MIN,)) -> FVMMetrics:
    """
    Convenience function to compute FVM metrics.

    Parameters
    ----------
    X, Y : ndarray, shape (NI+1, NJ+1)
        Node coordinates.
    wall_sides : sequence of str
        Block sides that are walls.

    Returns
    -------
    metrics : FVMMetrics
        Computed grid metrics.
    """
    computer = MetricComputer(X, Y, wall_sides)
    return computer.compute()
