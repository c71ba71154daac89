"""
Structured 2D mesh with named boundary patches.

A single quadrilateral block of NI x NJ cells. Each block side is one
boundary patch with a name and a type ("wall" or "patch"); walls feed the
wall-distance computation.

Cell (i, j) has flat index i*NJ + j.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from loguru import logger

from wray_agarwal.constants import I_MIN, I_MAX, J_MIN, J_MAX, SIDES
from wray_agarwal.errors import ConfigurationError
from .metrics import MetricComputer, FVMMetrics


PATCH_TYPES = ("wall", "patch")


@dataclass
class BoundaryPatch:
    """
    One boundary patch (a full side of the block).

    Face arrays are ordered along the side (increasing j for i-sides,
    increasing i for j-sides).

    Attributes
    ----------
    name : str
        Patch name.
    side : str
        Block side: i_min, i_max, j_min or j_max.
    type : str
        "wall" or "patch".
    cells_i, cells_j : ndarray of int
        Indices of the patch-adjacent cells.
    Sf : ndarray, shape (n, 2)
        Outward face normals scaled by face length.
    magSf : ndarray, shape (n,)
        Face lengths.
    delta_coeffs : ndarray, shape (n,)
        Inverse normal distance from the adjacent cell centre to the face.
    face_centres : ndarray, shape (n, 2)
    """

    name: str
    side: str
    type: str
    cells_i: np.ndarray = field(repr=False)
    cells_j: np.ndarray = field(repr=False)
    Sf: np.ndarray = field(repr=False)
    magSf: np.ndarray = field(repr=False)
    delta_coeffs: np.ndarray = field(repr=False)
    face_centres: np.ndarray = field(repr=False)
    _nj: int = field(default=0, repr=False)   # NJ of the owning mesh

    @property
    def size(self) -> int:
        return len(self.magSf)

    @property
    def nf(self) -> np.ndarray:
        """Outward unit normals."""
        return self.Sf / self.magSf[:, None]

    @property
    def is_wall(self) -> bool:
        return self.type == "wall"

    @property
    def face_cells(self) -> np.ndarray:
        """Flat indices of the patch-adjacent cells."""
        return self.cells_i * self._nj + self.cells_j


class StructuredMesh:
    """
    Single-block structured mesh.

    Parameters
    ----------
    X, Y : ndarray, shape (NI+1, NJ+1)
        Node coordinates.
    patches : dict
        Maps each block side to ``(name, type)``. All four sides must be
        given.

    Example
    -------
    >>> mesh = StructuredMesh.channel(length=1.0, height=0.1, NI=20, NJ=40)
    >>> mesh.patch("bottom").is_wall
    True
    """

    def __init__(self, X: np.ndarray, Y: np.ndarray, patches: Dict[str, tuple]):
        missing = [s for s in SIDES if s not in patches]
        if missing:
            raise ConfigurationError(f"Mesh patches missing for sides: {missing}")

        names = [patches[s][0] for s in SIDES]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate patch names: {names}")
        for side in SIDES:
            if patches[side][1] not in PATCH_TYPES:
                raise ConfigurationError(
                    f"Patch '{patches[side][0]}': unknown type '{patches[side][1]}'. "
                    f"Supported: {PATCH_TYPES}")

        wall_sides = [s for s in SIDES if patches[s][1] == "wall"]
        self.X = np.asarray(X, dtype=np.float64)
        self.Y = np.asarray(Y, dtype=np.float64)
        computer = MetricComputer(self.X, self.Y, wall_sides)
        self.metrics: FVMMetrics = computer.compute()
        self.gcl = computer.validate_gcl()
        if not self.gcl.passed:
            logger.warning(f"{self.gcl}")

        self.NI = self.metrics.NI
        self.NJ = self.metrics.NJ

        self._patches: List[BoundaryPatch] = [
            self._build_patch(side, *patches[side]) for side in SIDES
        ]
        self._by_name = {p.name: p for p in self._patches}
        self._by_side = {p.side: p for p in self._patches}

    def _build_patch(self, side: str, name: str, ptype: str) -> BoundaryPatch:
        m = self.metrics
        NI, NJ = m.NI, m.NJ
        if side == I_MIN:
            ci, cj = np.zeros(NJ, dtype=np.int64), np.arange(NJ)
            Sx, Sy = -m.Si_x[0, :], -m.Si_y[0, :]
            delta = m.delta_i[0, :]
            fc = np.stack([m.xfi[0, :], m.yfi[0, :]], axis=-1)
        elif side == I_MAX:
            ci, cj = np.full(NJ, NI - 1, dtype=np.int64), np.arange(NJ)
            Sx, Sy = m.Si_x[-1, :], m.Si_y[-1, :]
            delta = m.delta_i[-1, :]
            fc = np.stack([m.xfi[-1, :], m.yfi[-1, :]], axis=-1)
        elif side == J_MIN:
            ci, cj = np.arange(NI), np.zeros(NI, dtype=np.int64)
            Sx, Sy = -m.Sj_x[:, 0], -m.Sj_y[:, 0]
            delta = m.delta_j[:, 0]
            fc = np.stack([m.xfj[:, 0], m.yfj[:, 0]], axis=-1)
        else:
            ci, cj = np.arange(NI), np.full(NI, NJ - 1, dtype=np.int64)
            Sx, Sy = m.Sj_x[:, -1], m.Sj_y[:, -1]
            delta = m.delta_j[:, -1]
            fc = np.stack([m.xfj[:, -1], m.yfj[:, -1]], axis=-1)

        Sf = np.stack([Sx, Sy], axis=-1)
        return BoundaryPatch(
            name=name, side=side, type=ptype,
            cells_i=ci, cells_j=cj,
            Sf=Sf, magSf=np.sqrt(Sx**2 + Sy**2),
            delta_coeffs=np.array(delta), face_centres=fc,
            _nj=NJ,
        )

    # ------------------------------------------------------------------
    # Patches
    # ------------------------------------------------------------------

    @property
    def boundary(self) -> List[BoundaryPatch]:
        """Patches in side order (i_min, i_max, j_min, j_max)."""
        return list(self._patches)

    def patch(self, name: str) -> BoundaryPatch:
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown patch '{name}'. Available: {list(self._by_name)}") from None

    def patch_on_side(self, side: str) -> BoundaryPatch:
        return self._by_side[side]

    @property
    def patch_names(self) -> List[str]:
        return [p.name for p in self._patches]

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def n_cells(self) -> int:
        return self.NI * self.NJ

    @property
    def volume(self) -> np.ndarray:
        return self.metrics.volume

    @property
    def cell_centres(self) -> np.ndarray:
        """Cell centres, shape (NI, NJ, 2)."""
        return np.stack([self.metrics.xc, self.metrics.yc], axis=-1)

    @property
    def wall_distance(self) -> np.ndarray:
        return self.metrics.wall_distance

    @property
    def max_cell_extent(self) -> np.ndarray:
        """Maximum normal cell-centre to face-centre distance, shape (NI, NJ)."""
        return self.metrics.hmax

    @property
    def has_walls(self) -> bool:
        return any(p.is_wall for p in self._patches)

    def cell_index(self, i, j):
        return i * self.NJ + j

    def __repr__(self) -> str:
        return (f"StructuredMesh({self.NI}x{self.NJ}, patches="
                f"{[(p.name, p.type) for p in self._patches]})")

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    @classmethod
    def channel(cls, length: float = 1.0, height: float = 0.1,
                NI: int = 40, NJ: int = 60, grading: float = 1.0,
                walls: Sequence[str] = ("bottom", "top")) -> "StructuredMesh":
        """
        Rectangular channel [0, length] x [0, height].

        Patches: ``inlet`` (i_min), ``outlet`` (i_max), ``bottom`` (j_min),
        ``top`` (j_max). Sides listed in ``walls`` are walls; cell heights
        grow geometrically by ``grading`` away from each wall.

        Parameters
        ----------
        length, height : float
            Channel dimensions.
        NI, NJ : int
            Number of cells streamwise / wall-normal.
        grading : float
            Ratio between consecutive cell heights moving away from a wall.
        walls : sequence of str
            Any of "bottom", "top".
        """
        if NI < 1 or NJ < 1:
            raise ConfigurationError(f"Mesh needs at least one cell per direction, got {NI}x{NJ}")
        if length <= 0.0 or height <= 0.0:
            raise ConfigurationError("Channel length and height must be positive")
        if grading <= 0.0:
            raise ConfigurationError(f"Grading must be positive, got {grading}")
        unknown = set(walls) - {"bottom", "top"}
        if unknown:
            raise ConfigurationError(f"Unknown channel walls {sorted(unknown)}; use 'bottom'/'top'")

        x = np.linspace(0.0, length, NI + 1)
        y = height * _graded_distribution(NJ, grading,
                                          "bottom" in walls, "top" in walls)
        X, Y = np.meshgrid(x, y, indexing='ij')

        def kind(name):
            return "wall" if name in walls else "patch"

        patches = {
            I_MIN: ("inlet", "patch"),
            I_MAX: ("outlet", "patch"),
            J_MIN: ("bottom", kind("bottom")),
            J_MAX: ("top", kind("top")),
        }
        mesh = cls(X, Y, patches)
        logger.debug(f"Channel mesh {NI}x{NJ}, grading {grading}, walls {list(walls)}")
        return mesh

    @classmethod
    def from_config(cls, config) -> "StructuredMesh":
        """Build a channel mesh from a :class:`ChannelMeshConfig`."""
        return cls.channel(length=config.length, height=config.height,
                           NI=config.NI, NJ=config.NJ, grading=config.grading,
                           walls=tuple(config.walls))


def _graded_distribution(n: int, ratio: float, low_wall: bool, high_wall: bool) -> np.ndarray:
    """Node positions in [0, 1] with cell sizes growing away from the walls."""
    k = np.arange(n, dtype=np.float64)
    if low_wall and high_wall:
        power = np.minimum(k, n - 1 - k)
    elif low_wall:
        power = k
    elif high_wall:
        power = n - 1 - k
    else:
        power = np.zeros(n)
    widths = ratio ** power
    nodes = np.concatenate([[0.0], np.cumsum(widths)])
    return nodes / nodes[-1]
