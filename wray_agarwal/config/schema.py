"""
Configuration schema for the Wray-Agarwal closure engine.

Dataclass-based configuration that can be loaded from YAML or constructed
programmatically. Model coefficient blocks follow the ``<TypeName>Coeffs``
convention of the turbulence-properties dictionary.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any

from wray_agarwal import constants as C


@dataclass(frozen=True)
class WrayAgarwalCoeffs:
    """WA-2017 coefficients.

    The two destruction coefficients are derived, never read:
        C2ke = C1ke / kappa^2 + sigmake
        C2kw = C1kw / kappa^2 + sigmakw
    """

    kappa: float = C.KAPPA
    Cw: float = C.CW
    C1ke: float = C.C1KE       # k-epsilon branch (far field)
    C1kw: float = C.C1KW       # k-omega branch (near wall)
    sigmake: float = C.SIGMAKE
    sigmakw: float = C.SIGMAKW

    # Coefficients that must be strictly positive
    _positive = ('kappa', 'Cw', 'sigmake', 'sigmakw')
    # Coefficients that must lie below one
    _below_one = ()

    @property
    def C2ke(self) -> float:
        return self.C1ke / self.kappa ** 2 + self.sigmake

    @property
    def C2kw(self) -> float:
        return self.C1kw / self.kappa ** 2 + self.sigmakw

    def to_dict(self) -> dict:
        """Flat coefficient block as persisted (derived values excluded)."""
        return asdict(self)

    def summary(self) -> Dict[str, float]:
        """All coefficients including the derived ones."""
        out = self.to_dict()
        out['C2ke'] = self.C2ke
        out['C2kw'] = self.C2kw
        return out


@dataclass(frozen=True)
class BoundedCoeffs(WrayAgarwalCoeffs):
    """WA-2017m: adds the bound on the second destruction term."""

    Cm: float = C.CM

    _positive = WrayAgarwalCoeffs._positive + ('Cm',)


@dataclass(frozen=True)
class DESCoeffs(WrayAgarwalCoeffs):
    """WA-2017 DES: adds the DES length-scale coefficient."""

    CDES: float = C.CDES

    _positive = WrayAgarwalCoeffs._positive + ('CDES',)


@dataclass(frozen=True)
class DITCoeffs(DESCoeffs):
    """WA-2017 DES-DIT: adds the fixed LES-branch value of fdes."""

    fdesLES: float = C.FDES_LES

    _positive = DESCoeffs._positive + ('fdesLES',)
    _below_one = ('fdesLES',)


@dataclass(frozen=True)
class DeltaConfig:
    """LES filter width: delta = deltaCoeff * (max cell-centre to face distance)."""

    delta: str = "maxDeltaxyz"
    deltaCoeff: float = C.DELTA_COEFF


@dataclass
class SolverControls:
    """Controls for the implicit Rnu solve."""

    # "Euler" (implicit first order) or "steadyState" (no time derivative)
    ddt: str = "Euler"
    delta_t: float = 1e-3
    relaxation: float = 1.0       # Equation under-relaxation (OpenFOAM style)

    # "bicgstab" (scipy iterative, ILU-preconditioned) or "direct" (spsolve)
    linear_solver: str = "bicgstab"
    tol: float = 1e-10
    max_iter: int = 1000


@dataclass
class ChannelMeshConfig:
    """Structured channel block between two walls."""

    length: float = 1.0
    height: float = 0.1
    NI: int = 40
    NJ: int = 60
    grading: float = 1.1       # Geometric growth ratio away from each wall
    walls: List[str] = field(default_factory=lambda: ["bottom", "top"])


@dataclass
class FlowConfig:
    """Frozen mean flow used to drive the closure."""

    nu: float = 1.5e-5         # Molecular kinematic viscosity
    u_bulk: float = 1.0
    # "power_law" (1/7th), "parabolic" or "uniform"
    profile: str = "power_law"


@dataclass
class OutputConfig:
    """Output configuration."""

    directory: str = "output/closure"
    case_name: str = "channel"
    write_interval: int = 0    # 0 = final step only
    print_freq: int = 10


@dataclass
class RunConfig:
    """Run length."""

    steps: int = 100


@dataclass
class CaseConfig:
    """Complete case: mesh, flow, turbulence, solver and output sections.

    ``turbulence`` is kept as a raw mapping because its coefficient blocks
    are keyed by model type name (``<TypeName>Coeffs``); it is wrapped by
    :class:`~wray_agarwal.config.properties.TurbulenceProperties`.
    ``fields`` maps field names (``Rnu`` and any field referenced by a
    boundary condition) to ``{internalField, boundaryField}`` mappings.
    """

    mesh: ChannelMeshConfig = field(default_factory=ChannelMeshConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    turbulence: Dict[str, Any] = field(default_factory=lambda: {"model": "WrayAgarwal2017"})
    solver: SolverControls = field(default_factory=SolverControls)
    run: RunConfig = field(default_factory=RunConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    fields: Dict[str, Any] = field(default_factory=dict)
    log_level: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)
