"""
Wray-Agarwal closure engine.

One engine runs every member of the model family; the differences
(bounded destruction, hybrid RANS/LES length scale) come from the
:class:`~wray_agarwal.models.variants.ClosureVariant` it is built with.

Per call of :meth:`WrayAgarwalModel.correct`:

    1. strain rate S, grad S, grad Rnu and the blend weight f1
    2. blended coefficients C1, sigmaR
    3. hybrid variants: fdes, LES indicator and face blending factors
    4. assemble and solve the Rnu equation
    5. clip Rnu at zero, correct its boundary values
    6. nut = fmu * Rnu
"""

from typing import Dict, Optional

import numpy as np
from loguru import logger

from wray_agarwal.config.loader import parse_coeffs, parse_delta
from wray_agarwal.config.schema import SolverControls
from wray_agarwal.constants import SCALAR, VECTOR, VSMALL
from wray_agarwal.errors import ConfigurationError, FieldLookupError, ModelError
from wray_agarwal.fields import VolScalarField, SurfaceScalarField
from wray_agarwal.numerics import (
    compute_gradient, compute_gradient_zero_flux,
    interpolate_arrays, interpolate_cells, ScalarTransportEquation,
)
from wray_agarwal.physics import wray_agarwal as wa
from wray_agarwal.physics.jax_config import get_device_info
from wray_agarwal.utils.logging import log_field_range
from .variants import ClosureVariant


# Face blending factors published by the hybrid variants, one per
# transported quantity of the outer solver
BLENDING_FIELDS = (
    "UBlendingFactor",
    "RnuBlendingFactor",
    "pBlendingFactor",
    "KBlendingFactor",
    "eBlendingFactor",
    "hBlendingFactor",
)


class WrayAgarwalModel:
    """
    Wray-Agarwal eddy-viscosity closure.

    Parameters
    ----------
    variant : ClosureVariant
        Model flavour (see :func:`wray_agarwal.models.create_model`).
    properties : TurbulenceProperties
        Configuration source holding ``<TypeName>Coeffs`` (and the delta
        block for hybrid variants).
    mesh : StructuredMesh
    registry : FieldRegistry
        Must hold ``U`` (vector), ``phi`` (surface) and ``Rnu`` (scalar).
        The model registers the fields it owns in it.
    nu : float
        Molecular kinematic viscosity.
    controls : SolverControls, optional
        Time step, relaxation and linear solver settings.

    Raises
    ------
    ConfigurationError
        On malformed coefficients or a missing required field.
    FieldTypeError
        If a required field has the wrong rank.
    """

    def __init__(self, variant: ClosureVariant, properties, mesh, registry,
                 nu: float, controls: Optional[SolverControls] = None,
                 U_name: str = "U", phi_name: str = "phi", Rnu_name: str = "Rnu"):
        self.variant = variant
        logger.info(f"Selecting turbulence model type {self.type_name}")
        if not nu > 0.0:
            raise ConfigurationError(f"Molecular viscosity must be positive, got {nu}")

        self.properties = properties
        self.mesh = mesh
        self.registry = registry
        self.nu = float(nu)
        self.controls = controls if controls is not None else SolverControls()

        # Parsed before any field is registered
        self._coeffs = self._read_coeffs()
        self._delta = self._read_delta()

        # Borrowed fields
        self.U = self._borrow(U_name, VECTOR)
        self.phi = self._borrow_surface(phi_name)
        self.Rnu = self._borrow(Rnu_name, SCALAR)
        self.y = mesh.wall_distance.view()
        self.y.setflags(write=False)

        taken = [name for name in self._owned_names() if name in registry]
        if taken:
            raise ConfigurationError(
                f"{self.type_name}: fields {taken} are already registered")

        # Owned fields
        self.nut = self._own(VolScalarField("nut", mesh))
        self.f1 = self._own(VolScalarField.uniform("f1", mesh, 0.0, "zeroGradient"))
        self.C1 = np.zeros((mesh.NI, mesh.NJ))
        self.sigmaR = np.zeros((mesh.NI, mesh.NJ))
        self.S = np.zeros((mesh.NI, mesh.NJ))

        self.fdes = None
        self.out_delta = None
        self.blendfactor = None
        self.blending_factors: Dict[str, SurfaceScalarField] = {}
        if variant.is_hybrid:
            self.fdes = self._own(VolScalarField.uniform("fdes", mesh, 1.0, "zeroGradient"))
            self.out_delta = self._own(VolScalarField("outDelta", mesh, self._filter_width()))
            self.blendfactor = self._own(VolScalarField.uniform("blendfactor", mesh, 0.0, "zeroGradient"))
            for name in BLENDING_FIELDS:
                self.blending_factors[name] = self._own(SurfaceScalarField(name, mesh))

        self.last_performance = None
        self._update_nut()

        logger.debug(f"Closure kernels on JAX devices: {get_device_info()}")
        if properties.print_coeffs:
            self.print_coeffs()

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def _borrow(self, name: str, rank: int):
        try:
            return self.registry.lookup(name, rank=rank)
        except FieldLookupError as err:
            raise ConfigurationError(
                f"{self.type_name}: required field '{name}' is not registered") from err

    def _borrow_surface(self, name: str):
        try:
            return self.registry.lookup_surface(name)
        except FieldLookupError as err:
            raise ConfigurationError(
                f"{self.type_name}: required flux field '{name}' is not registered") from err

    def _owned_names(self):
        names = ["nut", "f1"]
        if self.variant.is_hybrid:
            names += ["fdes", "outDelta", "blendfactor", *BLENDING_FIELDS]
        return names

    def _own(self, field):
        return self.registry.register(field)

    def _read_coeffs(self):
        block = self.properties.coeffs(self.variant.type_name)
        return parse_coeffs(self.variant.coeffs_cls, block, self.variant.coeffs_block)

    def _read_delta(self):
        if not self.variant.is_hybrid:
            return None
        return parse_delta(self.properties.to_dict())

    def _filter_width(self) -> np.ndarray:
        return self._delta.deltaCoeff * self.mesh.max_cell_extent

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def type_name(self) -> str:
        return self.variant.type_name

    @property
    def kind(self):
        return self.variant.kind

    @property
    def coeffs(self):
        """Current coefficient record (derived C2ke/C2kw as properties)."""
        return self._coeffs

    @property
    def delta(self):
        return self._delta

    def print_coeffs(self) -> None:
        """Log the coefficient block (including derived values)."""
        logger.info(f"{self.variant.coeffs_block}")
        for key, value in self._coeffs.summary().items():
            logger.info(f"    {key:<10} {value:.6g}")
        if self._delta is not None:
            logger.info(f"    delta      {self._delta.delta} (deltaCoeff {self._delta.deltaCoeff:g})")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def read(self) -> bool:
        """
        Re-read the coefficient block (and delta block) from the source.

        Returns
        -------
        bool
            True if any coefficient changed. New values apply from the
            next :meth:`correct`.
        """
        self.properties.reread()
        coeffs = self._read_coeffs()
        delta = self._read_delta()

        changed = coeffs != self._coeffs or delta != self._delta
        if changed:
            logger.warning(f"{self.type_name}: coefficients changed on re-read")
            self._coeffs = coeffs
            self._delta = delta
            if delta is not None:
                self.out_delta.values[...] = self._filter_width()
            if self.properties.print_coeffs:
                self.print_coeffs()
        return changed

    # ------------------------------------------------------------------
    # Hybrid RANS/LES
    # ------------------------------------------------------------------

    def _require_hybrid(self, what: str):
        if not self.variant.is_hybrid:
            raise ModelError(f"{what} is only available on hybrid variants, not {self.type_name}")

    def calc_fdes(self, S: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Update ``fdes`` and ``outDelta`` from the current Rnu and strain rate.

        Returns
        -------
        fdes : ndarray (NI, NJ)
        """
        self._require_hybrid("calc_fdes")
        if S is None:
            S = self.S
        c = self._coeffs
        Delta = self._filter_width()
        self.out_delta.values[...] = Delta

        l_rans = np.asarray(wa.rans_length_scale(self.Rnu.values, S, c.kappa))
        l_les = c.CDES * Delta
        self.fdes.values[...] = self.variant.hybrid.fdes(l_rans, l_les, c)
        self.fdes.correct_boundary_conditions()
        self.out_delta.correct_boundary_conditions()
        return self.fdes.values

    def blend_factor(self) -> VolScalarField:
        """LES indicator from the current fdes: 1 in LES cells, 0 in RANS cells."""
        self._require_hybrid("blend_factor")
        self.blendfactor.values[...] = self.variant.hybrid.indicator(self.fdes.values)
        self.blendfactor.correct_boundary_conditions()
        return self.blendfactor

    def calc_blend_factors(self) -> Dict[str, SurfaceScalarField]:
        """Interpolate the LES indicator onto the faces for each blended quantity."""
        self._require_hybrid("calc_blend_factors")
        faces = interpolate_cells(self.mesh, self.blendfactor.values)
        for field in self.blending_factors.values():
            field.assign(faces)
        return self.blending_factors

    def les_region(self) -> np.ndarray:
        """
        Read-only copy of the LES indicator (1 = LES, 0 = RANS).

        Raises
        ------
        ModelError
            On RANS variants.
        """
        self._require_hybrid("les_region")
        region = np.array(self.blendfactor.values)
        region.setflags(write=False)
        return region

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def _update_nut(self) -> None:
        Cw = self._coeffs.Cw
        self.nut.values[...] = np.asarray(wa.eddy_viscosity(self.Rnu.values, self.nu, Cw))
        for patch in self.mesh.boundary:
            pf = self.nut.boundary_field[patch.name]
            pf.value = np.asarray(wa.eddy_viscosity(self.Rnu.patch_values(patch), self.nu, Cw))

    def _diffusivity(self) -> SurfaceScalarField:
        """Face values of sigmaR*Rnu + nu (patch faces use the Rnu patch values)."""
        R = np.maximum(self.Rnu.values, 0.0)
        cells = self.sigmaR * R + self.nu
        boundary = {}
        for patch in self.mesh.boundary:
            R_b = np.maximum(self.Rnu.patch_values(patch), 0.0)
            boundary[patch.side] = self.sigmaR[patch.cells_i, patch.cells_j] * R_b + self.nu
        fi, fj = interpolate_arrays(self.mesh, cells, boundary)
        return SurfaceScalarField("DRnuEff", self.mesh, fi, fj)

    def correct(self) -> None:
        """Advance Rnu by one step and update nut."""
        Rnu = self.Rnu
        c = self._coeffs
        ctrl = self.controls

        Rnu.store_old_time()
        R = np.maximum(Rnu.values, 0.0)

        # Strain rate and gradients
        grad_U = compute_gradient(self.U)
        self.S[...] = np.asarray(wa.strain_rate_magnitude(grad_U))
        S = self.S
        grad_S = compute_gradient_zero_flux(self.mesh, S)
        grad_R = compute_gradient(Rnu)

        # Blend weight and blended coefficients
        f1 = np.asarray(wa.compute_f1(R, S, self.y, self.nu))
        self.f1.values[...] = f1
        self.f1.correct_boundary_conditions()
        self.C1[...] = np.asarray(wa.blend(f1, c.C1kw, c.C1ke))
        self.sigmaR[...] = np.asarray(wa.blend(f1, c.sigmakw, c.sigmake))

        # Destruction (hybrid variants scale it by 1/fdes)
        D = self.variant.destruction(c, f1, R, S, grad_S, grad_R)
        if self.variant.is_hybrid:
            fdes = self.calc_fdes(S)
            self.blend_factor()
            self.calc_blend_factors()
            D = D / fdes
            log_field_range("fdes", fdes)

        # Rnu equation
        eqn = ScalarTransportEquation(Rnu)
        eqn.add_ddt(ctrl.delta_t, ctrl.ddt)
        eqn.add_convection(self.phi)
        eqn.add_diffusion(self._diffusivity())
        eqn.add_su(np.asarray(wa.production(self.C1, R, S)))
        eqn.add_susp(np.asarray(wa.cross_diffusion_coeff(f1, c.C2kw, S, grad_R, grad_S)))
        eqn.add_sp(-D / np.maximum(R, VSMALL))
        eqn.relax(ctrl.relaxation)
        self.last_performance = eqn.solve(ctrl.linear_solver, ctrl.tol, ctrl.max_iter)

        # Bound, boundary values, eddy viscosity
        negative = Rnu.values < 0.0
        n_clipped = int(np.count_nonzero(negative))
        if n_clipped:
            Rnu.values[negative] = 0.0
            logger.debug(f"{Rnu.name}: clipped {n_clipped} negative cell values")
        Rnu.correct_boundary_conditions()
        self._update_nut()

        log_field_range("f1", f1)
        log_field_range(Rnu.name, Rnu.values)

    def __repr__(self) -> str:
        return f"WrayAgarwalModel({self.type_name}, {self.mesh.NI}x{self.mesh.NJ})"
