"""
Tests for ScalarTransportEquation (wray_agarwal/numerics/fv_matrix.py).

Every case has a closed-form discrete solution:
1. Steady diffusion between two fixed values: linear profile
2. Euler decay with an implicit sink: x1 = x0 / (1 + k dt)
3. Upwind convection from a fixed inlet value: uniform field
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from wray_agarwal.errors import ConfigurationError
from wray_agarwal.fields import FieldRegistry, VolScalarField, VolVectorField, SurfaceScalarField
from wray_agarwal.numerics import ScalarTransportEquation, SolverPerformance, flux


def scalar_field(mesh, value, inlet=None, outlet=None):
    entries = {p.name: {'type': 'zeroGradient'} for p in mesh.boundary}
    if inlet is not None:
        entries["inlet"] = {'type': 'fixedValue', 'value': inlet}
    if outlet is not None:
        entries["outlet"] = {'type': 'fixedValue', 'value': outlet}
    return VolScalarField.from_dict("T", mesh, {'internalField': value, 'boundaryField': entries})


def unit_diffusivity(mesh):
    return SurfaceScalarField("gamma", mesh,
                              np.ones((mesh.NI + 1, mesh.NJ)), np.ones((mesh.NI, mesh.NJ + 1)))


class TestDiffusion:

    @pytest.mark.parametrize("solver", ["direct", "bicgstab"])
    def test_linear_steady_profile(self, uniform_mesh, solver):
        T = scalar_field(uniform_mesh, 0.3, inlet=1.0, outlet=0.0)
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(1.0, "steadyState")
        eqn.add_diffusion(unit_diffusivity(uniform_mesh))
        perf = eqn.solve(solver, tol=1e-12)

        assert perf.converged
        assert_allclose(T.values, 1.0 - uniform_mesh.metrics.xc, rtol=1e-8, atol=1e-10)

    def test_matrix_is_symmetric(self, stretched_mesh):
        T = scalar_field(stretched_mesh, 0.0, inlet=1.0)
        eqn = ScalarTransportEquation(T)
        eqn.add_diffusion(unit_diffusivity(stretched_mesh))
        A = eqn.matrix()
        assert abs(A - A.T).max() < 1e-12

    def test_calculated_patch_is_rejected(self, uniform_mesh):
        T = VolScalarField.uniform("T", uniform_mesh, 1.0)
        eqn = ScalarTransportEquation(T)
        with pytest.raises(ConfigurationError, match="calculated"):
            eqn.add_diffusion(unit_diffusivity(uniform_mesh))


class TestSources:

    def test_euler_implicit_decay(self, uniform_mesh):
        dt, k = 0.1, 4.0
        T = scalar_field(uniform_mesh, 2.0)
        T.store_old_time()
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(dt)
        eqn.add_sp(np.full((uniform_mesh.NI, uniform_mesh.NJ), -k))
        eqn.solve("direct")
        assert_allclose(T.values, 2.0 / (1.0 + k * dt), rtol=1e-12)

    def test_explicit_source(self, uniform_mesh):
        dt = 0.5
        T = scalar_field(uniform_mesh, 1.0)
        T.store_old_time()
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(dt)
        eqn.add_su(np.full((uniform_mesh.NI, uniform_mesh.NJ), 3.0))
        eqn.solve("direct")
        assert_allclose(T.values, 1.0 + 3.0 * dt, rtol=1e-12)

    def test_susp_splits_on_sign(self, uniform_mesh):
        dt = 0.1
        coeff = np.full((uniform_mesh.NI, uniform_mesh.NJ), 2.0)
        coeff[:, ::2] = -2.0
        T = scalar_field(uniform_mesh, 1.0)
        T.store_old_time()
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(dt)
        eqn.add_susp(coeff)

        # No coupling without convection or diffusion: each cell is independent
        eqn.solve("direct")
        assert_allclose(T.values[:, 1::2], 1.0 + 2.0 * dt, rtol=1e-12)
        assert_allclose(T.values[:, ::2], 1.0 / (1.0 + 2.0 * dt), rtol=1e-12)

    def test_relaxation_keeps_fixed_point(self, uniform_mesh):
        T = scalar_field(uniform_mesh, 0.5, inlet=0.5, outlet=0.5)
        eqn = ScalarTransportEquation(T)
        eqn.add_diffusion(unit_diffusivity(uniform_mesh))
        eqn.relax(0.7)
        eqn.solve("direct")
        assert_allclose(T.values, 0.5, rtol=1e-10)


class TestConvection:

    def test_upwind_carries_inlet_value(self, uniform_mesh):
        U = VolVectorField.uniform("U", uniform_mesh, [1.0, 0.0], "zeroGradient")
        T = scalar_field(uniform_mesh, 0.0, inlet=1.0)
        eqn = ScalarTransportEquation(T)
        eqn.add_convection(flux(U))
        eqn.solve("direct")
        assert_allclose(T.values, 1.0, rtol=1e-12)

    def test_reversed_flow_uses_outlet(self, uniform_mesh):
        U = VolVectorField.uniform("U", uniform_mesh, [-1.0, 0.0], "zeroGradient")
        T = scalar_field(uniform_mesh, 0.0, inlet=1.0, outlet=3.0)
        eqn = ScalarTransportEquation(T)
        eqn.add_convection(flux(U))
        eqn.solve("direct")
        assert_allclose(T.values, 3.0, rtol=1e-12)


class TestSolverInterface:

    def test_performance_record(self, uniform_mesh):
        T = scalar_field(uniform_mesh, 1.0)
        T.store_old_time()
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(1.0)
        perf = eqn.solve("bicgstab")
        assert isinstance(perf, SolverPerformance)
        assert perf.field == "T"
        assert "Solving for T" in str(perf)
        assert eqn.residual() < 1e-8

    def test_unknown_ddt_scheme(self, uniform_mesh):
        eqn = ScalarTransportEquation(scalar_field(uniform_mesh, 1.0))
        with pytest.raises(ValueError, match="ddt"):
            eqn.add_ddt(1.0, "CrankNicolson")

    def test_non_positive_time_step(self, uniform_mesh):
        eqn = ScalarTransportEquation(scalar_field(uniform_mesh, 1.0))
        with pytest.raises(ValueError):
            eqn.add_ddt(0.0)

    @pytest.mark.parametrize("alpha", [0.0, 1.5])
    def test_bad_relaxation(self, uniform_mesh, alpha):
        eqn = ScalarTransportEquation(scalar_field(uniform_mesh, 1.0))
        with pytest.raises(ValueError):
            eqn.relax(alpha)

    def test_unknown_solver(self, uniform_mesh):
        T = scalar_field(uniform_mesh, 1.0)
        eqn = ScalarTransportEquation(T)
        eqn.add_ddt(1.0)
        with pytest.raises(ValueError, match="linear solver"):
            eqn.solve("gmres")


class TestBoundaryCoefficients:

    def test_assembly_refreshes_field_driven_gradient(self, uniform_mesh):
        registry = FieldRegistry()
        ks = registry.register(
            VolScalarField("ks", uniform_mesh, np.full((uniform_mesh.NI, uniform_mesh.NJ), 1e-4)))
        entries = {p.name: {'type': 'zeroGradient'} for p in uniform_mesh.boundary}
        entries["bottom"] = {'type': 'fieldBasedGradient', 'field': 'ks', 'gradCoeff': 2.0}
        T = registry.register(VolScalarField.from_dict(
            "T", uniform_mesh, {'internalField': 1.0, 'boundaryField': entries}))
        T.correct_boundary_conditions()
        pf = T.boundary_field["bottom"]
        assert_allclose(pf.gradient, 2e-4)

        ks.values[...] = 1e-2
        ScalarTransportEquation(T)
        assert_allclose(pf.gradient, 2e-2)
        assert_allclose(pf.gradient_boundary_coeffs(), 2e-2)

    def test_wall_flux_enters_source(self, uniform_mesh):
        registry = FieldRegistry()
        registry.register(
            VolScalarField("ks", uniform_mesh, np.ones((uniform_mesh.NI, uniform_mesh.NJ))))
        entries = {p.name: {'type': 'zeroGradient'} for p in uniform_mesh.boundary}
        entries["bottom"] = {'type': 'fieldBasedGradient', 'field': 'ks', 'gradCoeff': 1.0}
        T = registry.register(VolScalarField.from_dict(
            "T", uniform_mesh, {'internalField': 0.0, 'boundaryField': entries}))

        eqn = ScalarTransportEquation(T)
        eqn.add_diffusion(unit_diffusivity(uniform_mesh))
        # gamma * gradient * |Sf| enters every bottom cell
        bottom = uniform_mesh.patch("bottom")
        assert np.all(eqn.source[bottom.cells_i, bottom.cells_j] > 0.0)
