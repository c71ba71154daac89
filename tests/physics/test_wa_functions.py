"""
Tests for the point-wise Wray-Agarwal functions (wray_agarwal/physics/wray_agarwal.py).
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from wray_agarwal.config.schema import WrayAgarwalCoeffs, BoundedCoeffs
from wray_agarwal.constants import S_MIN, F1_MAX
from wray_agarwal.physics import wray_agarwal as wa
from wray_agarwal.physics.jax_config import jax, jnp


NU = 1.5e-5


class TestStrainRate:

    def test_simple_shear(self):
        grad_U = np.zeros((4, 2, 2))
        grad_U[:, 0, 1] = [1.0, -2.0, 10.0, 0.5]
        S = np.asarray(wa.strain_rate_magnitude(grad_U))
        assert_allclose(S, [1.0, 2.0, 10.0, 0.5], rtol=1e-12)

    def test_pure_rotation_is_floored(self):
        grad_U = np.array([[[0.0, 1.0], [-1.0, 0.0]]])
        S = np.asarray(wa.strain_rate_magnitude(grad_U))
        assert_allclose(S, S_MIN)

    def test_plane_strain(self):
        grad_U = np.array([[[1.0, 0.0], [0.0, -1.0]]])
        S = np.asarray(wa.strain_rate_magnitude(grad_U))
        assert_allclose(S, 2.0, rtol=1e-12)


class TestF1:

    def test_range_for_degenerate_inputs(self):
        R = np.array([0.0, -1.0, 1e-10, 1.0, 1e3, 0.0, 1.0])
        S = np.array([0.0, 1.0, 0.0, 1e4, 1e-20, 1.0, 1.0])
        y = np.array([0.0, 0.0, np.inf, 1e-8, 10.0, np.inf, 0.0])
        f1 = np.asarray(wa.compute_f1(R, S, y, NU))
        assert np.all(np.isfinite(f1))
        assert np.all(f1 >= 0.0)
        assert np.all(f1 <= F1_MAX)

    def test_random_inputs_bounded(self):
        rng = np.random.default_rng(0)
        R = 10.0 ** rng.uniform(-12, 0, 500)
        S = 10.0 ** rng.uniform(-6, 5, 500)
        y = 10.0 ** rng.uniform(-8, 1, 500)
        f1 = np.asarray(wa.compute_f1(R, S, y, NU))
        assert np.all((f1 >= 0.0) & (f1 <= F1_MAX))

    def test_near_wall_is_capped(self):
        f1 = float(wa.compute_f1(NU, 1e3, 1e-3, NU))
        assert f1 == pytest.approx(F1_MAX)

    def test_far_field_vanishes(self):
        f1 = float(wa.compute_f1(1e-2, 10.0, 1.0, NU))
        assert f1 < 1e-6

    def test_broadcasts_over_fields(self):
        shape = (3, 5)
        f1 = np.asarray(wa.compute_f1(np.full(shape, NU), np.ones(shape), np.full(shape, 1e-3), NU))
        assert f1.shape == shape


class TestBlendedCoefficients:

    def test_derived_destruction_coefficients(self):
        c = WrayAgarwalCoeffs()
        assert_allclose(c.C2ke, 1.6704, rtol=1e-4)
        assert_allclose(c.C2kw, 1.2132, rtol=1e-4)

    def test_blend_endpoints(self):
        c = WrayAgarwalCoeffs()
        assert float(wa.blend(1.0, c.C1kw, c.C1ke)) == pytest.approx(c.C1kw)
        assert float(wa.blend(0.0, c.C1kw, c.C1ke)) == pytest.approx(c.C1ke)
        assert float(wa.blend(0.5, c.sigmakw, c.sigmake)) == pytest.approx(0.86)

    def test_production(self):
        P = np.asarray(wa.production(0.1, np.array([2.0, -1.0]), np.array([3.0, 3.0])))
        assert_allclose(P, [0.6, 0.0])


class TestDestruction:

    @pytest.fixture
    def state(self):
        rng = np.random.default_rng(1)
        n = 200
        return {
            'f1': rng.uniform(0.0, 0.9, n),
            'Rnu': 10.0 ** rng.uniform(-8, -2, n),
            'S': 10.0 ** rng.uniform(-2, 4, n),
            'grad_S': rng.normal(scale=100.0, size=(n, 2)),
            'grad_Rnu': rng.normal(scale=1e-3, size=(n, 2)),
        }

    def test_unbounded_formula(self):
        c = WrayAgarwalCoeffs()
        D = float(wa.wa_destruction(0.25, c.C2ke, 2.0, 4.0, np.array([3.0, 4.0])))
        assert D == pytest.approx(0.75 * c.C2ke * 4.0 * 25.0 / 16.0)

    def test_non_negative(self, state):
        c = WrayAgarwalCoeffs()
        D = np.asarray(wa.wa_destruction(state['f1'], c.C2ke, state['Rnu'], state['S'], state['grad_S']))
        assert np.all(D >= 0.0)

    def test_bounded_never_exceeds_unbounded(self, state):
        c = BoundedCoeffs()
        D = np.asarray(wa.wa_destruction(state['f1'], c.C2ke, state['Rnu'], state['S'], state['grad_S']))
        Dm = np.asarray(wa.wa_bounded_destruction(state['f1'], c.C2ke, c.Cm, state['Rnu'],
                                                  state['S'], state['grad_S'], state['grad_Rnu']))
        assert np.all(Dm >= 0.0)
        assert np.all(Dm <= D * (1.0 + 1e-12))

    def test_bounded_vanishes_without_rnu_gradient(self, state):
        c = BoundedCoeffs()
        Dm = np.asarray(wa.wa_bounded_destruction(state['f1'], c.C2ke, c.Cm, state['Rnu'],
                                                  state['S'], state['grad_S'],
                                                  np.zeros_like(state['grad_Rnu'])))
        assert_allclose(Dm, 0.0)

    def test_zero_strain_is_finite(self):
        D = np.asarray(wa.wa_destruction(0.0, 1.67, 1e-3, 0.0, np.array([1.0, 0.0])))
        assert np.isfinite(D)

    def test_implicit_linearisation_matches_autodiff(self):
        """D is quadratic in Rnu, so dD/dRnu = 2 D / Rnu (the implicit sink uses D / Rnu)."""
        c = WrayAgarwalCoeffs()
        grad_S = jnp.array([30.0, -40.0])

        def D(R):
            return wa.wa_destruction(0.3, c.C2ke, R, 50.0, grad_S)

        for R in [1e-6, 1e-4, 1e-2]:
            dD = float(jax.grad(D)(R))
            assert dD == pytest.approx(2.0 * float(D(R)) / R, rel=1e-10)

    def test_cross_diffusion_sign(self):
        c = wa.cross_diffusion_coeff(0.5, 1.2, 2.0, np.array([1.0, 0.0]), np.array([-3.0, 0.0]))
        assert float(c) == pytest.approx(0.5 * 1.2 * -3.0 / 2.0)


class TestEddyViscosity:

    def test_damping_at_chi_one(self):
        Cw = WrayAgarwalCoeffs().Cw
        assert float(wa.fmu(NU, NU, Cw)) == pytest.approx(1.0 / (1.0 + Cw**3))

    def test_high_chi_limit(self):
        nut = float(wa.eddy_viscosity(1e3 * NU, NU, 8.54))
        assert nut == pytest.approx(1e3 * NU, rel=1e-5)

    def test_non_negative(self):
        nut = np.asarray(wa.eddy_viscosity(np.array([-1.0, 0.0, 1e-6]), NU, 8.54))
        assert nut[0] == 0.0
        assert nut[1] == 0.0
        assert nut[2] > 0.0


class TestHybridLengthScales:

    def test_rans_length_scale(self):
        assert float(wa.rans_length_scale(0.41**2, 1.0, 0.41)) == pytest.approx(1.0)

    def test_des_ratio(self):
        fdes = np.asarray(wa.fdes_des(np.array([2.0, 0.5]), np.array([1.0, 1.0])))
        assert_allclose(fdes, [0.5, 1.0])

    def test_dit_ratio_is_fixed(self):
        fdes = np.asarray(wa.fdes_dit(np.array([[1e-3, 2.0], [0.5, 1e3]]), 0.5))
        assert fdes.shape == (2, 2)
        assert_allclose(fdes, 0.5)

    def test_les_indicator(self):
        ind = np.asarray(wa.les_indicator(np.array([0.2, 1.0, 0.999])))
        assert_allclose(ind, [1.0, 0.0, 1.0])
