"""
Wray-Agarwal Turbulence Model Functions.

Point-wise pieces of the Wray-Agarwal (WA-2017) one-equation closure for the
eddy-viscosity surrogate Rnu, compiled with JAX.

Dimension Agnostic:
    All functions work with any array shape (scalars, 1D profiles, 2D
    fields). Vector arguments carry their components on the last axis and
    velocity gradients on the last two axes, grad_U[..., c, d] = dU_c/dx_d.

Equation:
    DRnu/Dt = div((sigmaR*Rnu + nu) grad Rnu)
            + C1 Rnu S
            + f1 C2kw (Rnu/S) grad Rnu . grad S
            - (1 - f1) C2ke Rnu^2 |grad S|^2 / S^2

    with C1 and sigmaR blended between the k-omega (near wall) and
    k-epsilon (far field) values by the switching function f1.

Robustness:
    Every ratio is floored so degenerate inputs (zero strain rate, zero
    wall distance, Rnu <= 0) give finite results:
    - S is floored at S_MIN
    - Rnu enters through max(Rnu, 0)
    - the wall distance is clipped to [0, Y_MAX] so cells far from any
      wall (or with no wall at all) behave as far field

References:
    Wray, T. J. and Agarwal, R. K., "Low-Reynolds-Number One-Equation
    Turbulence Model Based on k-omega Closure", AIAA Journal 53(8), 2015.
    NASA Turbulence Modeling Resource, WA-2017 model page.
"""

from wray_agarwal.physics.jax_config import jax, jnp
from wray_agarwal.constants import (
    SMALL, S_MIN, NU_MIN, F1_MAX, F1_RNU_FACTOR, F1_NU_FACTOR,
)


# Wall distances beyond this are treated as "no wall"
Y_MAX = 1e30


@jax.jit
def strain_rate_magnitude(grad_U):
    """
    Strain rate magnitude S = sqrt(2 Sij Sij), floored at S_MIN.

    Parameters
    ----------
    grad_U : jnp.ndarray (..., 2, 2)
        Velocity gradient, grad_U[..., c, d] = dU_c/dx_d.

    Returns
    -------
    S : jnp.ndarray (...)
    """
    symm = 0.5 * (grad_U + jnp.swapaxes(grad_U, -1, -2))
    S = jnp.sqrt(2.0 * jnp.sum(symm**2, axis=(-2, -1)))
    return jnp.maximum(S, S_MIN)


@jax.jit
def compute_f1(Rnu, S, y, nu):
    """
    Wray-Agarwal switching function f1 (1 near walls, 0 in the far field).

        arg1 = (1 + y sqrt(Rnu S)/nu) / (1 + (max(y sqrt(Rnu S), 1.5 Rnu) / (20 nu))^2)
        f1   = min(tanh(arg1^4), 0.9)

    Parameters
    ----------
    Rnu : jnp.ndarray
        Eddy-viscosity surrogate (negative values are clipped).
    S : jnp.ndarray
        Strain rate magnitude.
    y : jnp.ndarray
        Wall distance (may be 0 or inf).
    nu : float or jnp.ndarray
        Molecular kinematic viscosity.

    Returns
    -------
    f1 : jnp.ndarray
        Blend weight in [0, 0.9].
    """
    R = jnp.maximum(Rnu, 0.0)
    S = jnp.maximum(S, S_MIN)
    y = jnp.clip(y, 0.0, Y_MAX)
    nu = jnp.maximum(nu, NU_MIN)

    ysr = y * jnp.sqrt(R * S)
    num = 1.0 + ysr / nu
    den = 1.0 + (jnp.maximum(ysr, F1_RNU_FACTOR * R) / (F1_NU_FACTOR * nu))**2
    arg1 = num / den

    return jnp.minimum(jnp.tanh(arg1**4), F1_MAX)


@jax.jit
def blend(f1, value_kw, value_ke):
    """Blend a coefficient: f1 (value_kw - value_ke) + value_ke."""
    return f1 * (value_kw - value_ke) + value_ke


@jax.jit
def production(C1, Rnu, S):
    """Production C1 Rnu S (explicit source)."""
    return C1 * jnp.maximum(Rnu, 0.0) * S


@jax.jit
def cross_diffusion_coeff(f1, C2kw, S, grad_Rnu, grad_S):
    """
    Coefficient c of the cross-diffusion term written as c * Rnu.

        c = f1 C2kw (grad Rnu . grad S) / S

    Negative c is treated implicitly by the caller.
    """
    S = jnp.maximum(S, S_MIN)
    dot = jnp.sum(grad_Rnu * grad_S, axis=-1)
    return f1 * C2kw * dot / S


@jax.jit
def wa_destruction(f1, C2ke, Rnu, S, grad_S):
    """
    Destruction term (1 - f1) C2ke Rnu^2 |grad S|^2 / S^2.

    Returns
    -------
    D : jnp.ndarray
        Non-negative destruction rate.
    """
    R = jnp.maximum(Rnu, 0.0)
    S = jnp.maximum(S, S_MIN)
    grad_S_sq = jnp.sum(grad_S**2, axis=-1)
    return (1.0 - f1) * C2ke * R**2 * grad_S_sq / S**2


@jax.jit
def wa_bounded_destruction(f1, C2ke, Cm, Rnu, S, grad_S, grad_Rnu):
    """
    Bounded destruction (1 - f1) min(C2ke Rnu^2 |grad S|^2 / S^2, Cm |grad Rnu|^2).

    Both arguments of the min are non-negative, so the result is
    non-negative and never exceeds :func:`wa_destruction`.
    """
    R = jnp.maximum(Rnu, 0.0)
    S = jnp.maximum(S, S_MIN)
    grad_S_sq = jnp.sum(grad_S**2, axis=-1)
    grad_R_sq = jnp.sum(grad_Rnu**2, axis=-1)
    unbounded = C2ke * R**2 * grad_S_sq / S**2
    bound = Cm * grad_R_sq
    return (1.0 - f1) * jnp.minimum(unbounded, bound)


@jax.jit
def fmu(Rnu, nu, Cw):
    """
    Damping function fmu = chi^3 / (chi^3 + Cw^3), chi = Rnu/nu.
    """
    chi = jnp.maximum(Rnu, 0.0) / jnp.maximum(nu, NU_MIN)
    chi3 = chi**3
    return chi3 / (chi3 + Cw**3)


@jax.jit
def eddy_viscosity(Rnu, nu, Cw):
    """
    Turbulent viscosity nut = fmu * Rnu.

    Parameters
    ----------
    Rnu : jnp.ndarray
        Eddy-viscosity surrogate (any shape).
    nu : float
        Molecular kinematic viscosity.
    Cw : float
        Damping constant.

    Returns
    -------
    nut : jnp.ndarray
        Turbulent viscosity (same shape as Rnu), non-negative.
    """
    return fmu(Rnu, nu, Cw) * jnp.maximum(Rnu, 0.0)


@jax.jit
def rans_length_scale(Rnu, S, kappa):
    """RANS length scale l_RANS = sqrt(Rnu/S) / kappa."""
    S = jnp.maximum(S, S_MIN)
    return jnp.sqrt(jnp.maximum(Rnu, 0.0) / S) / kappa


@jax.jit
def fdes_des(l_rans, l_les):
    """
    DES ratio fdes = l_LES / max(l_RANS, l_LES), in (0, 1].

    fdes = 1 selects RANS, fdes < 1 the LES branch.
    """
    return l_les / jnp.maximum(jnp.maximum(l_rans, l_les), SMALL)


@jax.jit
def fdes_dit(l_les, fdes_les):
    """
    Forced-LES ratio: the constant fdes_les (< 1) in every cell.

    Independent of the local strain rate and cell size; the destruction
    term is amplified by 1/fdes_les everywhere.
    """
    return jnp.full(jnp.shape(l_les), fdes_les, dtype=jnp.float64)


@jax.jit
def les_indicator(fdes):
    """1 where the LES branch is active (fdes < 1), 0 elsewhere."""
    return jnp.where(fdes < 1.0, 1.0, 0.0)
