"""
Implicit finite-volume equation for one cell-centred scalar.

Assembles

    A x = b

cell by cell (flat index k = i*NJ + j) from time-derivative, convection,
diffusion and source contributions, then solves it with scipy.sparse.
Each operator is written in "left-hand side" form: convection adds
div(phi x), diffusion adds -div(gamma grad x), sources are on the
right-hand side (su, sp x).

Boundary contributions use the patch-field coefficients:

    x_b   = vic * x_P + vbc       (convection)
    dx/dn = gic * x_P + gbc       (diffusion)

The Laplacian uses the face-normal (orthogonal) part only.
"""

from typing import NamedTuple

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from loguru import logger

from wray_agarwal.constants import SMALL, I_MIN, I_MAX, J_MIN, J_MAX


class SolverPerformance(NamedTuple):
    """Summary of one linear solve."""

    solver: str
    field: str
    initial_residual: float
    final_residual: float
    n_iterations: int
    converged: bool

    def __str__(self) -> str:
        return (f"{self.solver}: Solving for {self.field}, Initial residual = "
                f"{self.initial_residual:.4e}, Final residual = {self.final_residual:.4e}, "
                f"No Iterations {self.n_iterations}")


class ScalarTransportEquation:
    """
    Implicit equation for a VolScalarField.

    Parameters
    ----------
    field : VolScalarField
        The unknown. Its patch fields supply the boundary coefficients.

    Example
    -------
    >>> eqn = ScalarTransportEquation(Rnu)
    >>> eqn.add_ddt(dt)
    >>> eqn.add_convection(phi)
    >>> eqn.add_diffusion(gamma)
    >>> eqn.add_sp(-destruction_rate)
    >>> perf = eqn.solve()
    """

    def __init__(self, field):
        self.field = field
        self.mesh = field.mesh
        NI, NJ = self.mesh.NI, self.mesh.NJ

        self.diag = np.zeros((NI, NJ))
        self.source = np.zeros((NI, NJ))
        # Coefficients coupling the two cells of each interior face:
        # *_lower: row of the lower-index cell, column of the upper one
        # *_upper: row of the upper-index cell, column of the lower one
        self.i_lower = np.zeros((NI - 1, NJ))
        self.i_upper = np.zeros((NI - 1, NJ))
        self.j_lower = np.zeros((NI, NJ - 1))
        self.j_upper = np.zeros((NI, NJ - 1))

        # Boundary coefficients follow the current state of their sources
        for pf in field.boundary_field.values():
            pf.update_coeffs()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _outward_flux(phi, side: str) -> np.ndarray:
        """Boundary face flux, positive out of the domain."""
        if side == I_MIN:
            return -phi.i_faces[0, :]
        if side == I_MAX:
            return phi.i_faces[-1, :]
        if side == J_MIN:
            return -phi.j_faces[:, 0]
        return phi.j_faces[:, -1]

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def add_ddt(self, delta_t: float, scheme: str = "Euler") -> None:
        """
        Time derivative. ``Euler`` uses the field's old-time values;
        ``steadyState`` adds nothing.
        """
        if scheme == "steadyState":
            return
        if scheme != "Euler":
            raise ValueError(f"Unknown ddt scheme '{scheme}'. Supported: Euler, steadyState")
        if delta_t <= 0.0:
            raise ValueError(f"delta_t must be positive, got {delta_t}")
        rdt = self.mesh.volume / delta_t
        self.diag += rdt
        self.source += rdt * self.field.old_time()

    def add_convection(self, phi) -> None:
        """First-order upwind div(phi x)."""
        Fi = phi.i_faces[1:-1, :]
        Fj = phi.j_faces[:, 1:-1]

        self.diag[:-1, :] += np.maximum(Fi, 0.0)
        self.i_lower += np.minimum(Fi, 0.0)
        self.diag[1:, :] += np.maximum(-Fi, 0.0)
        self.i_upper += -np.maximum(Fi, 0.0)

        self.diag[:, :-1] += np.maximum(Fj, 0.0)
        self.j_lower += np.minimum(Fj, 0.0)
        self.diag[:, 1:] += np.maximum(-Fj, 0.0)
        self.j_upper += -np.maximum(Fj, 0.0)

        for patch in self.mesh.boundary:
            pf = self.field.boundary_field[patch.name]
            F = self._outward_flux(phi, patch.side)
            # Inflow takes the boundary value, outflow the cell value
            vic = np.where(F >= 0.0, 1.0, pf.value_internal_coeffs())
            vbc = np.where(F >= 0.0, 0.0, pf.value_boundary_coeffs())
            ci, cj = patch.cells_i, patch.cells_j
            np.add.at(self.diag, (ci, cj), F * vic)
            np.add.at(self.source, (ci, cj), -F * vbc)

    def add_diffusion(self, gamma) -> None:
        """
        Diffusion -div(gamma grad x) with face diffusivity ``gamma``
        (a SurfaceScalarField).
        """
        m = self.mesh.metrics
        ci_ = gamma.i_faces[1:-1, :] * m.Si_mag[1:-1, :] * m.delta_i[1:-1, :]
        cj_ = gamma.j_faces[:, 1:-1] * m.Sj_mag[:, 1:-1] * m.delta_j[:, 1:-1]

        self.diag[:-1, :] += ci_
        self.diag[1:, :] += ci_
        self.i_lower -= ci_
        self.i_upper -= ci_

        self.diag[:, :-1] += cj_
        self.diag[:, 1:] += cj_
        self.j_lower -= cj_
        self.j_upper -= cj_

        for patch in self.mesh.boundary:
            pf = self.field.boundary_field[patch.name]
            if patch.side == I_MIN:
                g = gamma.i_faces[0, :]
            elif patch.side == I_MAX:
                g = gamma.i_faces[-1, :]
            elif patch.side == J_MIN:
                g = gamma.j_faces[:, 0]
            else:
                g = gamma.j_faces[:, -1]
            coeff = g * patch.magSf
            ci, cj = patch.cells_i, patch.cells_j
            np.add.at(self.diag, (ci, cj), -coeff * pf.gradient_internal_coeffs())
            np.add.at(self.source, (ci, cj), coeff * pf.gradient_boundary_coeffs())

    def add_su(self, su: np.ndarray) -> None:
        """Explicit source su (per unit volume)."""
        self.source += su * self.mesh.volume

    def add_sp(self, sp_coeff: np.ndarray) -> None:
        """
        Implicit source sp * x (per unit volume). ``sp`` should be
        non-positive to keep the matrix diagonally dominant.
        """
        self.diag -= sp_coeff * self.mesh.volume

    def add_susp(self, coeff: np.ndarray) -> None:
        """Source coeff * x: implicit where coeff < 0, explicit otherwise."""
        coeff = np.asarray(coeff)
        x = self.field.values
        self.add_sp(np.minimum(coeff, 0.0))
        self.add_su(np.maximum(coeff, 0.0) * x)

    def relax(self, alpha: float) -> None:
        """Implicit under-relaxation with factor 0 < alpha <= 1."""
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"Relaxation factor must be in (0, 1], got {alpha}")
        if alpha == 1.0:
            return
        d_old = self.diag.copy()
        self.diag /= alpha
        self.source += (self.diag - d_old) * self.field.values

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def matrix(self) -> sp.csr_matrix:
        """Assembled sparse matrix."""
        NI, NJ = self.mesh.NI, self.mesh.NJ
        idx = np.arange(NI * NJ).reshape(NI, NJ)

        rows = [idx.ravel()]
        cols = [idx.ravel()]
        vals = [self.diag.ravel()]

        lo, hi = idx[:-1, :].ravel(), idx[1:, :].ravel()
        rows += [lo, hi]
        cols += [hi, lo]
        vals += [self.i_lower.ravel(), self.i_upper.ravel()]

        lo, hi = idx[:, :-1].ravel(), idx[:, 1:].ravel()
        rows += [lo, hi]
        cols += [hi, lo]
        vals += [self.j_lower.ravel(), self.j_upper.ravel()]

        n = NI * NJ
        return sp.coo_matrix(
            (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
            shape=(n, n),
        ).tocsr()

    def residual(self, x: np.ndarray = None) -> float:
        """Normalised residual |b - A x| / (|b| + SMALL)."""
        A = self.matrix()
        b = self.source.ravel()
        x = self.field.values.ravel() if x is None else x.ravel()
        return float(np.linalg.norm(b - A @ x) / (np.linalg.norm(b) + SMALL))

    def solve(self, solver: str = "bicgstab", tol: float = 1e-10,
              max_iter: int = 1000) -> SolverPerformance:
        """
        Solve for the field's cell values (updated in place).

        Parameters
        ----------
        solver : str
            ``bicgstab`` (ILU preconditioned) or ``direct``.
        tol : float
            Relative tolerance of the iterative solver.
        max_iter : int
            Iteration limit of the iterative solver.

        Returns
        -------
        performance : SolverPerformance
            Non-convergence is logged as a warning, not raised.
        """
        A = self.matrix()
        b = self.source.ravel()
        x0 = self.field.values.ravel().copy()
        b_norm = np.linalg.norm(b) + SMALL
        initial = float(np.linalg.norm(b - A @ x0) / b_norm)

        if solver == "direct":
            x = spla.spsolve(A.tocsc(), b)
            n_iter, info = 1, 0
        elif solver == "bicgstab":
            n_iter = 0

            def count(_):
                nonlocal n_iter
                n_iter += 1

            try:
                ilu = spla.spilu(A.tocsc())
                M = spla.LinearOperator(A.shape, ilu.solve)
            except RuntimeError as err:
                logger.debug(f"ILU factorisation failed ({err}); solving unpreconditioned")
                M = None
            x, info = spla.bicgstab(A, b, x0=x0, rtol=tol, atol=0.0,
                                    maxiter=max_iter, M=M, callback=count)
        else:
            raise ValueError(f"Unknown linear solver '{solver}'. Supported: bicgstab, direct")

        final = float(np.linalg.norm(b - A @ x) / b_norm)
        converged = info == 0 and np.all(np.isfinite(x))
        perf = SolverPerformance(solver, self.field.name, initial, final, n_iter, bool(converged))

        if converged:
            self.field.values[...] = x.reshape(self.field.values.shape)
            logger.debug(str(perf))
        else:
            logger.warning(f"Linear solver did not converge: {perf} (info={info})")
            if np.all(np.isfinite(x)):
                self.field.values[...] = x.reshape(self.field.values.shape)
        return perf
