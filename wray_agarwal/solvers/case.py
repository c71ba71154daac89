"""
Channel case driver.

Builds a channel mesh, a frozen mean flow (prescribed velocity profile and
its face flux), the Rnu field from its dictionary, and the selected closure
model, then advances the closure for a number of steps.
"""

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
from loguru import logger

from wray_agarwal.config.loader import save_yaml
from wray_agarwal.config.properties import TurbulenceProperties
from wray_agarwal.config.schema import CaseConfig
from wray_agarwal.constants import J_MIN, J_MAX
from wray_agarwal.errors import ConfigurationError
from wray_agarwal.fields import FieldRegistry, VolScalarField, VolVectorField
from wray_agarwal.grid.mesh import StructuredMesh
from wray_agarwal.io import write_fields_vtk
from wray_agarwal.models import create_model
from wray_agarwal.numerics import flux


PROFILES = ("power_law", "parabolic", "uniform")


def velocity_profile(y: np.ndarray, height: float, u_bulk: float,
                     profile: str = "power_law",
                     low_wall: bool = True, high_wall: bool = True) -> np.ndarray:
    """
    Streamwise velocity u(y) with bulk velocity ``u_bulk``.

    Profiles vanish on the walls: ``power_law`` is the 1/7th law,
    ``parabolic`` the laminar profile; ``uniform`` is plug flow.
    """
    if profile not in PROFILES:
        raise ConfigurationError(f"Unknown velocity profile '{profile}'. Supported: {PROFILES}")

    eta = np.clip(np.asarray(y, dtype=np.float64) / height, 0.0, 1.0)
    if profile == "uniform" or not (low_wall or high_wall):
        return np.full_like(eta, u_bulk)

    # Distance to the nearest wall, normalised by the wall-to-core distance
    if low_wall and high_wall:
        s = 1.0 - np.abs(2.0 * eta - 1.0)
    elif low_wall:
        s = eta
    else:
        s = 1.0 - eta

    if profile == "power_law":
        return u_bulk * (8.0 / 7.0) * s ** (1.0 / 7.0)
    return u_bulk * 1.5 * s * (2.0 - s)


class ClosureCase:
    """
    Channel flow with a frozen mean flow and a Wray-Agarwal closure.

    Parameters
    ----------
    config : CaseConfig
    properties_path : path, optional
        File the turbulence properties are re-read from during the run
        (normally the case file itself).
    """

    def __init__(self, config: CaseConfig,
                 properties_path: Optional[Union[str, Path]] = None):
        self.config = config
        self.mesh = StructuredMesh.from_config(config.mesh)
        self.registry = FieldRegistry()
        self.nu = config.flow.nu

        self.U = self.registry.register(self._build_velocity())
        self.phi = self.registry.register(flux(self.U, "phi"))

        fields = dict(config.fields)
        rnu_dict = fields.pop("Rnu", None) or self._default_rnu_dict()
        for name, data in fields.items():
            self.registry.register(self._build_field(name, data))
        self.Rnu = self.registry.register(VolScalarField.from_dict("Rnu", self.mesh, rnu_dict))
        self.Rnu.correct_boundary_conditions()

        if properties_path is not None:
            self.properties = TurbulenceProperties(config.turbulence, path=properties_path)
        else:
            self.properties = TurbulenceProperties(config.turbulence)
        self.model = create_model(self.properties, self.mesh, self.registry,
                                  self.nu, config.solver)

        self.history: List[Dict[str, float]] = []
        self.step = 0

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _build_velocity(self) -> VolVectorField:
        flow = self.config.flow
        mesh = self.mesh
        walls = {p.side for p in mesh.boundary if p.is_wall}
        height = self.config.mesh.height

        def u_of(y):
            return velocity_profile(y, height, flow.u_bulk, flow.profile,
                                    J_MIN in walls, J_MAX in walls)

        values = np.zeros((mesh.NI, mesh.NJ, 2))
        values[..., 0] = u_of(mesh.metrics.yc)
        U = VolVectorField("U", mesh, values)

        inlet = mesh.patch("inlet")
        inlet_u = np.stack([u_of(inlet.face_centres[:, 1]), np.zeros(inlet.size)], axis=-1)
        entries = {}
        for patch in mesh.boundary:
            if patch.is_wall:
                entries[patch.name] = {'type': 'fixedValue', 'value': [0.0, 0.0]}
            elif patch.name == "inlet":
                entries[patch.name] = {'type': 'fixedValue', 'value': inlet_u.tolist()}
            else:
                entries[patch.name] = {'type': 'zeroGradient'}
        U.set_boundary(entries)
        return U

    def _default_rnu_dict(self) -> dict:
        free = 3.0 * self.nu
        entries = {}
        for patch in self.mesh.boundary:
            if patch.is_wall:
                entries[patch.name] = {'type': 'fixedValue', 'value': 0.0}
            elif patch.name == "inlet":
                entries[patch.name] = {'type': 'fixedValue', 'value': free}
            else:
                entries[patch.name] = {'type': 'zeroGradient'}
        return {'internalField': free, 'boundaryField': entries}

    def _build_field(self, name: str, data: dict):
        raw = data.get('internalField') if isinstance(data, dict) else None
        cls = VolVectorField if np.ndim(raw) == 1 and np.size(raw) == 2 else VolScalarField
        return cls.from_dict(name, self.mesh, data)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def output_dir(self) -> Path:
        return Path(self.config.output.directory)

    def _fields_for_output(self) -> Dict[str, np.ndarray]:
        out = {
            "U": self.U.values,
            "Rnu": self.Rnu.values,
            "nut": self.model.nut.values,
            "f1": self.model.f1.values,
            "wall_distance": np.where(np.isfinite(self.mesh.wall_distance),
                                      self.mesh.wall_distance, 0.0),
        }
        if self.model.variant.is_hybrid:
            out["fdes"] = self.model.fdes.values
            out["outDelta"] = self.model.out_delta.values
            out["blendfactor"] = self.model.blendfactor.values
        return out

    def write(self, tag: Optional[str] = None) -> Path:
        out = self.config.output
        suffix = f"_{tag}" if tag else ""
        return write_fields_vtk(self.output_dir() / f"{out.case_name}{suffix}.vtk",
                                self.mesh, self._fields_for_output(),
                                title=f"{self.model.type_name} step {self.step}")

    def run(self, steps: Optional[int] = None) -> List[Dict[str, float]]:
        """
        Advance the closure ``steps`` times (default: ``run.steps``).

        Returns
        -------
        history : list of dict
            Per-step solver residuals and field ranges.
        """
        steps = self.config.run.steps if steps is None else steps
        out = self.config.output
        model = self.model

        logger.info(f"{'='*60}")
        logger.info(f"{model.type_name} on {self.mesh.NI} x {self.mesh.NJ} channel, {steps} steps")
        logger.info(f"{'='*60}")
        logger.info(f"{'Step':>8} {'Residual':>12} {'Iters':>6} {'Rnu max':>12} "
                    f"{'nut max':>12} {'f1 min':>8} {'f1 max':>8}")
        logger.info(f"{'-'*72}")

        for _ in range(steps):
            model.read()
            model.correct()
            self.step += 1

            perf = model.last_performance
            record = {
                'step': self.step,
                'initial_residual': perf.initial_residual,
                'iterations': perf.n_iterations,
                'Rnu_max': self.Rnu.max(),
                'nut_max': model.nut.max(),
                'f1_min': model.f1.min(),
                'f1_max': model.f1.max(),
            }
            if model.variant.is_hybrid:
                record['les_fraction'] = float(np.mean(model.les_region()))
            self.history.append(record)

            if self.step % max(out.print_freq, 1) == 0 or self.step == 1:
                logger.info(f"{self.step:>8d} {perf.initial_residual:>12.4e} {perf.n_iterations:>6d} "
                            f"{record['Rnu_max']:>12.4e} {record['nut_max']:>12.4e} "
                            f"{record['f1_min']:>8.4f} {record['f1_max']:>8.4f}")
            if out.write_interval > 0 and self.step % out.write_interval == 0:
                self.write(tag=f"{self.step:06d}")

        logger.info(f"{'='*60}")
        self.write()
        save_yaml(replace(self.config, turbulence=self.properties.to_dict()),
                  self.output_dir() / f"{out.case_name}.yaml")
        return self.history
