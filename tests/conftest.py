"""
Shared pytest fixtures for the test suite.

Provides small channel meshes and field registries holding the fields a
closure model borrows (U, phi, Rnu).
"""

import pytest
import numpy as np

from wray_agarwal.fields import FieldRegistry, VolScalarField, VolVectorField
from wray_agarwal.grid.mesh import StructuredMesh
from wray_agarwal.numerics import flux
from wray_agarwal.solvers.case import velocity_profile


NU = 1.5e-5


# =============================================================================
# Meshes
# =============================================================================

@pytest.fixture(scope="session")
def uniform_mesh():
    """8 x 10 uniform channel, walls at bottom and top."""
    return StructuredMesh.channel(length=1.0, height=0.1, NI=8, NJ=10, grading=1.0)


@pytest.fixture(scope="session")
def stretched_mesh():
    """6 x 16 channel with cells growing away from both walls."""
    return StructuredMesh.channel(length=0.5, height=0.1, NI=6, NJ=16, grading=1.2)


# =============================================================================
# Fields
# =============================================================================

def rnu_dict(mesh, value=3 * NU, wall_entry=None):
    """Rnu dictionary: fixed inlet, zeroGradient outlet, walls fixed at 0."""
    entries = {}
    for patch in mesh.boundary:
        if patch.is_wall:
            entries[patch.name] = wall_entry or {'type': 'fixedValue', 'value': 0.0}
        elif patch.name == "inlet":
            entries[patch.name] = {'type': 'fixedValue', 'value': value}
        else:
            entries[patch.name] = {'type': 'zeroGradient'}
    return {'internalField': value, 'boundaryField': entries}


def build_registry(mesh, profile="power_law", u_bulk=1.0, rnu=3 * NU, wall_entry=None,
                   U_values=None):
    """Registry with a channel velocity U, its flux phi and Rnu."""
    registry = FieldRegistry()

    if U_values is None:
        U_values = np.zeros((mesh.NI, mesh.NJ, 2))
        U_values[..., 0] = velocity_profile(mesh.metrics.yc, 0.1, u_bulk, profile)
    U = VolVectorField("U", mesh, U_values)
    entries = {}
    for patch in mesh.boundary:
        if patch.is_wall:
            entries[patch.name] = {'type': 'fixedValue', 'value': [0.0, 0.0]}
        else:
            entries[patch.name] = {'type': 'zeroGradient'}
    U.set_boundary(entries)
    registry.register(U)
    registry.register(flux(U, "phi"))

    Rnu = VolScalarField.from_dict("Rnu", mesh, rnu_dict(mesh, rnu, wall_entry))
    registry.register(Rnu)
    Rnu.correct_boundary_conditions()
    return registry


@pytest.fixture
def make_registry():
    """Factory for registries with non-default U, Rnu or wall entries."""
    return build_registry


@pytest.fixture
def channel_registry(uniform_mesh):
    """Fresh registry (U power law, phi, Rnu = 3 nu) on the uniform mesh."""
    return build_registry(uniform_mesh)


@pytest.fixture
def stretched_registry(stretched_mesh):
    """Fresh registry on the stretched mesh."""
    return build_registry(stretched_mesh)
