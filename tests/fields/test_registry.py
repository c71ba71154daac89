"""
Tests for volume/surface fields and the field registry.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from wray_agarwal.constants import SCALAR, VECTOR
from wray_agarwal.errors import ConfigurationError, FieldLookupError, FieldTypeError
from wray_agarwal.fields import FieldRegistry, VolScalarField, VolVectorField, SurfaceScalarField


class TestRegistry:

    def test_register_binds_field(self, uniform_mesh):
        registry = FieldRegistry()
        T = registry.register(VolScalarField("T", uniform_mesh))
        assert T.db is registry
        assert "T" in registry
        assert len(registry) == 1
        assert registry.lookup("T", rank=SCALAR) is T

    def test_duplicate_name(self, uniform_mesh):
        registry = FieldRegistry()
        registry.register(VolScalarField("T", uniform_mesh))
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register(VolScalarField("T", uniform_mesh))

    def test_missing_field(self):
        with pytest.raises(FieldLookupError, match="not found"):
            FieldRegistry().lookup("p")

    def test_missing_field_is_key_error(self):
        with pytest.raises(KeyError):
            FieldRegistry().lookup("p")

    def test_rank_mismatch(self, uniform_mesh):
        registry = FieldRegistry()
        registry.register(VolVectorField("U", uniform_mesh))
        with pytest.raises(FieldTypeError, match="vector field, expected scalar"):
            registry.lookup("U", rank=SCALAR)
        assert registry.lookup("U", rank=VECTOR).rank == VECTOR

    def test_lookup_surface(self, channel_registry):
        assert channel_registry.lookup_surface("phi").name == "phi"
        with pytest.raises(FieldTypeError, match="not a surface field"):
            channel_registry.lookup_surface("Rnu")

    def test_remove(self, channel_registry):
        Rnu = channel_registry.lookup("Rnu")
        channel_registry.remove("Rnu")
        assert "Rnu" not in channel_registry
        assert Rnu.db is None
        assert channel_registry.names() == ["U", "phi"]


class TestVolField:

    def test_default_values(self, uniform_mesh):
        U = VolVectorField("U", uniform_mesh)
        assert U.values.shape == (uniform_mesh.NI, uniform_mesh.NJ, 2)
        assert U.max() == 0.0

    def test_shape_mismatch(self, uniform_mesh):
        with pytest.raises(ConfigurationError, match="shape"):
            VolScalarField("T", uniform_mesh, np.zeros((3, 3)))

    def test_uniform_vector(self, uniform_mesh):
        U = VolVectorField.uniform("U", uniform_mesh, [2.0, -1.0])
        assert_allclose(U.component(0), 2.0)
        assert_allclose(U.component(1), -1.0)

    def test_uniform_fixed_value_patches(self, uniform_mesh):
        T = VolScalarField.uniform("T", uniform_mesh, 4.0, "fixedValue")
        for patch in uniform_mesh.boundary:
            assert_allclose(T.patch_values(patch), 4.0)

    def test_uniform_rejects_wrong_rank(self, uniform_mesh):
        with pytest.raises(ConfigurationError):
            VolScalarField.uniform("T", uniform_mesh, [1.0, 2.0])
        with pytest.raises(ConfigurationError):
            VolVectorField.uniform("U", uniform_mesh, 1.0)

    def test_from_dict_full_array(self, uniform_mesh):
        values = np.random.default_rng(2).uniform(size=(uniform_mesh.NI, uniform_mesh.NJ))
        T = VolScalarField.from_dict("T", uniform_mesh, {
            'internalField': values.tolist(),
            'boundaryField': {p.name: {'type': 'zeroGradient'} for p in uniform_mesh.boundary},
        })
        assert_allclose(T.values, values)
        assert_allclose(T.patch_values(uniform_mesh.patch("top")), values[:, -1])

    def test_from_dict_requires_internal_field(self, uniform_mesh):
        with pytest.raises(ConfigurationError, match="internalField"):
            VolScalarField.from_dict("T", uniform_mesh, {'boundaryField': {}})

    def test_from_dict_requires_every_patch(self, uniform_mesh):
        with pytest.raises(ConfigurationError, match="missing patches"):
            VolScalarField.from_dict("T", uniform_mesh, {
                'internalField': 0.0,
                'boundaryField': {'inlet': {'type': 'zeroGradient'}},
            })

    def test_from_dict_rejects_unknown_patch(self, uniform_mesh):
        entries = {p.name: {'type': 'zeroGradient'} for p in uniform_mesh.boundary}
        entries['farfield'] = {'type': 'zeroGradient'}
        with pytest.raises(ConfigurationError, match="unknown patches"):
            VolScalarField.from_dict("T", uniform_mesh, {'internalField': 0.0, 'boundaryField': entries})

    def test_old_time(self, uniform_mesh):
        T = VolScalarField.uniform("T", uniform_mesh, 1.0)
        assert_allclose(T.old_time(), 1.0)
        T.store_old_time()
        T.values[...] = 2.0
        assert_allclose(T.old_time(), 1.0)

    def test_to_dict_collapses_uniform(self, uniform_mesh):
        T = VolScalarField.uniform("T", uniform_mesh, 3.0, "zeroGradient")
        data = T.to_dict()
        assert data['internalField'] == 3.0
        assert data['boundaryField']['inlet'] == {'type': 'zeroGradient'}

    def test_to_dict_round_trip(self, uniform_mesh):
        m = uniform_mesh.metrics
        T = VolScalarField("T", uniform_mesh, m.yc)
        T.set_boundary({p.name: {'type': 'fixedValue', 'value': 1.0} for p in uniform_mesh.boundary})
        copy = VolScalarField.from_dict("T", uniform_mesh, T.to_dict())
        assert_allclose(copy.values, T.values)
        assert_allclose(copy.patch_values(uniform_mesh.patch("bottom")), 1.0)


class TestSurfaceField:

    def test_default_zero(self, uniform_mesh):
        s = SurfaceScalarField("s", uniform_mesh)
        assert s.i_faces.shape == (uniform_mesh.NI + 1, uniform_mesh.NJ)
        assert s.j_faces.shape == (uniform_mesh.NI, uniform_mesh.NJ + 1)
        assert s.max() == 0.0

    def test_bad_shapes(self, uniform_mesh):
        with pytest.raises(ConfigurationError):
            SurfaceScalarField("s", uniform_mesh, np.zeros((2, 2)), np.zeros((2, 2)))

    def test_assign_in_place(self, uniform_mesh):
        a = SurfaceScalarField("a", uniform_mesh)
        b = SurfaceScalarField("b", uniform_mesh,
                               np.full((uniform_mesh.NI + 1, uniform_mesh.NJ), 2.0),
                               np.full((uniform_mesh.NI, uniform_mesh.NJ + 1), -1.0))
        faces = a.i_faces
        a.assign(b)
        assert a.i_faces is faces
        assert a.min() == -1.0
        assert a.max() == 2.0
