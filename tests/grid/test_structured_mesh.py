"""
Tests for StructuredMesh and its boundary patches.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from wray_agarwal.config.schema import ChannelMeshConfig
from wray_agarwal.constants import I_MIN, I_MAX, J_MIN, J_MAX
from wray_agarwal.errors import ConfigurationError
from wray_agarwal.grid.mesh import StructuredMesh


class TestChannelPatches:

    def test_patch_names_and_types(self, uniform_mesh):
        assert uniform_mesh.patch_names == ["inlet", "outlet", "bottom", "top"]
        assert uniform_mesh.patch("bottom").is_wall
        assert uniform_mesh.patch("top").is_wall
        assert not uniform_mesh.patch("inlet").is_wall
        assert uniform_mesh.has_walls

    def test_patch_sides(self, uniform_mesh):
        assert uniform_mesh.patch_on_side(I_MIN).name == "inlet"
        assert uniform_mesh.patch_on_side(J_MAX).name == "top"

    def test_unknown_patch(self, uniform_mesh):
        with pytest.raises(ConfigurationError, match="Unknown patch"):
            uniform_mesh.patch("farfield")

    def test_patch_sizes(self, uniform_mesh):
        assert uniform_mesh.patch("inlet").size == uniform_mesh.NJ
        assert uniform_mesh.patch("bottom").size == uniform_mesh.NI

    def test_outward_normals(self, uniform_mesh):
        expected = {
            "inlet": (-1.0, 0.0),
            "outlet": (1.0, 0.0),
            "bottom": (0.0, -1.0),
            "top": (0.0, 1.0),
        }
        for name, n in expected.items():
            patch = uniform_mesh.patch(name)
            assert_allclose(patch.nf, np.tile(n, (patch.size, 1)), atol=1e-14)

    def test_face_cells(self, uniform_mesh):
        top = uniform_mesh.patch("top")
        NJ = uniform_mesh.NJ
        expected = np.arange(uniform_mesh.NI) * NJ + (NJ - 1)
        assert np.array_equal(top.face_cells, expected)

    def test_patch_delta_coeffs(self, uniform_mesh):
        bottom = uniform_mesh.patch("bottom")
        dy = 0.1 / uniform_mesh.NJ
        assert_allclose(bottom.delta_coeffs, 2.0 / dy, rtol=1e-12)

    def test_face_centres_lie_on_boundary(self, uniform_mesh):
        assert_allclose(uniform_mesh.patch("bottom").face_centres[:, 1], 0.0)
        assert_allclose(uniform_mesh.patch("top").face_centres[:, 1], 0.1)
        assert_allclose(uniform_mesh.patch("outlet").face_centres[:, 0], 1.0)


class TestChannelGeometry:

    def test_cell_count(self, uniform_mesh):
        assert uniform_mesh.n_cells == 80
        assert uniform_mesh.cell_index(1, 2) == 12

    def test_gcl(self, stretched_mesh):
        assert stretched_mesh.gcl.passed

    def test_grading_clusters_cells_at_walls(self, stretched_mesh):
        heights = np.diff(stretched_mesh.Y[0, :])
        NJ = stretched_mesh.NJ
        assert heights[0] < heights[NJ // 2]
        assert heights[-1] < heights[NJ // 2]
        assert_allclose(heights[1] / heights[0], 1.2, rtol=1e-12)

    def test_wall_distance_symmetric(self, stretched_mesh):
        y = stretched_mesh.wall_distance
        assert_allclose(y, y[:, ::-1], rtol=1e-10)
        assert np.all(y > 0.0)
        assert np.all(y <= 0.05)

    def test_single_wall_channel(self):
        mesh = StructuredMesh.channel(NI=4, NJ=6, walls=("bottom",))
        assert mesh.patch("top").type == "patch"
        assert_allclose(mesh.wall_distance, mesh.metrics.yc, rtol=1e-12)

    def test_no_wall_channel(self):
        mesh = StructuredMesh.channel(NI=4, NJ=6, walls=())
        assert not mesh.has_walls
        assert np.all(np.isinf(mesh.wall_distance))

    def test_from_config(self):
        config = ChannelMeshConfig(length=2.0, height=0.5, NI=6, NJ=8, grading=1.1)
        mesh = StructuredMesh.from_config(config)
        assert (mesh.NI, mesh.NJ) == (6, 8)
        assert_allclose(mesh.volume.sum(), 1.0, rtol=1e-12)


class TestMeshValidation:

    @pytest.mark.parametrize("kwargs", [
        {'NI': 0},
        {'height': -1.0},
        {'grading': 0.0},
        {'walls': ("left",)},
    ])
    def test_bad_channel_arguments(self, kwargs):
        with pytest.raises(ConfigurationError):
            StructuredMesh.channel(**kwargs)

    def _grid(self):
        return np.meshgrid(np.linspace(0, 1, 3), np.linspace(0, 1, 3), indexing='ij')

    def test_missing_side(self):
        X, Y = self._grid()
        with pytest.raises(ConfigurationError, match="missing"):
            StructuredMesh(X, Y, {I_MIN: ("a", "patch"), I_MAX: ("b", "patch"),
                                  J_MIN: ("c", "wall")})

    def test_duplicate_names(self):
        X, Y = self._grid()
        with pytest.raises(ConfigurationError, match="Duplicate"):
            StructuredMesh(X, Y, {I_MIN: ("a", "patch"), I_MAX: ("a", "patch"),
                                  J_MIN: ("c", "wall"), J_MAX: ("d", "wall")})

    def test_unknown_patch_type(self):
        X, Y = self._grid()
        with pytest.raises(ConfigurationError, match="unknown type"):
            StructuredMesh(X, Y, {I_MIN: ("a", "inflow"), I_MAX: ("b", "patch"),
                                  J_MIN: ("c", "wall"), J_MAX: ("d", "wall")})
