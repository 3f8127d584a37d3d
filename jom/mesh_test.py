import unittest
import jax.tree_util as jtu
import jax.numpy as jnp
import numpy as np
import xarray as xr

class TestEdgeMeshUnit(unittest.TestCase):

    def setUp(self):
        global EdgeMesh, edge_levels
        from jom.mesh import EdgeMesh, edge_levels

    def test_planar_quad_shapes(self):
        mesh = EdgeMesh.planar_quad(4, 3, dc=2.0, num_levels=5)
        self.assertTupleEqual(mesh.cells_on_edge.shape, (24, 2))
        self.assertTupleEqual(mesh.vertices_on_edge.shape, (24, 2))
        self.assertTupleEqual(mesh.edge_mask.shape, (24, 5))
        self.assertEqual(mesh.num_edges, 24)
        self.assertEqual(mesh.num_levels, 5)
        self.assertEqual(mesh.n_edges_owned, 24)
        self.assertTrue(jnp.all(mesh.dc_edge == 2.0))
        self.assertTrue(jnp.all(mesh.dv_edge == 2.0))
        self.assertTrue(jnp.all(mesh.mesh_scaling_del2 == 1.0))
        self.assertTrue(jnp.all(mesh.edge_mask == 1.0))
        has_nans = any(jnp.isnan(x).any() for x in jtu.tree_leaves(mesh))
        self.assertFalse(has_nans)

    def test_planar_quad_connectivity(self):
        mesh = EdgeMesh.planar_quad(3, 2)
        cells = np.asarray(mesh.cells_on_edge)
        vertices = np.asarray(mesh.vertices_on_edge)

        # +x edges: cell1 -> cell2 eastward, vertex1 -> vertex2 northward
        np.testing.assert_array_equal(cells[0], [0, 1])
        np.testing.assert_array_equal(vertices[0], [1, 4])
        # periodic wrap in x
        np.testing.assert_array_equal(cells[2], [2, 0])
        np.testing.assert_array_equal(vertices[2], [0, 3])
        # +y edges: cell1 -> cell2 northward, vertex1 -> vertex2 westward
        np.testing.assert_array_equal(cells[6], [0, 3])
        np.testing.assert_array_equal(vertices[6], [4, 3])
        # periodic wrap in y
        np.testing.assert_array_equal(cells[9], [3, 0])
        np.testing.assert_array_equal(vertices[9], [1, 0])

        # every cell and vertex of a quad mesh touches four edges
        np.testing.assert_array_equal(np.bincount(cells.ravel(), minlength=6), 4)
        np.testing.assert_array_equal(np.bincount(vertices.ravel(), minlength=6), 4)

    def test_planar_quad_halo(self):
        mesh = EdgeMesh.planar_quad(3, 3, n_edges_owned=10)
        self.assertEqual(mesh.n_edges_owned, 10)
        self.assertEqual(mesh.num_edges, 18)

    def test_planar_quad_levels_from_cells(self):
        mesh = EdgeMesh.planar_quad(2, 1, num_levels=3, max_level_cell=np.array([2, 0]))
        np.testing.assert_array_equal(mesh.max_level_edge_top, [0, 0, 2, 0])
        np.testing.assert_array_equal(mesh.min_level_edge_bot, [0, 0, 0, 0])
        np.testing.assert_array_equal(mesh.edge_mask, [[1, 0, 0], [1, 0, 0], [1, 1, 1], [1, 0, 0]])

    def test_edge_levels_dry_cell_and_boundary(self):
        cells_on_edge = np.array([[0, 1], [1, 2], [2, -1]])
        min_level, max_level, mask = edge_levels(
            cells_on_edge, min_level_cell=np.array([0, 1, 0]), max_level_cell=np.array([3, 2, -1]), num_levels=4)
        np.testing.assert_array_equal(min_level, [1, 1, 0])
        np.testing.assert_array_equal(max_level, [2, -1, -1])
        np.testing.assert_array_equal(mask, [[0, 1, 1, 0], [0, 0, 0, 0], [0, 0, 0, 0]])

    def test_single_edge(self):
        mesh = EdgeMesh.single_edge(dc_edge=2.0, dv_edge=4.0, num_levels=3, max_level=1)
        np.testing.assert_array_equal(mesh.cells_on_edge, [[0, 1]])
        np.testing.assert_array_equal(mesh.vertices_on_edge, [[0, 1]])
        np.testing.assert_array_equal(mesh.edge_mask, [[1.0, 1.0, 0.0]])
        self.assertEqual(float(mesh.dc_edge[0]), 2.0)
        self.assertEqual(float(mesh.dv_edge[0]), 4.0)
        self.assertEqual(int(mesh.max_level_edge_top[0]), 1)

    def test_with_float_dtype(self):
        mesh = EdgeMesh.planar_quad(2, 2, num_levels=2).with_float_dtype(jnp.float32)
        self.assertEqual(mesh.dc_edge.dtype, jnp.float32)
        self.assertEqual(mesh.dv_edge.dtype, jnp.float32)
        self.assertEqual(mesh.mesh_scaling_del2.dtype, jnp.float32)
        self.assertEqual(mesh.edge_mask.dtype, jnp.float32)
        self.assertTrue(jnp.issubdtype(mesh.cells_on_edge.dtype, jnp.integer))

    def test_from_dataset_derives_levels(self):
        ds = xr.Dataset(
            data_vars={
                "cellsOnEdge": (("nEdges", "TWO"), np.array([[1, 2], [2, 3], [3, 0]], dtype=np.int32)),
                "verticesOnEdge": (("nEdges", "TWO"), np.array([[1, 2], [2, 1], [1, 2]], dtype=np.int32)),
                "dcEdge": (("nEdges",), np.array([10.0, 20.0, 30.0])),
                "dvEdge": (("nEdges",), np.array([5.0, 6.0, 7.0])),
                "maxLevelCell": (("nCells",), np.array([4, 2, 3], dtype=np.int32)),
                "refBottomDepth": (("nVertLevels",), np.arange(1.0, 5.0)),
            }
        )
        mesh = EdgeMesh.from_dataset(ds)

        np.testing.assert_array_equal(mesh.cells_on_edge, [[0, 1], [1, 2], [2, 0]])
        np.testing.assert_array_equal(mesh.vertices_on_edge, [[0, 1], [1, 0], [0, 1]])
        np.testing.assert_array_equal(mesh.min_level_edge_bot, [0, 0, 0])
        np.testing.assert_array_equal(mesh.max_level_edge_top, [1, 1, -1])
        np.testing.assert_array_equal(mesh.edge_mask, [[1, 1, 0, 0], [1, 1, 0, 0], [0, 0, 0, 0]])
        np.testing.assert_array_equal(mesh.dc_edge, [10.0, 20.0, 30.0])
        np.testing.assert_array_equal(mesh.mesh_scaling_del2, [1.0, 1.0, 1.0])
        self.assertEqual(mesh.n_edges_owned, 3)
        self.assertEqual(mesh.num_levels, 4)

    def test_from_dataset_edge_levels(self):
        ds = xr.Dataset(
            data_vars={
                "cellsOnEdge": (("nEdges", "TWO"), np.array([[1, 2], [2, 1]])),
                "verticesOnEdge": (("nEdges", "TWO"), np.array([[1, 2], [2, 1]])),
                "dcEdge": (("nEdges",), np.array([1.0, 1.0])),
                "dvEdge": (("nEdges",), np.array([1.0, 1.0])),
                "meshScalingDel2": (("nEdges",), np.array([0.5, 2.0])),
                "minLevelEdgeBot": (("nEdges",), np.array([1, 2])),
                "maxLevelEdgeTop": (("nEdges",), np.array([3, 2])),
            }
        )
        mesh = EdgeMesh.from_dataset(ds, n_edges_owned=1, num_levels=3)

        np.testing.assert_array_equal(mesh.min_level_edge_bot, [0, 1])
        np.testing.assert_array_equal(mesh.max_level_edge_top, [2, 1])
        np.testing.assert_array_equal(mesh.edge_mask, [[1, 1, 1], [0, 1, 0]])
        np.testing.assert_array_equal(mesh.mesh_scaling_del2, [0.5, 2.0])
        self.assertEqual(mesh.n_edges_owned, 1)
