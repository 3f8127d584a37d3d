"""
For storing the edge-based view of the horizontal mesh used by the mixing schemes.

All connectivity is 0-based. Owned edges come first: rows
[0, n_edges_owned) belong to the local domain, the remaining rows are halo
edges that the mixing kernels never write.
"""
import jax.numpy as jnp
import numpy as np
import tree_math
from typing import Tuple

def edge_levels(cells_on_edge, min_level_cell, max_level_cell, num_levels) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Derive the active vertical range and mask of each edge from its two neighbouring cells.

    Args:
        cells_on_edge: Neighbouring cells of each edge (nEdges, 2); negative entries mark a missing neighbour.
        min_level_cell: Shallowest active level of each cell (nCells,).
        max_level_cell: Deepest active level of each cell (nCells,); -1 for a cell with no active levels.
        num_levels: Number of vertical levels.

    Returns:
        min_level_edge_bot (nEdges,), max_level_edge_top (nEdges,), edge_mask (nEdges, num_levels)
    """
    cells_on_edge = np.asarray(cells_on_edge)
    min_level_cell = np.asarray(min_level_cell)
    max_level_cell = np.asarray(max_level_cell)

    valid = np.all(cells_on_edge >= 0, axis=1)
    cells = np.where(cells_on_edge >= 0, cells_on_edge, 0)

    min_level_edge_bot = np.maximum(min_level_cell[cells[:, 0]], min_level_cell[cells[:, 1]])
    max_level_edge_top = np.minimum(max_level_cell[cells[:, 0]], max_level_cell[cells[:, 1]])
    # boundary edges carry no momentum
    max_level_edge_top = np.where(valid, max_level_edge_top, -1)

    levels = np.arange(num_levels)
    edge_mask = (levels[None, :] >= min_level_edge_bot[:, None]) & (levels[None, :] <= max_level_edge_top[:, None])

    return min_level_edge_bot, max_level_edge_top, edge_mask

@tree_math.struct
class EdgeMesh:
    cells_on_edge: jnp.ndarray # cell1, cell2 of each edge (nEdges, 2)
    vertices_on_edge: jnp.ndarray # vertex1, vertex2 of each edge (nEdges, 2)
    dc_edge: jnp.ndarray # distance between the two cell centres (m) (nEdges,)
    dv_edge: jnp.ndarray # distance between the two vertices (m) (nEdges,)
    mesh_scaling_del2: jnp.ndarray # mesh-density scaling of the del2 viscosity (nEdges,)
    min_level_edge_bot: jnp.ndarray # shallowest active level (nEdges,)
    max_level_edge_top: jnp.ndarray # deepest active level (nEdges,)
    edge_mask: jnp.ndarray # active mask / weight (nEdges, nVertLevels)
    n_edges_owned: int # number of edges local to this domain

    @property
    def num_edges(self) -> int:
        return self.edge_mask.shape[0]

    @property
    def num_levels(self) -> int:
        return self.edge_mask.shape[1]

    def with_float_dtype(self, dtype) -> 'EdgeMesh':
        """Returns a copy with all geometric fields cast to `dtype`; connectivity and level bounds are left as integers."""
        return EdgeMesh(
            cells_on_edge=self.cells_on_edge,
            vertices_on_edge=self.vertices_on_edge,
            dc_edge=jnp.asarray(self.dc_edge, dtype=dtype),
            dv_edge=jnp.asarray(self.dv_edge, dtype=dtype),
            mesh_scaling_del2=jnp.asarray(self.mesh_scaling_del2, dtype=dtype),
            min_level_edge_bot=self.min_level_edge_bot,
            max_level_edge_top=self.max_level_edge_top,
            edge_mask=jnp.asarray(self.edge_mask, dtype=dtype),
            n_edges_owned=self.n_edges_owned,
        )

    @classmethod
    def from_arrays(cls, cells_on_edge, vertices_on_edge, dc_edge, dv_edge, min_level_edge_bot, max_level_edge_top,
                    edge_mask, mesh_scaling_del2=None, n_edges_owned=None):
        """
        Wraps caller-supplied mesh arrays.

        Args:
            cells_on_edge: (nEdges, 2) 0-based cell indices.
            vertices_on_edge: (nEdges, 2) 0-based vertex indices.
            dc_edge, dv_edge: (nEdges,) edge lengths.
            min_level_edge_bot, max_level_edge_top: (nEdges,) inclusive 0-based active range.
            edge_mask: (nEdges, nVertLevels) active mask.
            mesh_scaling_del2 (optional): (nEdges,) mesh scaling, defaults to ones.
            n_edges_owned (optional): number of owned edges, defaults to all edges.

        Returns:
            EdgeMesh object
        """
        dc_edge = jnp.asarray(dc_edge)
        if mesh_scaling_del2 is None:
            mesh_scaling_del2 = jnp.ones_like(dc_edge)
        edge_mask = jnp.asarray(edge_mask)
        if n_edges_owned is None:
            n_edges_owned = edge_mask.shape[0]

        return cls(cells_on_edge=jnp.asarray(cells_on_edge),
                   vertices_on_edge=jnp.asarray(vertices_on_edge),
                   dc_edge=dc_edge,
                   dv_edge=jnp.asarray(dv_edge),
                   mesh_scaling_del2=jnp.asarray(mesh_scaling_del2),
                   min_level_edge_bot=jnp.asarray(min_level_edge_bot),
                   max_level_edge_top=jnp.asarray(max_level_edge_top),
                   edge_mask=edge_mask.astype(dc_edge.dtype),
                   n_edges_owned=int(n_edges_owned))

    @classmethod
    def from_dataset(cls, ds, n_edges_owned=None, num_levels=None):
        """
        Initializes the edge mesh from an MPAS-style mesh dataset (1-based connectivity).

        Args:
            ds: xarray.Dataset with cellsOnEdge, verticesOnEdge, dcEdge and dvEdge. Optional variables:
                meshScalingDel2, minLevelEdgeBot / maxLevelEdgeTop / edgeMask, or minLevelCell / maxLevelCell
                from which the edge levels are derived.
            n_edges_owned (optional): number of owned edges (default: all edges).
            num_levels (optional): number of vertical levels (default: the nVertLevels dimension, or 1).

        Returns:
            EdgeMesh object
        """
        if num_levels is None:
            num_levels = int(ds.sizes.get("nVertLevels", 1))

        cells_on_edge = np.asarray(ds["cellsOnEdge"]).astype(np.int64) - 1
        vertices_on_edge = np.asarray(ds["verticesOnEdge"]).astype(np.int64) - 1
        n_edges = cells_on_edge.shape[0]

        if "maxLevelEdgeTop" in ds:
            min_level_edge_bot = (np.asarray(ds["minLevelEdgeBot"]) - 1 if "minLevelEdgeBot" in ds
                                  else np.zeros(n_edges, dtype=np.int64))
            max_level_edge_top = np.asarray(ds["maxLevelEdgeTop"]) - 1
            if "edgeMask" in ds:
                edge_mask = np.asarray(ds["edgeMask"])
            else:
                levels = np.arange(num_levels)
                edge_mask = (levels[None, :] >= min_level_edge_bot[:, None]) & (levels[None, :] <= max_level_edge_top[:, None])
        else:
            n_cells = int(ds.sizes["nCells"])
            max_level_cell = (np.asarray(ds["maxLevelCell"]) - 1 if "maxLevelCell" in ds
                              else np.full(n_cells, num_levels - 1))
            min_level_cell = (np.asarray(ds["minLevelCell"]) - 1 if "minLevelCell" in ds
                              else np.zeros(n_cells, dtype=np.int64))
            min_level_edge_bot, max_level_edge_top, edge_mask = edge_levels(
                cells_on_edge, min_level_cell, max_level_cell, num_levels)

        # missing neighbours point at entry 0; their edges have no active levels
        cells_on_edge = np.where(cells_on_edge >= 0, cells_on_edge, 0)
        vertices_on_edge = np.where(vertices_on_edge >= 0, vertices_on_edge, 0)

        dc_edge = jnp.asarray(ds["dcEdge"])
        mesh_scaling_del2 = jnp.asarray(ds["meshScalingDel2"]) if "meshScalingDel2" in ds else None

        return cls.from_arrays(cells_on_edge=cells_on_edge,
                               vertices_on_edge=vertices_on_edge,
                               dc_edge=dc_edge,
                               dv_edge=jnp.asarray(ds["dvEdge"]),
                               min_level_edge_bot=min_level_edge_bot,
                               max_level_edge_top=max_level_edge_top,
                               edge_mask=edge_mask,
                               mesh_scaling_del2=mesh_scaling_del2,
                               n_edges_owned=n_edges_owned)

    @classmethod
    def planar_quad(cls, nx, ny, dc=1.0, num_levels=1, max_level_cell=None, min_level_cell=None,
                    mesh_scaling_del2=None, n_edges_owned=None):
        """
        Initializes a doubly periodic planar mesh of square cells (C-grid).

        Cell (i, j) has index j*nx + i and its centre at ((i+0.5)*dc, (j+0.5)*dc). Vertex (i, j) has index
        j*nx + i and sits at (i*dc, j*dc). The first nx*ny edges face +x, the next nx*ny face +y; on every
        edge vertex1 -> vertex2 points along k x n, where n points from cell1 to cell2.

        Args:
            nx, ny: Number of cells in x and y.
            dc (optional): Cell spacing (default 1).
            num_levels (optional): Number of vertical levels (default 1).
            max_level_cell (optional): Deepest active level of each cell (nx*ny,), default num_levels-1.
            min_level_cell (optional): Shallowest active level of each cell (nx*ny,), default 0.
            mesh_scaling_del2 (optional): Per-edge mesh scaling, default ones.
            n_edges_owned (optional): Number of owned edges (default all).

        Returns:
            EdgeMesh object
        """
        i, j = np.meshgrid(np.arange(nx), np.arange(ny), indexing='xy')
        i, j = i.ravel(), j.ravel()

        def index(ii, jj):
            return (jj % ny) * nx + (ii % nx)

        x_cells = np.stack([index(i, j), index(i + 1, j)], axis=1)
        x_vertices = np.stack([index(i + 1, j), index(i + 1, j + 1)], axis=1)
        y_cells = np.stack([index(i, j), index(i, j + 1)], axis=1)
        y_vertices = np.stack([index(i + 1, j + 1), index(i, j + 1)], axis=1)

        cells_on_edge = np.concatenate([x_cells, y_cells])
        vertices_on_edge = np.concatenate([x_vertices, y_vertices])
        n_edges = cells_on_edge.shape[0]

        if max_level_cell is None:
            max_level_cell = np.full(nx * ny, num_levels - 1)
        if min_level_cell is None:
            min_level_cell = np.zeros(nx * ny, dtype=np.int64)
        min_level_edge_bot, max_level_edge_top, edge_mask = edge_levels(
            cells_on_edge, min_level_cell, max_level_cell, num_levels)

        dc_edge = jnp.full((n_edges,), dc, dtype=jnp.asarray(float(dc)).dtype)

        return cls.from_arrays(cells_on_edge=cells_on_edge,
                               vertices_on_edge=vertices_on_edge,
                               dc_edge=dc_edge,
                               dv_edge=dc_edge,
                               min_level_edge_bot=min_level_edge_bot,
                               max_level_edge_top=max_level_edge_top,
                               edge_mask=edge_mask,
                               mesh_scaling_del2=mesh_scaling_del2,
                               n_edges_owned=n_edges_owned)

    @classmethod
    def single_edge(cls, dc_edge=1.0, dv_edge=1.0, mesh_scaling_del2=1.0, num_levels=1,
                    min_level=0, max_level=None, edge_mask=None):
        """
        Initializes a mesh with one edge between cells 0 and 1 and vertices 0 and 1.

        Args:
            dc_edge, dv_edge (optional): Edge lengths (default 1).
            mesh_scaling_del2 (optional): Mesh scaling of the edge (default 1).
            num_levels (optional): Number of vertical levels (default 1).
            min_level, max_level (optional): Active range (default all levels).
            edge_mask (optional): Mask of shape (num_levels,), default 1 inside the active range.

        Returns:
            EdgeMesh object
        """
        if max_level is None:
            max_level = num_levels - 1
        if edge_mask is None:
            levels = np.arange(num_levels)
            edge_mask = (levels >= min_level) & (levels <= max_level)

        dc = jnp.asarray([dc_edge], dtype=jnp.asarray(float(dc_edge)).dtype)
        return cls.from_arrays(cells_on_edge=np.array([[0, 1]]),
                               vertices_on_edge=np.array([[0, 1]]),
                               dc_edge=dc,
                               dv_edge=jnp.asarray([dv_edge], dtype=dc.dtype),
                               min_level_edge_bot=np.array([min_level]),
                               max_level_edge_top=np.array([max_level]),
                               edge_mask=np.asarray(edge_mask)[None, :],
                               mesh_scaling_del2=jnp.asarray([mesh_scaling_del2], dtype=dc.dtype),
                               n_edges_owned=1)
