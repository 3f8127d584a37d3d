"""
Host-side input checks for the horizontal mixing kernels.

The kernels themselves assume the mesh and fields are consistent. These
checks run before any compiled loop when requested and raise on the first
problem found.
"""

import numpy as np

from jom.mesh import EdgeMesh


class InvalidEdgeLengthError(ValueError):
    """An owned edge has a non-positive dcEdge or dvEdge."""


class FieldShapeError(ValueError):
    """A field does not match the extents of the mesh."""


def check_edge_lengths(mesh: EdgeMesh):
    n_owned = int(mesh.n_edges_owned)
    for name, lengths in (("dcEdge", mesh.dc_edge), ("dvEdge", mesh.dv_edge)):
        lengths = np.asarray(lengths)[:n_owned]
        bad = np.flatnonzero(~(lengths > 0))
        if bad.size:
            raise InvalidEdgeLengthError(
                f"{name} must be positive on every owned edge; {bad.size} edge(s) violate this "
                f"(first: edge {bad[0]}, value {lengths[bad[0]]})")


def check_field_shapes(div, rel_vort, tend, mesh: EdgeMesh):
    n_edges, num_levels = mesh.num_edges, mesh.num_levels
    n_owned = int(mesh.n_edges_owned)

    if not 0 <= n_owned <= n_edges:
        raise FieldShapeError(f"n_edges_owned={n_owned} is outside [0, {n_edges}]")

    for name, array in (("cells_on_edge", mesh.cells_on_edge), ("vertices_on_edge", mesh.vertices_on_edge)):
        if np.shape(array) != (n_edges, 2):
            raise FieldShapeError(f"{name} has shape {np.shape(array)}, expected {(n_edges, 2)}")
    for name, array in (("dc_edge", mesh.dc_edge), ("dv_edge", mesh.dv_edge),
                        ("mesh_scaling_del2", mesh.mesh_scaling_del2),
                        ("min_level_edge_bot", mesh.min_level_edge_bot),
                        ("max_level_edge_top", mesh.max_level_edge_top)):
        if np.shape(array) != (n_edges,):
            raise FieldShapeError(f"{name} has shape {np.shape(array)}, expected {(n_edges,)}")

    if np.shape(tend) != (n_edges, num_levels):
        raise FieldShapeError(f"tendency has shape {np.shape(tend)}, expected {(n_edges, num_levels)}")
    for name, field in (("divergence", div), ("relative vorticity", rel_vort)):
        if np.ndim(field) != 2 or np.shape(field)[1] != num_levels:
            raise FieldShapeError(f"{name} has shape {np.shape(field)}, expected (n, {num_levels})")

    for name, indices, n_points in (("cell", mesh.cells_on_edge, np.shape(div)[0]),
                                    ("vertex", mesh.vertices_on_edge, np.shape(rel_vort)[0])):
        indices = np.asarray(indices)[:n_owned]
        if indices.size and (indices.min() < 0 or indices.max() >= n_points):
            raise FieldShapeError(
                f"owned edges reference {name} indices in [{indices.min()}, {indices.max()}] "
                f"but the field only covers {n_points} {name}s")


def check_leith_inputs(div, rel_vort, tend, mesh: EdgeMesh):
    """Raise FieldShapeError or InvalidEdgeLengthError if the Leith kernel inputs are inconsistent."""
    check_field_shapes(div, rel_vort, tend, mesh)
    check_edge_lengths(mesh)
