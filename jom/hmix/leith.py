"""
Ocean horizontal momentum mixing with the Leith closure

The Leith closure is the enstrophy-cascade analogue of the Smagorinsky (1963)
energy-cascade closure: Leith (1996) assumes an inertial range of enstrophy
flux moving toward the mesh scale. Dimensional analysis then gives a
right-hand-side dissipation of velocity

    D = div( nu * grad(u) ) = div( gamma * |grad(omega)| * dx**3 * grad(u) )

where omega is the relative vorticity and gamma a non-dimensional O(1)
parameter. On the edge-based mesh, grad(u) is replaced by the discrete
Laplacian of the normal velocity,

    u_diff = d(div)/dc - d(omega)/dv,

and |grad(omega)| by |d(omega)| / dc.

Based on MPAS-Ocean's ocn_vel_hmix_leith.
"""

import logging
from functools import partial
from typing import Tuple

import jax
import jax.numpy as jnp

from jom.backend import ExecutionBackend, parallel_for
from jom.mesh import EdgeMesh
from jom.timing import timer
from .leith_types import LeithParameters, LeithStatus
from .validation import check_leith_inputs

logger = logging.getLogger(__name__)

TIMER_LABEL = "vel leith"


def init_leith(
    use_leith_del2: bool,
    leith_parameter: float = 0.0,
    leith_dx: float = 0.0,
    leith_visc2_max: float = 0.0
) -> LeithParameters:
    """
    Initialize the Leith parameters.

    Args:
        use_leith_del2: Whether the Leith closure is used
        leith_parameter: Non-dimensional Leith coefficient
        leith_dx: Leith length scale (m)
        leith_visc2_max: Maximum Leith viscosity (m²/s)

    Returns:
        LeithParameters; when Leith is not chosen all coefficients are zero
    """
    params = LeithParameters.default()
    if use_leith_del2:
        params = LeithParameters(
            enabled=True,
            leith_parameter=jnp.array(leith_parameter),
            leith_dx=jnp.array(leith_dx),
            visc2_max=jnp.array(leith_visc2_max),
            sqrt3=params.sqrt3
        )
    logger.info("Leith horizontal mixing %s", "enabled" if params.enabled else "disabled")
    return params


def _leith_edge(
    cell_pair: jnp.ndarray,
    vertex_pair: jnp.ndarray,
    dc_edge: jnp.ndarray,
    dv_edge: jnp.ndarray,
    mesh_scaling: jnp.ndarray,
    min_level: jnp.ndarray,
    max_level: jnp.ndarray,
    edge_mask: jnp.ndarray,
    tend: jnp.ndarray,
    div: jnp.ndarray,
    rel_vort: jnp.ndarray,
    coefficients: Tuple[jnp.ndarray, ...]
) -> jnp.ndarray:
    """
    Leith tendency of one edge, all levels at once.

    Args:
        cell_pair: cell1, cell2
        vertex_pair: vertex1, vertex2
        dc_edge, dv_edge, mesh_scaling: Geometry of the edge
        min_level, max_level: Active vertical range (inclusive)
        edge_mask: Active mask [nlev]
        tend: Accumulated tendency of the edge [nlev]
        div: Divergence [ncells, nlev]
        rel_vort: Relative vorticity [nvertices, nlev]
        coefficients: (leith_parameter, leith_dx, visc2_max, sqrt3)

    Returns:
        Updated tendency of the edge [nlev]
    """
    leith_parameter, leith_dx, visc2_max, sqrt3 = coefficients
    cell1, cell2 = cell_pair[0], cell_pair[1]
    vertex1, vertex2 = vertex_pair[0], vertex_pair[1]

    dc_edge_inv = 1.0 / dc_edge
    dv_edge_inv = 1.0 / dv_edge

    visc2tmp = (leith_parameter * leith_dx * mesh_scaling / jnp.pi) ** 3

    # -(relVort(vertex2) - relVort(vertex1)) / dvEdge is -grad(relVort) pointing
    # from vertex2 to vertex1, or equivalently k x grad(relVort) pointing from
    # cell1 to cell2.
    u_diff = (div[cell2] - div[cell1]) * dc_edge_inv \
        - (rel_vort[vertex2] - rel_vort[vertex1]) * dv_edge_inv

    # (dx)**3 * |grad(relVort)|
    visc2 = visc2tmp * jnp.abs(rel_vort[vertex2] - rel_vort[vertex1]) * dc_edge_inv * sqrt3
    # clamped into [0, visc2_max]; a negative coefficient never becomes anti-diffusion
    visc2 = jnp.maximum(jnp.minimum(visc2, visc2_max), 0.0)

    levels = jnp.arange(tend.shape[0])
    active = (levels >= min_level) & (levels <= max_level)

    return jnp.where(active, tend + edge_mask * visc2 * u_diff, tend)


@partial(jax.jit, static_argnames=("n_edges_owned",))
def _leith_tendency_owned(div, rel_vort, tend, mesh: EdgeMesh, coefficients, n_edges_owned: int):
    owned = slice(0, n_edges_owned)
    tend_owned = parallel_for(
        _leith_edge,
        (
            mesh.cells_on_edge[owned],
            mesh.vertices_on_edge[owned],
            mesh.dc_edge[owned],
            mesh.dv_edge[owned],
            mesh.mesh_scaling_del2[owned],
            mesh.min_level_edge_bot[owned],
            mesh.max_level_edge_top[owned],
            mesh.edge_mask[owned],
            tend[owned],
        ),
        (div, rel_vort, coefficients),
    )
    return tend.at[owned].set(tend_owned)


def leith_tendency(
    div: jnp.ndarray,
    rel_vort: jnp.ndarray,
    tend: jnp.ndarray,
    mesh: EdgeMesh,
    params: LeithParameters,
    backend=None,
    timed: bool = True,
    validate: bool = False
) -> Tuple[jnp.ndarray, LeithStatus]:
    """
    Add the Leith horizontal momentum mixing tendency on the owned edges.

    Args:
        div: Velocity divergence [ncells, nlev]
        rel_vort: Relative vorticity [nvertices, nlev]
        tend: Accumulated velocity tendency [nedges, nlev]
        mesh: Edge mesh
        params: Leith parameters from `init_leith`
        backend: ExecutionBackend (or its name) on which the edge loop runs;
            None selects the default device
        timed: Bracket the call with the "vel leith" timer
        validate: Check mesh and field consistency before computing

    Returns:
        Tuple of (tend, status): the tendency with the Leith contribution
        added on every active level of every owned edge, every other entry
        unchanged; and the status, always LeithStatus.SUCCESS
    """
    if not params.enabled:
        return tend, LeithStatus.SUCCESS

    if validate:
        check_leith_inputs(div, rel_vort, tend, mesh)

    backend = ExecutionBackend.from_name(backend)
    n_edges_owned = int(mesh.n_edges_owned)
    if n_edges_owned == 0:
        return tend, LeithStatus.SUCCESS

    with timer(TIMER_LABEL, enabled=timed):
        tend = jnp.asarray(tend)
        dtype = tend.dtype
        div, rel_vort, tend, mesh = backend.put((
            jnp.asarray(div, dtype=dtype),
            jnp.asarray(rel_vort, dtype=dtype),
            tend,
            mesh.with_float_dtype(dtype),
        ))
        tend = _leith_tendency_owned(div, rel_vort, tend, mesh, params.coefficients(dtype), n_edges_owned)

    return tend, LeithStatus.SUCCESS
