import logging

import hydra
import jax.numpy as jnp
import numpy as np
from omegaconf import DictConfig

from jom.backend import ExecutionBackend, configure_precision
from jom.hmix.leith import leith_tendency
from jom.hmix.leith_types import LeithParameters
from jom.mesh import EdgeMesh

log = logging.getLogger(__name__)

def synthetic_fields(nx, ny, dc, num_levels, div_amplitude, vort_amplitude):
    """
    Smooth, doubly periodic divergence (at cell centres) and relative vorticity (at vertices)
    on the planar quad mesh, decaying with depth.
    """
    lx, ly = nx * dc, ny * dc
    i, j = np.meshgrid(np.arange(nx), np.arange(ny), indexing='xy')
    i, j = i.ravel(), j.ravel()
    decay = np.exp(-np.arange(num_levels) / num_levels)

    x_cell, y_cell = (i + 0.5) * dc, (j + 0.5) * dc
    x_vertex, y_vertex = i * dc, j * dc

    div = div_amplitude * (np.sin(2 * np.pi * x_cell / lx) * np.cos(2 * np.pi * y_cell / ly))[:, None] * decay
    rel_vort = vort_amplitude * (np.cos(2 * np.pi * x_vertex / lx) * np.cos(2 * np.pi * y_vertex / ly))[:, None] * decay
    return jnp.asarray(div), jnp.asarray(rel_vort)

def run(cfg: DictConfig):
    """
    Runs the Leith mixing kernel once on a synthetic planar mesh described by `cfg`.

    Returns:
        Tuple of (tend, status, mesh)
    """
    dtype = configure_precision(cfg.precision)
    backend = ExecutionBackend.from_name(cfg.backend)
    params = LeithParameters.from_config(cfg)

    nx, ny, num_levels = cfg.mesh.nx, cfg.mesh.ny, cfg.mesh.num_levels
    n_edges = 2 * nx * ny
    mesh = EdgeMesh.planar_quad(nx, ny, dc=cfg.mesh.dc, num_levels=num_levels,
                                n_edges_owned=n_edges - cfg.mesh.n_halo_edges)
    div, rel_vort = synthetic_fields(nx, ny, cfg.mesh.dc, num_levels,
                                     cfg.fields.div_amplitude, cfg.fields.vort_amplitude)
    tend = jnp.zeros((n_edges, num_levels), dtype=dtype)

    log.info("Mesh: %d cells, %d edges (%d owned), %d levels, %s precision on %s",
             nx * ny, n_edges, mesh.n_edges_owned, num_levels, cfg.precision, backend.device())

    tend, status = leith_tendency(div, rel_vort, tend, mesh, params,
                                  backend=backend, timed=cfg.timer, validate=cfg.validate)

    touched = int(jnp.count_nonzero(jnp.any(tend != 0.0, axis=1)))
    log.info("status=%s, max |tendency| = %.3e m/s^2 on %d edges",
             status.name, float(jnp.max(jnp.abs(tend))), touched)
    return tend, status, mesh

@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig):
    """
    Computes the Leith horizontal mixing tendency on a synthetic mesh

    Example:
        python -m jom.main
        python -m jom.main hmix.leith.leith_visc2_max=100.0
        python -m jom.main backend=cpu precision=single
        python -m jom.main -m hmix.leith.leith_dx=5000,15000,30000
    """
    run(cfg)

if __name__ == "__main__":
    main()
