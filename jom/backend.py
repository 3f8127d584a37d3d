"""
Execution backends for the edge loops of the mixing schemes.

Each scheme writes its per-edge stencil once and hands it to `parallel_for`,
which maps it over the owned edges. The `ExecutionBackend` only decides on
which device the inputs are committed, and therefore where the compiled
loop runs (multi-threaded CPU or an accelerator).
"""
import enum
import logging

import jax
import jax.numpy as jnp

logger = logging.getLogger(__name__)

_x64_for_precision = {
    "single": False,
    "double": True,
}

def configure_precision(precision: str):
    """
    Selects the floating-point width used by every array created afterwards.

    Args:
        precision: "single" or "double".

    Returns:
        The default floating-point dtype after the update.
    """
    try:
        enable_x64 = _x64_for_precision[precision]
    except KeyError:
        raise ValueError(f"Invalid precision: {precision}. Must be one of: {list(_x64_for_precision.keys())}")
    jax.config.update("jax_enable_x64", enable_x64)
    return default_float_dtype()

def default_float_dtype():
    return jnp.asarray(0.0).dtype

class ExecutionBackend(enum.Enum):
    AUTO = "auto" # jax default device
    CPU = "cpu"
    GPU = "gpu"
    TPU = "tpu"

    @classmethod
    def from_name(cls, name) -> 'ExecutionBackend':
        if name is None:
            return cls.AUTO
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ValueError(f"Invalid execution backend: {name}. Must be one of: {[b.value for b in cls]}")

    def device(self):
        if self is ExecutionBackend.AUTO:
            return jax.devices()[0]
        try:
            return jax.devices(self.value)[0]
        except RuntimeError as e:
            raise ValueError(f"Execution backend '{self.value}' is not available on this host.") from e

    def put(self, tree):
        """Commits every array of `tree` to this backend's device."""
        device = self.device()
        logger.debug("Placing inputs on %s", device)
        return jax.device_put(tree, device)

def parallel_for(body, edge_args, shared_args=()):
    '''
    Applies `body` to every edge.

    `body(*edge_row, *shared_args)` receives one row of each array in `edge_args`
    (all with the edge dimension first) and the `shared_args` unchanged. Iterations
    must only produce their own row; the results are stacked along the edge dimension.
    '''
    in_axes = (0,) * len(edge_args) + (None,) * len(shared_args)
    return jax.vmap(body, in_axes=in_axes)(*edge_args, *shared_args)
