"""
Data structures for the Leith horizontal momentum mixing scheme.
"""

import enum

import jax.numpy as jnp
import tree_math
from jax import tree_util


class LeithStatus(enum.IntEnum):
    """Return code of the mixing kernels."""

    SUCCESS = 0
    FAILURE = 1


@tree_math.struct
class LeithParameters:
    """Parameters for the Leith closure, fixed for the whole model run."""

    enabled: bool               # Whether Leith mixing was chosen
    leith_parameter: float      # Non-dimensional Leith coefficient, O(1)
    leith_dx: float             # Leith length scale (m)
    visc2_max: float            # Upper bound of the Leith viscosity (m²/s)
    sqrt3: float                # sqrt(3)

    @classmethod
    def default(cls) -> 'LeithParameters':
        """Return the disabled configuration: all coefficients zero."""
        return cls(
            enabled=False,  # Keep as Python bool, checked outside jit
            leith_parameter=jnp.array(0.0),
            leith_dx=jnp.array(0.0),
            visc2_max=jnp.array(0.0),
            sqrt3=jnp.sqrt(jnp.array(3.0))
        )

    @classmethod
    def from_config(cls, cfg) -> 'LeithParameters':
        """
        Build parameters from the `hmix.leith` section of a configuration.

        Args:
            cfg: omegaconf DictConfig (or mapping) holding either the full
                configuration or its `hmix.leith` section. Missing keys take
                the usual ocean-model defaults (Leith off).
        """
        from jom.hmix.leith import init_leith

        if "hmix" in cfg:
            cfg = cfg["hmix"]["leith"]
        return init_leith(
            use_leith_del2=bool(cfg.get("use_leith_del2", False)),
            leith_parameter=float(cfg.get("leith_parameter", 1.0)),
            leith_dx=float(cfg.get("leith_dx", 15000.0)),
            leith_visc2_max=float(cfg.get("leith_visc2_max", 2.5e3)),
        )

    def coefficients(self, dtype):
        """Numeric parameters cast to the working precision."""
        return (
            jnp.asarray(self.leith_parameter, dtype=dtype),
            jnp.asarray(self.leith_dx, dtype=dtype),
            jnp.asarray(self.visc2_max, dtype=dtype),
            jnp.asarray(self.sqrt3, dtype=dtype),
        )

    def isnan(self):
        return tree_util.tree_map(jnp.isnan, self)
