"""
Horizontal momentum mixing schemes for the ocean model

Each scheme adds its contribution to the normal-velocity tendency on the
owned edges of the mesh:
- Leith closure (enstrophy-cascade del2 viscosity)
"""

from .leith_types import (
    LeithParameters,
    LeithStatus
)

from .leith import (
    init_leith,
    leith_tendency
)

from .validation import (
    InvalidEdgeLengthError,
    FieldShapeError,
    check_leith_inputs
)

__all__ = [
    # Types
    "LeithParameters",
    "LeithStatus",

    # Leith closure
    "init_leith",
    "leith_tendency",

    # Validation
    "InvalidEdgeLengthError",
    "FieldShapeError",
    "check_leith_inputs"
]
