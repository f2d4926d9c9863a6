"""
Units submodule of concertedrmsd

"""

from .units import (  # noqa: F401
    MatrixQuantity,
    ScalarQuantity,
    VectorQuantity,
    to_coordinate_matrix,
    value_in_md_units,
)
