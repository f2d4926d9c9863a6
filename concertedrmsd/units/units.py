"""
.. module:: units
   :platform: Linux, MacOS, Windows
   :synopsis: Units of measurement for concertedrmsd.

.. moduleauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import typing as t
from numbers import Real

import numpy as np
import openmm
from openmm import unit as mmunit

ScalarQuantity = t.Union[mmunit.Quantity, Real]
VectorQuantity = t.Union[mmunit.Quantity, np.ndarray, openmm.Vec3]
MatrixQuantity = t.Union[
    mmunit.Quantity, np.ndarray, t.Sequence[openmm.Vec3], t.Sequence[np.ndarray]
]


def value_in_md_units(
    quantity: t.Union[ScalarQuantity, VectorQuantity, MatrixQuantity]
) -> t.Any:
    """
    Return the value of a quantity in the MD unit system (e.g. mass in Da, distance in
    nm, time in ps, temperature in K, energy in kJ/mol, angle in rad).

    Parameters
    ----------
    quantity
        The quantity to be converted.

    Returns
    -------
    Any
        The value of the quantity in the MD unit system.

    Example
    -------
    >>> from openmm import unit
    >>> from concertedrmsd.units import value_in_md_units
    >>> value_in_md_units(10.0 * unit.angstroms)
    1.0
    >>> value_in_md_units(0.3)
    0.3
    """
    if mmunit.is_quantity(quantity):
        return quantity.value_in_unit_system(mmunit.md_unit_system)
    return quantity


def to_coordinate_matrix(positions: MatrixQuantity) -> np.ndarray:
    """
    Convert a sequence of 3D positions, with or without units, to a coordinate
    matrix in nanometers.

    Parameters
    ----------
    positions
        A quantity wrapping a sequence of positions, a sequence of :OpenMM:`Vec3`,
        or an array-like object of shape (N, 3).

    Returns
    -------
    numpy.ndarray
        A new float array of shape (N, 3).

    Raises
    ------
    ValueError
        If the positions cannot be arranged as an (N, 3) matrix.

    Example
    -------
    >>> import openmm
    >>> from openmm import unit
    >>> from concertedrmsd.units import to_coordinate_matrix
    >>> to_coordinate_matrix([openmm.Vec3(10, 0, 0)] * unit.angstroms)
    array([[1., 0., 0.]])
    """
    matrix = np.array(value_in_md_units(positions), dtype=float)
    if matrix.size == 0:
        return np.zeros((0, 3))
    if matrix.ndim != 2 or matrix.shape[1] != 3:
        raise ValueError(
            f"Positions must form a matrix with 3 columns, not shape {matrix.shape}."
        )
    return matrix
