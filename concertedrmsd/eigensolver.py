"""
.. module:: eigensolver
   :platform: Linux, MacOS, Windows
   :synopsis: Eigendecomposition of small real symmetric matrices

.. moduleauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import typing as t

import numpy as np
from numpy import typing as npt


def decompose(matrix: npt.ArrayLike) -> t.Tuple[np.ndarray, np.ndarray]:
    r"""
    Compute all eigenvalues and eigenvectors of a real symmetric matrix.

    Only the symmetric part :math:`({\bf M} + {\bf M}^T)/2` of the matrix is used.
    The decomposition is delegated to :func:`numpy.linalg.eigh`, which is stable
    for repeated or nearly repeated eigenvalues.

    Parameters
    ----------
    matrix
        A real symmetric square matrix.

    Returns
    -------
    numpy.ndarray
        The eigenvalues in ascending order
    numpy.ndarray
        The orthonormal eigenvectors, stored as columns in the same order as the
        eigenvalues

    Raises
    ------
    ValueError
        If the matrix is not square or contains non-finite entries

    Example
    -------
    >>> import numpy as np
    >>> from concertedrmsd.eigensolver import decompose
    >>> values, vectors = decompose([[2.0, 1.0], [1.0, 2.0]])
    >>> np.allclose(values, [1.0, 3.0])
    True
    >>> np.allclose(np.abs(vectors), np.sqrt(0.5))
    True
    """
    matrix = np.array(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("Eigendecomposition requires a square matrix.")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Eigendecomposition requires a matrix with finite entries.")
    return np.linalg.eigh(0.5 * (matrix + matrix.T))


def largest_eigenpair(matrix: npt.ArrayLike) -> t.Tuple[float, np.ndarray]:
    """
    Return the largest eigenvalue of a real symmetric matrix and its unit
    eigenvector.

    Parameters
    ----------
    matrix
        A real symmetric square matrix

    Returns
    -------
    float
        The largest eigenvalue
    numpy.ndarray
        The corresponding unit eigenvector

    Example
    -------
    >>> import numpy as np
    >>> from concertedrmsd.eigensolver import largest_eigenpair
    >>> value, vector = largest_eigenpair([[1.0, 0.0], [0.0, 5.0]])
    >>> value
    5.0
    >>> np.allclose(np.abs(vector), [0.0, 1.0])
    True
    """
    values, vectors = decompose(matrix)
    return float(values[-1]), vectors[:, -1]
