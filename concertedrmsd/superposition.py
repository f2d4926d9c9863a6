"""
.. class:: SuperpositionEngine
   :platform: Linux, MacOS, Windows
   :synopsis: Minimal RMSD to a reference structure and its gradient

.. classauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import logging
import threading
import typing as t

import numpy as np
from numpy import typing as npt

from .eigensolver import largest_eigenpair
from .units import MatrixQuantity, to_coordinate_matrix

logger = logging.getLogger(__name__)

# Mean-square deviations below this value are treated as perfect alignment.
MSD_THRESHOLD = 1e-20


class ConfigurationError(ValueError):
    """
    Raised when reference positions or particle indices are inconsistent with the
    system they are meant for.
    """


def correlation_matrix(
    centeredPositions: np.ndarray, centeredReference: np.ndarray
) -> np.ndarray:
    r"""
    The 3x3 correlation matrix :math:`R_{ij} = \sum_k x_{ki} y_{kj}` between two
    centered point sets of the same size.
    """
    return centeredPositions.T @ centeredReference


def f_matrix(R: np.ndarray) -> np.ndarray:
    """
    The symmetric 4x4 matrix whose dominant eigenvector is the unit quaternion of
    the optimal rotation, as defined in Coutsias et al., J. Comput. Chem. 25, 1849
    (2004).
    """
    return np.array(
        [
            [
                R[0, 0] + R[1, 1] + R[2, 2],
                R[1, 2] - R[2, 1],
                R[2, 0] - R[0, 2],
                R[0, 1] - R[1, 0],
            ],
            [
                R[1, 2] - R[2, 1],
                R[0, 0] - R[1, 1] - R[2, 2],
                R[0, 1] + R[1, 0],
                R[0, 2] + R[2, 0],
            ],
            [
                R[2, 0] - R[0, 2],
                R[0, 1] + R[1, 0],
                -R[0, 0] + R[1, 1] - R[2, 2],
                R[1, 2] + R[2, 1],
            ],
            [
                R[0, 1] - R[1, 0],
                R[0, 2] + R[2, 0],
                R[1, 2] + R[2, 1],
                -R[0, 0] - R[1, 1] + R[2, 2],
            ],
        ]
    )


def quaternion_to_rotation(q: npt.ArrayLike) -> np.ndarray:
    """
    The 3x3 rotation matrix corresponding to a unit quaternion ``(q0, q1, q2, q3)``,
    with ``q0`` being the scalar part.

    Example
    -------
    >>> import numpy as np
    >>> from concertedrmsd.superposition import quaternion_to_rotation
    >>> quaternion_to_rotation([1.0, 0.0, 0.0, 0.0])
    array([[1., 0., 0.],
           [0., 1., 0.],
           [0., 0., 1.]])
    """
    q0, q1, q2, q3 = q
    q00, q01, q02, q03 = q0 * q0, q0 * q1, q0 * q2, q0 * q3
    q11, q12, q13 = q1 * q1, q1 * q2, q1 * q3
    q22, q23 = q2 * q2, q2 * q3
    q33 = q3 * q3
    return np.array(
        [
            [q00 + q11 - q22 - q33, 2 * (q12 - q03), 2 * (q13 + q02)],
            [2 * (q12 + q03), q00 - q11 + q22 - q33, 2 * (q23 - q01)],
            [2 * (q13 - q02), 2 * (q23 + q01), q00 - q11 - q22 + q33],
        ]
    )


def _validated_particles(particles: t.Iterable[int], systemSize: int) -> np.ndarray:
    particles = [int(index) for index in particles]
    distinct = set()
    for index in particles:
        if index < 0 or index >= systemSize:
            raise ConfigurationError(f"Illegal particle index for RMSD: {index}")
        if index in distinct:
            raise ConfigurationError(f"Duplicated particle index for RMSD: {index}")
        distinct.add(index)
    return np.array(particles, dtype=int)


def _centered(reference: np.ndarray, particles: np.ndarray) -> np.ndarray:
    return reference - reference[particles].mean(axis=0)


class SuperpositionEngine:
    r"""
    Computes the root-mean-square deviation (RMSD) of a group of :math:`n`
    particles from a reference structure after optimal rigid-body superposition,
    together with its gradient:

    .. math::

        d_{\rm rms}({\bf r}) = \sqrt{
            \frac{1}{n} \min_{
                \bf q \in \mathbb{R}^4 \atop \|{\bf q}\| = 1
            } \sum_{k=1}^n \left\|
                \hat{\bf r}_k - {\bf A}({\bf q})^T \hat{\bf r}_k^{\rm ref}
            \right\|^2
        }

    where :math:`\hat{\bf r}_k` is the position of the :math:`k`-th particle of the
    group relative to the group's centroid and :math:`{\bf A}({\bf q})` is the
    rotation matrix of a unit quaternion :math:`{\bf q}`. The optimal quaternion is
    the eigenvector of the largest eigenvalue :math:`\lambda_{\rm max}` of a 4x4
    symmetric matrix built from the correlation matrix of the two centered
    structures, and the minimum is :math:`\sum_k (\|\hat{\bf r}_k\|^2 +
    \|\hat{\bf r}_k^{\rm ref}\|^2) - 2\lambda_{\rm max}`. Because the rotation is
    optimal, its dependence on the positions does not contribute to the gradient,
    which is

    .. math::

        \frac{\partial d_{\rm rms}}{\partial {\bf r}_k} = \frac{
            \hat{\bf r}_k - {\bf A}({\bf q})^T \hat{\bf r}_k^{\rm ref}
        }{n d_{\rm rms}}

    The reference positions are centered at the centroid of the group when the
    engine is created or updated. Positions passed to :meth:`computeForce` are not
    validated.

    Parameters
    ----------
    referencePositions
        The reference coordinates of all particles in the system, including those
        that are not in ``particles``.
    particles
        The indices of the particles whose RMSD is computed.
    systemSize
        The number of particles in the system.

    Raises
    ------
    ConfigurationError
        If the number of reference positions differs from ``systemSize``, or if
        ``particles`` is empty, contains an index out of range, or contains a
        duplicated index.

    Example
    -------
    >>> import numpy as np
    >>> from concertedrmsd import SuperpositionEngine
    >>> reference = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    >>> engine = SuperpositionEngine(reference, [0, 1, 2], 3)
    >>> positions = reference + [0.0, 0.0, 0.5]
    >>> forces = np.zeros((3, 3))
    >>> round(engine.computeForce(positions, forces), 6)
    0.0
    >>> positions[1] += [0.0, 0.0, 1.0]
    >>> engine.computeForce(positions, forces) > 0
    True
    >>> np.allclose(forces.sum(axis=0), 0.0)
    True
    """

    def __init__(
        self,
        referencePositions: MatrixQuantity,
        particles: t.Iterable[int],
        systemSize: int,
    ) -> None:
        reference = to_coordinate_matrix(referencePositions)
        if len(reference) != systemSize:
            raise ConfigurationError(
                "Number of reference positions does not equal number of particles "
                "in the System"
            )
        particles = _validated_particles(particles, systemSize)
        if particles.size == 0:
            raise ConfigurationError("At least one particle is required for RMSD")
        self._lock = threading.Lock()
        self._listeners = []
        self._systemSize = systemSize
        self._particles = particles
        self._reference = _centered(reference, particles)
        logger.debug(
            "RMSD engine initialized with %d of %d particles",
            particles.size,
            systemSize,
        )

    def getSystemSize(self) -> int:
        """
        Get the number of particles in the system, which is also the number of
        reference positions.
        """
        return self._systemSize

    def getNumParticles(self) -> int:
        """
        Get the number of particles whose RMSD is computed.
        """
        return self._particles.size

    def getParticles(self) -> t.Tuple[int, ...]:
        """
        Get the indices of the particles whose RMSD is computed.
        """
        return tuple(map(int, self._particles))

    def getCenteredReference(self) -> np.ndarray:
        """
        Get a copy of the reference positions of all particles in the system, shifted
        so that the centroid of the particles in the group is at the origin.
        """
        return self._reference.copy()

    def addListener(self, listener: t.Callable[[], t.Any]) -> None:
        """
        Register a callable to be invoked without arguments whenever the parameters
        of this engine change.
        """
        self._listeners.append(listener)

    def removeListener(self, listener: t.Callable[[], t.Any]) -> None:
        """
        Unregister a callable previously registered with :meth:`addListener`.
        """
        self._listeners.remove(listener)

    def _superpose(
        self, positions: npt.ArrayLike
    ) -> t.Tuple[float, np.ndarray, np.ndarray, np.ndarray]:
        particles = self._particles
        num_particles = particles.size
        current = np.asarray(positions, dtype=float)[particles]
        centered_pos = current - current.mean(axis=0)
        centered_ref = self._reference[particles]
        R = correlation_matrix(centered_pos, centered_ref)
        lambda_max, q = largest_eigenpair(f_matrix(R))
        total = np.sum(centered_pos**2) + np.sum(centered_ref**2)
        msd = (total - 2 * lambda_max) / num_particles
        return msd, q, centered_pos, centered_ref

    def computeRMSD(self, positions: npt.ArrayLike) -> float:
        """
        Compute the RMSD of the group of particles with respect to the reference
        structure.

        Parameters
        ----------
        positions
            The current positions of all particles in the system, in the same units
            as the reference positions.

        Returns
        -------
        float
            The minimal RMSD after optimal superposition
        """
        with self._lock:
            msd, *_ = self._superpose(positions)
        return 0.0 if msd < MSD_THRESHOLD else float(np.sqrt(msd))

    def computeForce(self, positions: npt.ArrayLike, forces: np.ndarray) -> float:
        """
        Compute the RMSD of the group of particles and store its negative gradient
        in the rows of ``forces`` that correspond to particles in the group. Other
        rows are left untouched.

        If the group is perfectly superposable to the reference structure, the RMSD
        is zero and so are the forces.

        Parameters
        ----------
        positions
            The current positions of all particles in the system.
        forces
            A writable array of shape (N, 3), where N is at least the largest
            particle index plus one.

        Returns
        -------
        float
            The minimal RMSD after optimal superposition
        """
        with self._lock:
            particles = self._particles
            msd, q, centered_pos, centered_ref = self._superpose(positions)
            if msd < MSD_THRESHOLD:
                logger.debug("Perfect superposition (msd = %g), zero forces", msd)
                forces[particles] = 0.0
                return 0.0
            rmsd = float(np.sqrt(msd))
            U = quaternion_to_rotation(q)
            rotated_ref = centered_ref @ U
            forces[particles] = -(centered_pos - rotated_ref) / (
                rmsd * particles.size
            )
        return rmsd

    def _prepareParameters(
        self, referencePositions: MatrixQuantity, particles: t.Iterable[int]
    ) -> t.Tuple[np.ndarray, np.ndarray]:
        reference = to_coordinate_matrix(referencePositions)
        if len(reference) != self._systemSize:
            raise ConfigurationError("The number of reference positions has changed")
        particles = _validated_particles(particles, self._systemSize)
        if particles.size == 0:
            particles = np.arange(self._systemSize)
        return particles, _centered(reference, particles)

    def _commitParameters(self, particles: np.ndarray, reference: np.ndarray) -> None:
        with self._lock:
            self._particles = particles
            self._reference = reference
        logger.debug("RMSD engine updated with %d particles", particles.size)
        for listener in list(self._listeners):
            listener()

    def updateParameters(
        self, referencePositions: MatrixQuantity, particles: t.Iterable[int]
    ) -> None:
        """
        Replace the reference positions and the group of particles. An empty group
        selects all particles in the system.

        The number of reference positions cannot change. If validation fails, the
        current parameters are kept. Otherwise, all registered listeners are
        notified after the update.

        Parameters
        ----------
        referencePositions
            The new reference coordinates of all particles in the system.
        particles
            The indices of the particles whose RMSD is computed, or an empty
            sequence to select all of them.

        Raises
        ------
        ConfigurationError
            If the number of reference positions has changed or if the group
            contains an index out of range or a duplicated index.
        """
        self._commitParameters(*self._prepareParameters(referencePositions, particles))
