"""
.. class:: ForceContext
   :platform: Linux, MacOS, Windows
   :synopsis: Evaluation of a ConcertedRMSDForce at the state of an OpenMM Context

.. classauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import logging
import typing as t

import numpy as np
import openmm
from openmm import unit as mmunit

from .concerted_rmsd_force import ConcertedRMSDForce
from .superposition import SuperpositionEngine

logger = logging.getLogger(__name__)


class ForceContext:
    """
    Binds a :class:`~concertedrmsd.ConcertedRMSDForce` to an :OpenMM:`Context`.

    A :class:`~concertedrmsd.superposition.SuperpositionEngine` is created for the
    system of the context, which supplies the positions at each evaluation. The
    last evaluation is reused while the positions do not change and is discarded
    whenever the parameters are updated.

    Parameters
    ----------
    force
        The force to be evaluated
    context
        The context whose positions are used

    Raises
    ------
    ConfigurationError
        If the force parameters are inconsistent with the system of the context

    Example
    -------
    >>> import concertedrmsd
    >>> import openmm
    >>> from openmm import unit
    >>> reference = [
    ...     openmm.Vec3(0, 0, 0), openmm.Vec3(1, 0, 0), openmm.Vec3(0, 1, 0)
    ... ] * unit.nanometers
    >>> system = openmm.System()
    >>> for _ in range(3):
    ...     _ = system.addParticle(1.0)
    >>> platform = openmm.Platform.getPlatformByName("Reference")
    >>> context = openmm.Context(system, openmm.VerletIntegrator(0), platform)
    >>> context.setPositions(reference)
    >>> force = concertedrmsd.ConcertedRMSDForce(reference, [0, 1, 2])
    >>> binding = concertedrmsd.ForceContext(force, context)
    >>> round(binding.getValue().value_in_unit(unit.nanometers), 6)
    0.0
    """

    def __init__(self, force: ConcertedRMSDForce, context: openmm.Context) -> None:
        self._force = force
        self._context = context
        system_size = context.getSystem().getNumParticles()
        self._engine = force.createEngine(system_size)
        self._engine.addListener(self.systemChanged)
        self._cache = None
        force._addBinding(self)  # pylint: disable=protected-access
        logger.debug("Force '%s' bound to a context", force.getName())

    def getForce(self) -> ConcertedRMSDForce:
        """
        Get the force bound to the context.
        """
        return self._force

    def getContext(self) -> openmm.Context:
        """
        Get the context to which the force is bound.
        """
        return self._context

    def getEngine(self) -> SuperpositionEngine:
        """
        Get the engine that carries out the computations.
        """
        return self._engine

    def systemChanged(self) -> None:
        """
        Discard the last evaluation. Called by the engine when its parameters change.
        """
        self._cache = None

    def updateParameters(self) -> None:
        """
        Copy the current parameters of the force into the engine.
        """
        self._force.updateParametersInContext(self)

    def _evaluate(self) -> t.Tuple[float, np.ndarray]:
        state = self._context.getState(  # pylint: disable=unexpected-keyword-arg
            getPositions=True
        )
        positions = state.getPositions(asNumpy=True).value_in_unit(mmunit.nanometers)
        if self._cache is not None and np.array_equal(self._cache[0], positions):
            return self._cache[1:]
        forces = np.zeros_like(positions)
        value = self._engine.computeForce(positions, forces)
        self._cache = (positions, value, forces)
        return value, forces

    def getValue(self) -> mmunit.Quantity:
        """
        Evaluate the RMSD at the current positions of the context.

        Returns
        -------
        openmm.unit.Quantity
            The RMSD in nanometers
        """
        value, _ = self._evaluate()
        return value * mmunit.nanometers

    def getForces(self) -> np.ndarray:
        """
        Evaluate the negative gradient of the RMSD with respect to the current
        positions of the context. Rows of particles that are not in the group are
        zero.

        Returns
        -------
        numpy.ndarray
            An array of shape (N, 3), where N is the number of particles in the system
        """
        _, forces = self._evaluate()
        return forces.copy()
