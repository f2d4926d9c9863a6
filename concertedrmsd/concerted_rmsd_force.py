"""
.. class:: ConcertedRMSDForce
   :platform: Linux, MacOS, Windows
   :synopsis: Parameters of an RMSD restraint over a group of particles

.. classauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import typing as t
import weakref

import openmm
import yaml
from openmm import unit as mmunit

from .serialization import Serializable
from .superposition import SuperpositionEngine
from .units import MatrixQuantity, to_coordinate_matrix


class ConcertedRMSDForce(Serializable):
    r"""
    The root-mean-square deviation (RMSD) between the current and reference
    coordinates of a group of particles, after optimal rigid-body superposition.
    Its value plays the role of a potential energy and its negative gradient that
    of a force.

    This object holds the parameters only. The computation is carried out by a
    :class:`~concertedrmsd.superposition.SuperpositionEngine` created for a specific
    system, usually through a :class:`~concertedrmsd.context.ForceContext`.
    Changing the parameters of this object does not affect existing engines until
    :meth:`updateParametersInContext` is called.

    Parameters
    ----------
    referencePositions
        The reference coordinates of all particles in the system. Values without
        units are assumed to be in nanometers.
    particles
        The indices of the particles whose RMSD is computed. A context cannot be
        bound while this is empty, but when the parameters are updated in a
        context, an empty sequence selects all particles.
    name
        The name of this force.

    Example
    -------
    >>> import concertedrmsd
    >>> import openmm
    >>> from openmm import unit
    >>> positions = [openmm.Vec3(0, 0, 0), openmm.Vec3(10, 0, 0)] * unit.angstroms
    >>> force = concertedrmsd.ConcertedRMSDForce(positions, [0, 1])
    >>> force.getReferencePositions()[1].value_in_unit(unit.nanometers)
    Vec3(x=1.0, y=0.0, z=0.0)
    >>> force.getParticles()
    [0, 1]
    """

    def __init__(
        self,
        referencePositions: MatrixQuantity,
        particles: t.Iterable[int] = (),
        name: str = "concerted_rmsd",
    ) -> None:
        self._name = name
        self._reference = to_coordinate_matrix(referencePositions)
        self._particles = [int(index) for index in particles]
        self._bindings = weakref.WeakSet()

    def __getstate__(self) -> t.Dict[str, t.Any]:
        return {
            "name": self._name,
            "particles": list(self._particles),
            "referencePositions": self._reference.tolist(),
        }

    def __setstate__(self, keywords: t.Dict[str, t.Any]) -> None:
        self.__init__(**keywords)

    def __copy__(self) -> "ConcertedRMSDForce":
        return yaml.safe_load(yaml.safe_dump(self))

    def __deepcopy__(self, _) -> "ConcertedRMSDForce":
        return yaml.safe_load(yaml.safe_dump(self))

    def getName(self) -> str:
        """
        Get the name of this force.
        """
        return self._name

    def getReferencePositions(self) -> mmunit.Quantity:
        """
        Get the reference positions of all particles in the system.
        """
        positions = [openmm.Vec3(*row) for row in self._reference.tolist()]
        return positions * mmunit.nanometers

    def setReferencePositions(self, positions: MatrixQuantity) -> None:
        """
        Set the reference positions of all particles in the system.

        Parameters
        ----------
        positions
            The new reference coordinates. Values without units are assumed to be in
            nanometers.
        """
        self._reference = to_coordinate_matrix(positions)

    def getParticles(self) -> t.List[int]:
        """
        Get the indices of the particles whose RMSD is computed.
        """
        return list(self._particles)

    def setParticles(self, particles: t.Iterable[int]) -> None:
        """
        Set the indices of the particles whose RMSD is computed.

        Parameters
        ----------
        particles
            The new particle indices. When updated in a context, an empty sequence
            selects all particles.
        """
        self._particles = [int(index) for index in particles]

    def createEngine(self, systemSize: int) -> SuperpositionEngine:
        """
        Create an engine that computes this RMSD for a system of a given size.

        Parameters
        ----------
        systemSize
            The number of particles in the system

        Returns
        -------
        SuperpositionEngine
            A new engine holding its own copy of the current parameters

        Raises
        ------
        ConfigurationError
            If the parameters are inconsistent with the system size
        """
        return SuperpositionEngine(self._reference, self._particles, systemSize)

    def _addBinding(self, binding: t.Any) -> None:
        self._bindings.add(binding)

    def updateParametersInContext(self, context: t.Any) -> None:
        """
        Copy the current reference positions and particle indices of this force into
        the engine bound to a context.

        The number of reference positions cannot change. An empty list of particles
        selects all particles in the system.

        Parameters
        ----------
        context
            A :class:`~concertedrmsd.context.ForceContext` created for this force, or
            the :OpenMM:`Context` it wraps.

        Raises
        ------
        RuntimeError
            If this force is not bound to the given context
        ConfigurationError
            If the new parameters are inconsistent with the system
        """
        bindings = [
            binding
            for binding in self._bindings
            if binding is context or binding.getContext() is context
        ]
        if not bindings:
            raise RuntimeError("This force is not bound to the given context.")
        # pylint: disable=protected-access
        engines = [binding.getEngine() for binding in bindings]
        updates = [
            engine._prepareParameters(self._reference, self._particles)
            for engine in engines
        ]
        for engine, parameters in zip(engines, updates):
            engine._commitParameters(*parameters)


ConcertedRMSDForce.registerTag("!concertedrmsd.ConcertedRMSDForce")
