"""
.. module:: serialization
   :platform: Linux, MacOS, Windows
   :synopsis: Serialization of force parameters

.. moduleauthor:: Charlles Abreu <craabreu@gmail.com>

"""

import typing as t

import yaml


class Serializable(yaml.YAMLObject):
    """
    A mixin class that allows serialization and deserialization of objects with PyYAML.
    """

    @classmethod
    def registerTag(cls, tag: str) -> None:
        """
        Register a class for serialization and deserialization with PyYAML.

        Parameters
        ----------
        tag
            The YAML tag to be used for this class.
        """
        cls.yaml_tag = tag
        yaml.SafeDumper.add_representer(cls, cls.to_yaml)
        yaml.SafeLoader.add_constructor(tag, cls.from_yaml)


def serialize(obj: t.Any, iostream: t.IO) -> None:
    """
    Serializes a concertedrmsd object.

    Parameters
    ----------
    obj
        The concertedrmsd object to be serialized
    iostream
        A text stream in write mode

    Example
    =======
    >>> import io
    >>> import concertedrmsd
    >>> from concertedrmsd import serialization
    >>> force = concertedrmsd.ConcertedRMSDForce([[0, 0, 0], [1, 0, 0]], [0, 1])
    >>> iostream = io.StringIO()
    >>> serialization.serialize(force, iostream)
    >>> print(iostream.getvalue())
    !concertedrmsd.ConcertedRMSDForce
    name: concerted_rmsd
    particles:
    - 0
    - 1
    referencePositions:
    - - 0.0
      - 0.0
      - 0.0
    - - 1.0
      - 0.0
      - 0.0
    <BLANKLINE>
    """
    iostream.write(yaml.safe_dump(obj))


def deserialize(iostream: t.IO) -> t.Any:
    """
    Deserializes a concertedrmsd object.

    Parameters
    ----------
    iostream
        A text stream in read mode containing the object to be deserialized

    Returns
    -------
    t.Any
        An instance of any concertedrmsd class

    Example
    -------
    >>> import io
    >>> import concertedrmsd
    >>> from concertedrmsd import serialization
    >>> force = concertedrmsd.ConcertedRMSDForce([[0, 0, 0], [1, 0, 0]], [0, 1])
    >>> iostream = io.StringIO()
    >>> serialization.serialize(force, iostream)
    >>> iostream.seek(0)
    0
    >>> new_object = serialization.deserialize(iostream)
    >>> type(new_object)
    <class 'concertedrmsd.concerted_rmsd_force.ConcertedRMSDForce'>
    """
    return yaml.safe_load(iostream.read())
