"""
.. package:: concertedrmsd
    :platform: Linux, MacOS, Windows
    :synopsis: Minimal RMSD restraints and their forces for OpenMM systems
"""

import logging

from ._version import __version__  # noqa: F401
from .concerted_rmsd_force import ConcertedRMSDForce  # noqa: F401
from .context import ForceContext  # noqa: F401
from .superposition import ConfigurationError, SuperpositionEngine  # noqa: F401

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConcertedRMSDForce",
    "ConfigurationError",
    "ForceContext",
    "SuperpositionEngine",
]
