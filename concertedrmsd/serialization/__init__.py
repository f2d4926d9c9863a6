"""
Serialization subpackage of concertedrmsd

"""

from .serialization import Serializable, deserialize, serialize  # noqa: F401
