"""
RADIUS attribute model

Attribute values, ordered attribute lists, packets and the per-transaction
request aggregate the exec module operates on.
"""

from .packet import AttributeList, RADIUSAttribute, RADIUSPacket
from .request import Request

__all__ = [
    "AttributeList",
    "RADIUSAttribute",
    "RADIUSPacket",
    "Request",
]
