"""Attribute source resolution.

Configuration names one of the request's attribute lists as the program's
input and, optionally, one as the destination for the program's output
attributes. Names that do not resolve (``none``, an unknown name, or a part
of the request that does not exist yet) yield ``None``; that is not an
error here, the caller decides what it means.
"""

from __future__ import annotations

from ..radius.packet import AttributeList
from ..radius.request import Request

SOURCE_REQUEST = "request"
SOURCE_REPLY = "reply"
SOURCE_PROXY_REQUEST = "proxy-request"
SOURCE_PROXY_REPLY = "proxy-reply"
SOURCE_CONFIG = "config"
SOURCE_NONE = "none"

SOURCE_NAMES = (
    SOURCE_REQUEST,
    SOURCE_REPLY,
    SOURCE_PROXY_REQUEST,
    SOURCE_PROXY_REPLY,
    SOURCE_CONFIG,
    SOURCE_NONE,
)


def resolve_source(request: Request, name: str | None) -> AttributeList | None:
    """Return the attribute list of ``request`` named by ``name``, or None."""
    if name is None:
        return None
    if name == SOURCE_REQUEST:
        return request.packet.attributes
    if name == SOURCE_REPLY:
        return request.reply.attributes if request.reply is not None else None
    if name == SOURCE_PROXY_REQUEST:
        return request.proxy.attributes if request.proxy is not None else None
    if name == SOURCE_PROXY_REPLY:
        if request.proxy_reply is None:
            return None
        return request.proxy_reply.attributes
    if name == SOURCE_CONFIG:
        return request.config_items
    return None


__all__ = [
    "SOURCE_CONFIG",
    "SOURCE_NAMES",
    "SOURCE_NONE",
    "SOURCE_PROXY_REPLY",
    "SOURCE_PROXY_REQUEST",
    "SOURCE_REPLY",
    "SOURCE_REQUEST",
    "resolve_source",
]
