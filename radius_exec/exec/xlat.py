"""Expansion of ``%{...}`` references in program arguments.

Supported forms::

    %{User-Name}              first User-Name in the request packet
    %{reply:Reply-Message}    qualified by list (request, reply,
                              proxy-request, proxy-reply, config/control)
    %{Calling-Station-Id:-x}  literal default when the attribute is absent
    %%                        a literal percent sign

Unknown or absent attributes expand to the empty string.
"""

from __future__ import annotations

from radius_exec.exceptions import ProtocolError

from ..radius.dictionary import find_by_name
from ..radius.request import Request
from .sources import SOURCE_CONFIG, SOURCE_NAMES, SOURCE_REQUEST, resolve_source

_LIST_ALIASES = {"control": SOURCE_CONFIG}


def _lookup(request: Request, reference: str) -> str | None:
    list_name = SOURCE_REQUEST
    attr_name = reference
    if ":" in reference:
        qualifier, _, rest = reference.partition(":")
        qualifier = _LIST_ALIASES.get(qualifier, qualifier)
        if qualifier in SOURCE_NAMES:
            list_name, attr_name = qualifier, rest

    definition = find_by_name(attr_name)
    if definition is None:
        return None
    attributes = resolve_source(request, list_name)
    if attributes is None:
        return None
    attr = attributes.find(definition.attr_type, definition.vendor_id)
    if attr is None:
        return None
    return attr.format_value()


def _expand_reference(request: Request, body: str) -> str:
    reference, sep, default = body.partition(":-")
    value = _lookup(request, reference.strip())
    if value is None or value == "":
        return default if sep else ""
    return value


def expand(template: str, request: Request) -> str:
    """Expand every reference in ``template`` against ``request``.

    Raises:
        ProtocolError: on an unterminated ``%{`` reference
    """
    out: list[str] = []
    i = 0
    length = len(template)
    while i < length:
        ch = template[i]
        if ch != "%" or i + 1 >= length:
            out.append(ch)
            i += 1
            continue
        nxt = template[i + 1]
        if nxt == "%":
            out.append("%")
            i += 2
            continue
        if nxt != "{":
            out.append(ch)
            i += 1
            continue
        end = template.find("}", i + 2)
        if end < 0:
            raise ProtocolError(f"Unterminated expansion in {template!r}")
        out.append(_expand_reference(request, template[i + 2 : end]))
        i = end + 1
    return "".join(out)


__all__ = ["expand"]
