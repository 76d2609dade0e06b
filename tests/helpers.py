"""
Request builders, a recording program runner and the RFC 2759 MS-CHAPv2
sample values shared by the test modules.
"""

from __future__ import annotations

from radius_exec.constants import (
    ATTR_USER_NAME,
    MS_CHAP2_RESPONSE,
    MS_CHAP_CHALLENGE,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REQUEST,
    VENDOR_MICROSOFT,
)
from radius_exec.exec.program import ExecutionOutcome
from radius_exec.radius.packet import AttributeList, RADIUSAttribute, RADIUSPacket
from radius_exec.radius.request import Request

# RFC 2759 §9.2 sample
RFC_USER = "User"
RFC_AUTH_CHALLENGE = bytes.fromhex("5B5D7C7D7B3F2F3E3C2C602132262628")
RFC_PEER_CHALLENGE = bytes.fromhex("21402324255E262A28295F2B3A337C7E")
RFC_NT_RESPONSE = bytes.fromhex("82309ECD8D708B5EA08FAA3981CD83544233114A3D85D6DF")
RFC_PASSWORD_HASH_HASH = bytes.fromhex("41C00C584BD2D91C4017A2A12FA59F3F")
RFC_AUTH_RESPONSE = b"S=407A5589115FD0D6209F510FE9C04566932CDA56"
RFC_NT_KEY_LINE = "NT_KEY: 41C00C584BD2D91C4017A2A12FA59F3F\n"


def mschap2_response_value(ident: int = 7) -> bytes:
    """Ident, flags, peer challenge, reserved, NT-Response"""
    return bytes([ident, 0]) + RFC_PEER_CHALLENGE + b"\x00" * 8 + RFC_NT_RESPONSE


def make_request(
    attrs: list[RADIUSAttribute] | None = None,
    *,
    code: int = RADIUS_ACCESS_REQUEST,
    reply: bool = True,
    reply_code: int = RADIUS_ACCESS_ACCEPT,
    reply_attrs: list[RADIUSAttribute] | None = None,
) -> Request:
    return Request(
        packet=RADIUSPacket(code, identifier=1, attributes=attrs or []),
        reply=RADIUSPacket(reply_code, identifier=1, attributes=reply_attrs or [])
        if reply
        else None,
    )


def make_mschap_request(ident: int = 7, **kwargs) -> Request:
    return make_request(
        [
            RADIUSAttribute(ATTR_USER_NAME, RFC_USER.encode()),
            RADIUSAttribute(MS_CHAP_CHALLENGE, RFC_AUTH_CHALLENGE, VENDOR_MICROSOFT),
            RADIUSAttribute(
                MS_CHAP2_RESPONSE, mschap2_response_value(ident), VENDOR_MICROSOFT
            ),
        ],
        **kwargs,
    )


class FakeRunner:
    """Program runner returning canned outcomes and recording every call."""

    def __init__(
        self,
        status: int = 0,
        output: str = "",
        pairs: list[RADIUSAttribute] | None = None,
    ):
        self.status = status
        self.output = output
        self.pairs = pairs
        self.calls: list[dict] = []

    def __call__(self, program, request, **kwargs) -> ExecutionOutcome:
        self.calls.append({"program": program, "request": request, **kwargs})
        pairs = None
        if self.pairs is not None and kwargs.get("want_pairs"):
            pairs = AttributeList(self.pairs)
        return ExecutionOutcome(self.status, self.output, pairs)
