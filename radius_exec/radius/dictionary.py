"""Attribute dictionary.

Maps attribute names to their (vendor, type, data type) definition and holds
the enumerated VALUE names used by integer attributes, including the
``Packet-Type`` names accepted by the ``packet_type`` configuration option.
Lookups by name are case-insensitive, as in the server's dictionary files.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .. import constants as c

DATA_TYPES = frozenset({"string", "octets", "integer", "ipaddr", "date"})


@dataclass(frozen=True)
class AttributeDef:
    """Dictionary entry for one attribute"""

    name: str
    attr_type: int
    data_type: str
    vendor_id: int = 0
    values: Mapping[str, int] = field(default_factory=dict)

    @property
    def key(self) -> tuple[int, int]:
        return (self.vendor_id, self.attr_type)

    @property
    def internal(self) -> bool:
        return self.vendor_id == 0 and self.attr_type > 255

    def value_name(self, number: int) -> str | None:
        for name, value in self.values.items():
            if value == number:
                return name
        return None


PACKET_TYPES: Mapping[str, int] = MappingProxyType(
    {
        "Access-Request": c.RADIUS_ACCESS_REQUEST,
        "Access-Accept": c.RADIUS_ACCESS_ACCEPT,
        "Access-Reject": c.RADIUS_ACCESS_REJECT,
        "Accounting-Request": c.RADIUS_ACCOUNTING_REQUEST,
        "Accounting-Response": c.RADIUS_ACCOUNTING_RESPONSE,
        "Access-Challenge": c.RADIUS_ACCESS_CHALLENGE,
        "Status-Server": c.RADIUS_STATUS_SERVER,
        "Status-Client": c.RADIUS_STATUS_CLIENT,
        "Disconnect-Request": c.RADIUS_DISCONNECT_REQUEST,
        "Disconnect-ACK": c.RADIUS_DISCONNECT_ACK,
        "Disconnect-NAK": c.RADIUS_DISCONNECT_NAK,
        "CoA-Request": c.RADIUS_COA_REQUEST,
        "CoA-ACK": c.RADIUS_COA_ACK,
        "CoA-NAK": c.RADIUS_COA_NAK,
    }
)

_SERVICE_TYPES = {
    "Login-User": 1,
    "Framed-User": 2,
    "Callback-Login-User": 3,
    "Callback-Framed-User": 4,
    "Outbound-User": 5,
    "Administrative-User": 6,
    "NAS-Prompt-User": 7,
    "Authenticate-Only": 8,
}

_ACCT_STATUS_TYPES = {
    "Start": 1,
    "Stop": 2,
    "Interim-Update": 3,
    "Accounting-On": 7,
    "Accounting-Off": 8,
}

_NAS_PORT_TYPES = {
    "Async": 0,
    "Sync": 1,
    "ISDN": 2,
    "ISDN-V120": 3,
    "ISDN-V110": 4,
    "Virtual": 5,
    "Ethernet": 15,
    "Wireless-802.11": 19,
}

_DEFINITIONS: tuple[AttributeDef, ...] = (
    AttributeDef("User-Name", c.ATTR_USER_NAME, "string"),
    AttributeDef("User-Password", c.ATTR_USER_PASSWORD, "string"),
    AttributeDef("CHAP-Password", c.ATTR_CHAP_PASSWORD, "octets"),
    AttributeDef("NAS-IP-Address", c.ATTR_NAS_IP_ADDRESS, "ipaddr"),
    AttributeDef("NAS-Port", c.ATTR_NAS_PORT, "integer"),
    AttributeDef("Service-Type", c.ATTR_SERVICE_TYPE, "integer", values=_SERVICE_TYPES),
    AttributeDef("Framed-Protocol", c.ATTR_FRAMED_PROTOCOL, "integer"),
    AttributeDef("Framed-IP-Address", c.ATTR_FRAMED_IP_ADDRESS, "ipaddr"),
    AttributeDef("Filter-Id", c.ATTR_FILTER_ID, "string"),
    AttributeDef("Reply-Message", c.ATTR_REPLY_MESSAGE, "string"),
    AttributeDef("State", c.ATTR_STATE, "octets"),
    AttributeDef("Class", c.ATTR_CLASS, "octets"),
    AttributeDef("Session-Timeout", c.ATTR_SESSION_TIMEOUT, "integer"),
    AttributeDef("Idle-Timeout", c.ATTR_IDLE_TIMEOUT, "integer"),
    AttributeDef("Called-Station-Id", c.ATTR_CALLED_STATION_ID, "string"),
    AttributeDef("Calling-Station-Id", c.ATTR_CALLING_STATION_ID, "string"),
    AttributeDef("NAS-Identifier", c.ATTR_NAS_IDENTIFIER, "string"),
    AttributeDef(
        "Acct-Status-Type",
        c.ATTR_ACCT_STATUS_TYPE,
        "integer",
        values=_ACCT_STATUS_TYPES,
    ),
    AttributeDef("Acct-Delay-Time", c.ATTR_ACCT_DELAY_TIME, "integer"),
    AttributeDef("Acct-Input-Octets", c.ATTR_ACCT_INPUT_OCTETS, "integer"),
    AttributeDef("Acct-Output-Octets", c.ATTR_ACCT_OUTPUT_OCTETS, "integer"),
    AttributeDef("Acct-Session-Id", c.ATTR_ACCT_SESSION_ID, "string"),
    AttributeDef("Acct-Authentic", c.ATTR_ACCT_AUTHENTIC, "integer"),
    AttributeDef("Acct-Session-Time", c.ATTR_ACCT_SESSION_TIME, "integer"),
    AttributeDef("Acct-Input-Packets", c.ATTR_ACCT_INPUT_PACKETS, "integer"),
    AttributeDef("Acct-Output-Packets", c.ATTR_ACCT_OUTPUT_PACKETS, "integer"),
    AttributeDef("Acct-Terminate-Cause", c.ATTR_ACCT_TERMINATE_CAUSE, "integer"),
    AttributeDef("CHAP-Challenge", c.ATTR_CHAP_CHALLENGE, "octets"),
    AttributeDef(
        "NAS-Port-Type", c.ATTR_NAS_PORT_TYPE, "integer", values=_NAS_PORT_TYPES
    ),
    AttributeDef("EAP-Message", c.ATTR_EAP_MESSAGE, "octets"),
    AttributeDef("Message-Authenticator", c.ATTR_MESSAGE_AUTHENTICATOR, "octets"),
    # server-internal
    AttributeDef("Auth-Type", c.ATTR_AUTH_TYPE, "integer"),
    AttributeDef("Packet-Type", c.ATTR_PACKET_TYPE, "integer", values=PACKET_TYPES),
    AttributeDef("Exec-Program", c.ATTR_EXEC_PROGRAM, "string"),
    AttributeDef("Exec-Program-Wait", c.ATTR_EXEC_PROGRAM_WAIT, "string"),
    AttributeDef("MS-CHAP-Use-NTLM-Auth", c.ATTR_MS_CHAP_USE_NTLM_AUTH, "integer"),
    AttributeDef("MS-CHAP-User-Name", c.ATTR_MS_CHAP_USER_NAME, "string"),
    # Microsoft (RFC 2548)
    AttributeDef(
        "MS-CHAP-Response", c.MS_CHAP_RESPONSE, "octets", c.VENDOR_MICROSOFT
    ),
    AttributeDef("MS-CHAP-Error", c.MS_CHAP_ERROR, "string", c.VENDOR_MICROSOFT),
    AttributeDef("MS-CHAP-Domain", c.MS_CHAP_DOMAIN, "string", c.VENDOR_MICROSOFT),
    AttributeDef(
        "MS-CHAP-Challenge", c.MS_CHAP_CHALLENGE, "octets", c.VENDOR_MICROSOFT
    ),
    AttributeDef(
        "MS-CHAP-MPPE-Keys", c.MS_CHAP_MPPE_KEYS, "octets", c.VENDOR_MICROSOFT
    ),
    AttributeDef("MS-MPPE-Send-Key", c.MS_MPPE_SEND_KEY, "octets", c.VENDOR_MICROSOFT),
    AttributeDef("MS-MPPE-Recv-Key", c.MS_MPPE_RECV_KEY, "octets", c.VENDOR_MICROSOFT),
    AttributeDef(
        "MS-CHAP2-Response", c.MS_CHAP2_RESPONSE, "octets", c.VENDOR_MICROSOFT
    ),
    AttributeDef(
        "MS-CHAP2-Success", c.MS_CHAP2_SUCCESS, "octets", c.VENDOR_MICROSOFT
    ),
)

_BY_NAME: dict[str, AttributeDef] = {d.name.lower(): d for d in _DEFINITIONS}
_BY_KEY: dict[tuple[int, int], AttributeDef] = {d.key: d for d in _DEFINITIONS}


def find_by_name(name: str) -> AttributeDef | None:
    """Return the definition for an attribute name, or None if unknown"""
    return _BY_NAME.get(name.strip().lower())


def find_by_type(attr_type: int, vendor_id: int = 0) -> AttributeDef | None:
    """Return the definition for a (vendor, type) pair, or None if unknown"""
    return _BY_KEY.get((vendor_id, attr_type))


def attribute_name(attr_type: int, vendor_id: int = 0) -> str:
    """Name of an attribute, falling back to the ``Attr-N`` / ``Vendor-V-Attr-N`` form"""
    definition = find_by_type(attr_type, vendor_id)
    if definition is not None:
        return definition.name
    if vendor_id:
        return f"Vendor-{vendor_id}-Attr-{attr_type}"
    return f"Attr-{attr_type}"


def packet_type_code(name: str) -> int | None:
    """Resolve a Packet-Type VALUE name (case-insensitive) to its code"""
    wanted = name.strip().lower()
    for value_name, code in PACKET_TYPES.items():
        if value_name.lower() == wanted:
            return code
    return None


def packet_type_name(code: int) -> str:
    for value_name, value in PACKET_TYPES.items():
        if value == code:
            return value_name
    return str(code)


__all__ = [
    "AttributeDef",
    "DATA_TYPES",
    "PACKET_TYPES",
    "attribute_name",
    "find_by_name",
    "find_by_type",
    "packet_type_code",
    "packet_type_name",
]
