import ipaddress
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from radius_exec.exceptions import ProtocolError

from ..constants import ATTR_VENDOR_SPECIFIC
from .dictionary import (
    AttributeDef,
    attribute_name,
    find_by_name,
    find_by_type,
    packet_type_name,
)


@dataclass
class RADIUSAttribute:
    """RADIUS attribute

    ``value`` always holds the wire encoding of the attribute value. Vendor
    attributes carry their vendor id; MS-CHAP reply attributes may carry an
    ``ident`` octet that is emitted ahead of the value when packed.
    """

    attr_type: int
    value: bytes
    vendor_id: int = 0
    ident: int | None = None

    @property
    def definition(self) -> AttributeDef | None:
        return find_by_type(self.attr_type, self.vendor_id)

    @property
    def name(self) -> str:
        return attribute_name(self.attr_type, self.vendor_id)

    @property
    def data_type(self) -> str:
        definition = self.definition
        return definition.data_type if definition else "octets"

    def wire_value(self) -> bytes:
        """Value bytes as sent, including the ident prefix if any"""
        if self.ident is None:
            return self.value
        return bytes([self.ident]) + self.value

    def pack(self) -> bytes:
        """Pack attribute into bytes, wrapping vendor attributes in type 26"""
        if self.vendor_id == 0 and self.attr_type > 255:
            raise ValueError(f"Internal attribute {self.name} has no wire form")
        data = self.wire_value()
        if self.vendor_id:
            vendor_length = len(data) + 2
            data = (
                struct.pack("!LBB", self.vendor_id, self.attr_type, vendor_length)
                + data
            )
            attr_type = ATTR_VENDOR_SPECIFIC
        else:
            attr_type = self.attr_type
        length = len(data) + 2
        if length > 255:
            raise ValueError(f"Attribute too long: {length} bytes")
        return struct.pack("BB", attr_type, length) + data

    def as_string(self) -> str:
        """Get value as string"""
        return self.value.decode("utf-8", errors="replace")

    def as_int(self) -> int:
        """Get value as integer"""
        if len(self.value) == 4:
            return int(struct.unpack("!I", self.value)[0])
        raise ValueError("Attribute is not an integer")

    def as_ipaddr(self) -> str:
        """Get value as IP address"""
        if len(self.value) == 4:
            return ".".join(str(b) for b in self.value)
        raise ValueError("Attribute is not an IP address")

    def format_value(self, quote: bool = False) -> str:
        """Render the value the way the server prints it.

        Integers with a dictionary VALUE name print as that name, octets as
        ``0x``-prefixed hex. Strings are wrapped in double quotes and
        escaped when ``quote`` is set.
        """
        data_type = self.data_type
        try:
            if data_type == "string":
                text = self.as_string()
                return _quote(text) if quote else text
            if data_type in ("integer", "date"):
                number = self.as_int()
                definition = self.definition
                if definition is not None:
                    named = definition.value_name(number)
                    if named:
                        return named
                return str(number)
            if data_type == "ipaddr":
                return self.as_ipaddr()
        except ValueError:
            pass
        return "0x" + self.value.hex()

    def __str__(self) -> str:
        return f"{self.name} = {self.format_value(quote=True)}"

    @classmethod
    def from_text(cls, name: str, text: str) -> "RADIUSAttribute":
        """Build an attribute from its dictionary name and printed value.

        Raises:
            ProtocolError: unknown attribute name or a value that does not
                fit the attribute's data type
        """
        definition = find_by_name(name)
        if definition is None:
            raise ProtocolError(f"Unknown attribute {name!r}")
        return cls(
            definition.attr_type,
            _encode_value(definition, text),
            vendor_id=definition.vendor_id,
        )


def _quote(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _encode_value(definition: AttributeDef, text: str) -> bytes:
    data_type = definition.data_type
    if data_type == "string":
        return text.encode("utf-8")
    if data_type in ("integer", "date"):
        if text in definition.values:
            number = definition.values[text]
        else:
            lowered = {k.lower(): v for k, v in definition.values.items()}
            if text.lower() in lowered:
                number = lowered[text.lower()]
            else:
                try:
                    number = int(text, 0)
                except ValueError as exc:
                    raise ProtocolError(
                        f"Invalid integer value for {definition.name}: {text!r}"
                    ) from exc
        if not 0 <= number <= 0xFFFFFFFF:
            raise ProtocolError(f"Integer out of range for {definition.name}: {number}")
        return struct.pack("!I", number)
    if data_type == "ipaddr":
        try:
            return ipaddress.IPv4Address(text).packed
        except ValueError as exc:
            raise ProtocolError(
                f"Invalid IPv4 address for {definition.name}: {text!r}"
            ) from exc
    # octets
    if text[:2].lower() == "0x":
        try:
            return bytes.fromhex(text[2:])
        except ValueError as exc:
            raise ProtocolError(
                f"Invalid hex value for {definition.name}: {text!r}"
            ) from exc
    return text.encode("utf-8")


class AttributeList:
    """Ordered attribute collection of one part of a request.

    Lookups return the first attribute of the requested type. An empty list
    is still a list: callers distinguish "no list" with ``is None``.
    """

    def __init__(self, attributes: Iterable[RADIUSAttribute] | None = None):
        self._items: list[RADIUSAttribute] = list(attributes or [])

    def __iter__(self) -> Iterator[RADIUSAttribute]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> RADIUSAttribute:
        return self._items[index]

    def __repr__(self) -> str:
        return f"AttributeList({self._items!r})"

    def find(self, attr_type: int, vendor_id: int = 0) -> RADIUSAttribute | None:
        """Get first attribute of given type"""
        for attr in self._items:
            if attr.attr_type == attr_type and attr.vendor_id == vendor_id:
                return attr
        return None

    def find_first(
        self, candidates: Iterable[tuple[int, int]]
    ) -> RADIUSAttribute | None:
        """Try each (vendor_id, attr_type) candidate in order"""
        for vendor_id, attr_type in candidates:
            attr = self.find(attr_type, vendor_id)
            if attr is not None:
                return attr
        return None

    def get_string(self, attr_type: int, vendor_id: int = 0) -> str | None:
        """Get string attribute value"""
        attr = self.find(attr_type, vendor_id)
        return attr.as_string() if attr else None

    def add(self, attr: RADIUSAttribute) -> None:
        self._items.append(attr)

    def add_string(self, attr_type: int, value: str, vendor_id: int = 0) -> None:
        """Add string attribute"""
        self.add(RADIUSAttribute(attr_type, value.encode("utf-8"), vendor_id))

    def add_integer(self, attr_type: int, value: int, vendor_id: int = 0) -> None:
        """Add integer attribute"""
        self.add(RADIUSAttribute(attr_type, struct.pack("!I", value), vendor_id))

    def remove(self, attr: RADIUSAttribute) -> None:
        """Remove one attribute (by identity)"""
        for index, item in enumerate(self._items):
            if item is attr:
                del self._items[index]
                return
        raise ValueError(f"{attr.name} is not in this list")

    def move_from(self, source: "AttributeList") -> None:
        """Append every entry of ``source`` here, leaving ``source`` empty"""
        if source is self:
            return
        self._items.extend(source._items)
        source.clear()

    def clear(self) -> None:
        self._items.clear()


class RADIUSPacket:
    """Packet code plus its attribute list"""

    def __init__(
        self,
        code: int,
        identifier: int = 0,
        attributes: Iterable[RADIUSAttribute] | AttributeList | None = None,
    ):
        self.code = code
        self.identifier = identifier
        if isinstance(attributes, AttributeList):
            self.attributes = attributes
        else:
            self.attributes = AttributeList(attributes)

    def __str__(self) -> str:
        """String representation for debugging"""
        return (
            f"RADIUSPacket(code={packet_type_name(self.code)}, "
            f"id={self.identifier}, attrs={len(self.attributes)})"
        )
