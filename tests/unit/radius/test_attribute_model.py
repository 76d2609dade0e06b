"""Attribute values, attribute lists and the dictionary."""

import struct

import pytest

from radius_exec.constants import (
    ATTR_ACCT_STATUS_TYPE,
    ATTR_EXEC_PROGRAM,
    ATTR_NAS_IP_ADDRESS,
    ATTR_REPLY_MESSAGE,
    ATTR_SESSION_TIMEOUT,
    ATTR_USER_NAME,
    ATTR_VENDOR_SPECIFIC,
    MS_CHAP2_SUCCESS,
    RADIUS_ACCESS_REQUEST,
    RADIUS_COA_REQUEST,
    VENDOR_MICROSOFT,
)
from radius_exec.exceptions import ProtocolError
from radius_exec.radius.dictionary import (
    attribute_name,
    find_by_name,
    packet_type_code,
    packet_type_name,
)
from radius_exec.radius.packet import AttributeList, RADIUSAttribute, RADIUSPacket


def test_dictionary_lookup_is_case_insensitive():
    definition = find_by_name("user-name")
    assert definition is not None
    assert definition.attr_type == ATTR_USER_NAME
    assert find_by_name("No-Such-Attribute") is None


def test_unknown_attribute_names_fall_back_to_numeric_form():
    assert attribute_name(250) == "Attr-250"
    assert attribute_name(99, 9) == "Vendor-9-Attr-99"
    assert attribute_name(MS_CHAP2_SUCCESS, VENDOR_MICROSOFT) == "MS-CHAP2-Success"


def test_packet_type_names():
    assert packet_type_code("access-request") == RADIUS_ACCESS_REQUEST
    assert packet_type_code("CoA-Request") == RADIUS_COA_REQUEST
    assert packet_type_code("Bogus") is None
    assert packet_type_name(RADIUS_ACCESS_REQUEST) == "Access-Request"
    assert packet_type_name(99) == "99"


class TestFormatting:
    def test_string_quoting(self):
        attr = RADIUSAttribute(ATTR_REPLY_MESSAGE, b'say "hi"\n')
        assert attr.format_value() == 'say "hi"\n'
        assert attr.format_value(quote=True) == '"say \\"hi\\"\\n"'

    def test_integer_uses_value_name(self):
        attr = RADIUSAttribute(ATTR_ACCT_STATUS_TYPE, struct.pack("!I", 2))
        assert attr.format_value() == "Stop"

    def test_plain_integer(self):
        attr = RADIUSAttribute(ATTR_SESSION_TIMEOUT, struct.pack("!I", 3600))
        assert attr.format_value() == "3600"
        assert str(attr) == "Session-Timeout = 3600"

    def test_ipaddr(self):
        attr = RADIUSAttribute(ATTR_NAS_IP_ADDRESS, bytes([192, 0, 2, 1]))
        assert attr.format_value() == "192.0.2.1"

    def test_octets_render_as_hex(self):
        attr = RADIUSAttribute(MS_CHAP2_SUCCESS, b"\x01\xff", VENDOR_MICROSOFT)
        assert attr.format_value() == "0x01ff"


class TestFromText:
    def test_string(self):
        attr = RADIUSAttribute.from_text("Reply-Message", "hello")
        assert attr.attr_type == ATTR_REPLY_MESSAGE
        assert attr.as_string() == "hello"

    def test_integer_by_value_name(self):
        attr = RADIUSAttribute.from_text("Acct-Status-Type", "interim-update")
        assert attr.as_int() == 3

    def test_integer_numeric(self):
        assert RADIUSAttribute.from_text("Session-Timeout", "60").as_int() == 60

    def test_bad_integer(self):
        with pytest.raises(ProtocolError):
            RADIUSAttribute.from_text("Session-Timeout", "soon")

    def test_bad_address(self):
        with pytest.raises(ProtocolError):
            RADIUSAttribute.from_text("NAS-IP-Address", "300.1.1.1")

    def test_unknown_name(self):
        with pytest.raises(ProtocolError):
            RADIUSAttribute.from_text("Not-An-Attribute", "x")


class TestPacking:
    def test_vendor_attribute_with_ident(self):
        attr = RADIUSAttribute(
            MS_CHAP2_SUCCESS, b"S=" + b"0" * 40, VENDOR_MICROSOFT, ident=7
        )
        packed = attr.pack()
        assert packed[0] == ATTR_VENDOR_SPECIFIC
        assert packed[1] == len(packed) == 2 + 6 + 43
        assert struct.unpack("!L", packed[2:6])[0] == VENDOR_MICROSOFT
        assert packed[6] == MS_CHAP2_SUCCESS
        assert packed[8] == 7
        assert packed[9:11] == b"S="

    def test_internal_attribute_has_no_wire_form(self):
        with pytest.raises(ValueError):
            RADIUSAttribute(ATTR_EXEC_PROGRAM, b"/bin/true").pack()

    def test_oversized_attribute(self):
        with pytest.raises(ValueError):
            RADIUSAttribute(ATTR_REPLY_MESSAGE, b"x" * 254).pack()


class TestAttributeList:
    def test_find_returns_first_match(self):
        attrs = AttributeList()
        attrs.add_string(ATTR_REPLY_MESSAGE, "one")
        attrs.add_string(ATTR_REPLY_MESSAGE, "two")
        assert attrs.get_string(ATTR_REPLY_MESSAGE) == "one"
        assert attrs.find(ATTR_USER_NAME) is None

    def test_find_first_honours_candidate_order(self):
        attrs = AttributeList(
            [
                RADIUSAttribute(1, b"v1", VENDOR_MICROSOFT),
                RADIUSAttribute(25, b"v2", VENDOR_MICROSOFT),
            ]
        )
        found = attrs.find_first([(VENDOR_MICROSOFT, 25), (VENDOR_MICROSOFT, 1)])
        assert found is not None and found.value == b"v2"

    def test_move_from_empties_source(self):
        dest = AttributeList([RADIUSAttribute(ATTR_USER_NAME, b"bob")])
        source = AttributeList()
        source.add_integer(ATTR_SESSION_TIMEOUT, 30)
        dest.move_from(source)
        assert len(dest) == 2
        assert len(source) == 0
        assert dest[1].as_int() == 30

    def test_remove_by_identity(self):
        first = RADIUSAttribute(ATTR_USER_NAME, b"bob")
        twin = RADIUSAttribute(ATTR_USER_NAME, b"bob")
        attrs = AttributeList([first, twin])
        attrs.remove(twin)
        assert len(attrs) == 1 and attrs[0] is first
        with pytest.raises(ValueError):
            attrs.remove(twin)

    def test_empty_list_is_not_missing(self):
        packet = RADIUSPacket(RADIUS_ACCESS_REQUEST)
        assert packet.attributes is not None
        assert len(packet.attributes) == 0
        assert "Access-Request" in str(packet)
