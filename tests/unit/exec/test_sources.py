import pytest
from helpers import make_request

from radius_exec.constants import (
    ATTR_REPLY_MESSAGE,
    ATTR_USER_NAME,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REQUEST,
)
from radius_exec.exec.sources import SOURCE_NAMES, resolve_source
from radius_exec.radius.packet import RADIUSAttribute, RADIUSPacket


@pytest.fixture
def request_with_proxy():
    req = make_request([RADIUSAttribute(ATTR_USER_NAME, b"bob")])
    req.proxy = RADIUSPacket(RADIUS_ACCESS_REQUEST)
    req.proxy_reply = RADIUSPacket(RADIUS_ACCESS_ACCEPT)
    req.config_items.add_string(ATTR_REPLY_MESSAGE, "cfg")
    return req


def test_each_name_selects_its_list(request_with_proxy):
    req = request_with_proxy
    assert resolve_source(req, "request") is req.packet.attributes
    assert resolve_source(req, "reply") is req.reply.attributes
    assert resolve_source(req, "proxy-request") is req.proxy.attributes
    assert resolve_source(req, "proxy-reply") is req.proxy_reply.attributes
    assert resolve_source(req, "config") is req.config_items


def test_none_and_unknown_names_do_not_resolve(request_with_proxy):
    assert resolve_source(request_with_proxy, "none") is None
    assert resolve_source(request_with_proxy, "bogus") is None
    assert resolve_source(request_with_proxy, None) is None


@pytest.mark.parametrize("name", ["reply", "proxy-request", "proxy-reply"])
def test_absent_parts_resolve_to_none(name):
    req = make_request(reply=False)
    assert resolve_source(req, name) is None


def test_empty_list_still_resolves():
    req = make_request()
    attrs = resolve_source(req, "request")
    assert attrs is not None and len(attrs) == 0


def test_source_names_cover_all_lists():
    assert set(SOURCE_NAMES) == {
        "request",
        "reply",
        "proxy-request",
        "proxy-reply",
        "config",
        "none",
    }
