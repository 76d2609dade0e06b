import pytest
from hypothesis import given
from hypothesis import strategies as st

from radius_exec.exceptions import ProtocolError
from radius_exec.exec.ntkey import parse_nt_key
from radius_exec.exec.program import parse_output_pairs

hex_case = st.sampled_from([str.lower, str.upper])


@given(key=st.binary(min_size=16, max_size=16), case=hex_case, tail=st.text(max_size=20))
def test_any_16_byte_key_is_recovered(key: bytes, case, tail: str):
    assert parse_nt_key("NT_KEY: " + case(key.hex()) + tail) == key


@given(output=st.text(max_size=64))
def test_output_without_prefix_is_rejected(output: str):
    if output.startswith("NT_KEY: "):
        return
    with pytest.raises(ProtocolError):
        parse_nt_key(output)


@given(digits=st.text(alphabet="0123456789abcdef", max_size=31))
def test_short_keys_are_rejected(digits: str):
    with pytest.raises(ProtocolError):
        parse_nt_key("NT_KEY: " + digits)


@given(
    digits=st.text(alphabet="0123456789abcdef", min_size=31, max_size=31),
    bad=st.characters(blacklist_characters="0123456789abcdefABCDEF"),
    pos=st.integers(min_value=0, max_value=31),
)
def test_any_non_hex_digit_is_rejected(digits: str, bad: str, pos: int):
    with pytest.raises(ProtocolError):
        parse_nt_key("NT_KEY: " + digits[:pos] + bad + digits[pos:])


@given(text=st.text(max_size=200))
def test_output_pair_parser_never_raises(text: str):
    pairs = parse_output_pairs(text)
    assert pairs is None or len(pairs) > 0
