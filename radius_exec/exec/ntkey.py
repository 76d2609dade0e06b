"""Parser for the ``NT_KEY:`` line printed by ``ntlm_auth --request-nt-key``.

The helper prints ``NT_KEY: `` followed by 32 hexadecimal digits (the NT
hash hash) and a newline. Anything else is a contract violation by the
program and is rejected, never repaired.
"""

from __future__ import annotations

import string

from radius_exec.exceptions import ProtocolError

from ..constants import NT_KEY_HEX_LENGTH, NT_KEY_PREFIX

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_nt_key(output: str) -> bytes:
    """Decode the 16-byte NT key from program output.

    Raises:
        ProtocolError: missing prefix, fewer than 32 characters after it,
            or a non-hex character among the first 32
    """
    if not output.startswith(NT_KEY_PREFIX):
        raise ProtocolError("Invalid output from ntlm_auth: expecting NT_KEY")

    digits = output[len(NT_KEY_PREFIX) : len(NT_KEY_PREFIX) + NT_KEY_HEX_LENGTH]
    if len(digits) < NT_KEY_HEX_LENGTH:
        raise ProtocolError("Invalid output from ntlm_auth: NT_KEY has unexpected length")

    if not all(ch in _HEX_DIGITS for ch in digits):
        raise ProtocolError("Invalid output from ntlm_auth: NT_KEY has non-hex values")

    return bytes.fromhex(digits)


__all__ = ["parse_nt_key"]
