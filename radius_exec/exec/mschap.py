"""MS-CHAPv2 authenticator response.

Once an NTLM helper has validated the peer's NT-Response and handed back the
NT hash hash, the server still owes the peer an MS-CHAP2-Success attribute
proving that it knows the password too (RFC 2759 §8.7). This module computes
that value and adds it to the reply.
"""

from __future__ import annotations

import hashlib

from radius_exec.exceptions import ValidationError
from radius_exec.utils.logger import get_logger

from ..constants import (
    ATTR_MS_CHAP_USER_NAME,
    ATTR_USER_NAME,
    MS_CHAP2_RESPONSE,
    MS_CHAP2_SUCCESS,
    MS_CHAP_CHALLENGE,
    MS_CHAP_RESPONSE,
    MSCHAP2_NT_RESPONSE_LENGTH,
    MSCHAP2_NT_RESPONSE_OFFSET,
    MSCHAP2_PEER_CHALLENGE_LENGTH,
    MSCHAP2_PEER_CHALLENGE_OFFSET,
    MSCHAP2_RESPONSE_LENGTH,
    NT_KEY_LENGTH,
    VENDOR_MICROSOFT,
)
from ..radius.packet import RADIUSAttribute
from ..radius.request import Request

logger = get_logger("radius_exec.exec.mschap", component="mschap")

# RFC 2759 §8.7
_MAGIC1 = b"Magic server to client signing constant"
_MAGIC2 = b"Pad to make it do more than one iteration"

AUTH_CHALLENGE_LENGTH = 16

# Ordered: the MS-CHAPv2 attribute first, then the legacy MS-CHAP one.
RESPONSE_CANDIDATES: tuple[tuple[int, int], ...] = (
    (VENDOR_MICROSOFT, MS_CHAP2_RESPONSE),
    (VENDOR_MICROSOFT, MS_CHAP_RESPONSE),
)


def challenge_hash(peer_challenge: bytes, auth_challenge: bytes, username: str) -> bytes:
    """ChallengeHash() from RFC 2759 §8.2"""
    digest = hashlib.sha1(
        peer_challenge + auth_challenge + username.encode("utf-8"),
        usedforsecurity=False,
    ).digest()
    return digest[:8]


def auth_response(
    username: str,
    nt_hash_hash: bytes,
    nt_response: bytes,
    peer_challenge: bytes,
    auth_challenge: bytes,
) -> bytes:
    """GenerateAuthenticatorResponse() from RFC 2759 §8.7.

    Returns the 42 ASCII bytes ``S=`` followed by 40 upper-case hex digits.
    """
    digest = hashlib.sha1(
        nt_hash_hash + nt_response + _MAGIC1, usedforsecurity=False
    ).digest()
    digest = hashlib.sha1(
        digest + challenge_hash(peer_challenge, auth_challenge, username) + _MAGIC2,
        usedforsecurity=False,
    ).digest()
    return b"S=" + digest.hex().upper().encode("ascii")


def add_success_response(request: Request, nt_key: bytes) -> bool:
    """Add MS-CHAP2-Success to the reply of an MS-CHAP request.

    Returns:
        True when the attribute was added, False when the request carries no
        MS-CHAP challenge or response (nothing to answer).

    Raises:
        ValidationError: User-Name missing, no reply to carry the answer, or
            challenge / response values too short to hold their fields
    """
    if len(nt_key) != NT_KEY_LENGTH:
        raise ValidationError(f"NT key must be {NT_KEY_LENGTH} bytes")

    packet_attrs = request.packet.attributes
    challenge = packet_attrs.find(MS_CHAP_CHALLENGE, VENDOR_MICROSOFT)
    if challenge is None:
        logger.debug("No MS-CHAP-Challenge in request", event="mschap.not_applicable")
        return False

    username = packet_attrs.find(ATTR_USER_NAME)
    if username is None:
        raise ValidationError("We require a User-Name for MS-CHAPv2")

    response = packet_attrs.find_first(RESPONSE_CANDIDATES)
    if response is None:
        logger.debug(
            "Found MS-CHAP-Challenge, but no MS-CHAP-Response",
            event="mschap.not_applicable",
        )
        return False

    if len(challenge.value) != AUTH_CHALLENGE_LENGTH:
        raise ValidationError(
            f"MS-CHAP-Challenge has invalid length {len(challenge.value)}"
        )
    if len(response.value) < MSCHAP2_RESPONSE_LENGTH:
        raise ValidationError(
            f"{response.name} has invalid length {len(response.value)}"
        )
    if request.reply is None:
        raise ValidationError("No reply packet to carry MS-CHAP2-Success")

    name_attr = packet_attrs.find(ATTR_MS_CHAP_USER_NAME) or username

    value = response.value
    peer_challenge = value[
        MSCHAP2_PEER_CHALLENGE_OFFSET : MSCHAP2_PEER_CHALLENGE_OFFSET
        + MSCHAP2_PEER_CHALLENGE_LENGTH
    ]
    nt_response = value[
        MSCHAP2_NT_RESPONSE_OFFSET : MSCHAP2_NT_RESPONSE_OFFSET
        + MSCHAP2_NT_RESPONSE_LENGTH
    ]
    computed = auth_response(
        name_attr.as_string(), nt_key, nt_response, peer_challenge, challenge.value
    )

    request.reply.attributes.add(
        RADIUSAttribute(
            MS_CHAP2_SUCCESS, computed, vendor_id=VENDOR_MICROSOFT, ident=value[0]
        )
    )
    logger.debug(
        "Added MS-CHAP2-Success to reply",
        event="mschap.success_added",
        username=name_attr.as_string(),
        ident=value[0],
    )
    return True


__all__ = [
    "AUTH_CHALLENGE_LENGTH",
    "RESPONSE_CANDIDATES",
    "add_success_response",
    "auth_response",
    "challenge_hash",
]
