"""In-flight request as seen by a module.

The host owns a Request for one protocol transaction; modules borrow it for
the duration of a single call and never keep references to its lists.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from .packet import AttributeList, RADIUSPacket


@dataclass
class Request:
    packet: RADIUSPacket
    reply: RADIUSPacket | None = None
    proxy: RADIUSPacket | None = None
    proxy_reply: RADIUSPacket | None = None
    config_items: AttributeList = field(default_factory=AttributeList)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def packet_codes(self) -> list[int]:
        """Codes of every packet present: request, reply, proxy, proxy reply"""
        return [
            pkt.code
            for pkt in (self.packet, self.reply, self.proxy, self.proxy_reply)
            if pkt is not None
        ]
