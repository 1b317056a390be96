"""Traffic filter creation: u32 matches and mirred redirects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from rtnlreq.core import (
    NLM_F_ACK,
    NLM_F_REQUEST,
    NetlinkMessage,
    Nla,
    RequestAssertionError,
    _check_int,
    _check_uint,
    execute_ack,
)
from rtnlreq.tc import (
    TC_H_CLSACT,
    TC_H_MAJ_MASK,
    TC_H_MIN_EGRESS,
    TC_H_MIN_INGRESS,
    TC_H_MIN_MASK,
    TC_H_ROOT,
    TcMessage,
    _require_unset_parent,
    tc_h_make,
)

TCM_IFINDEX_MAGIC_BLOCK = 0xFFFFFFFF
TC_U32_TERMINAL = 1
TC_ACT_STOLEN = 4
TCA_EGRESS_REDIR = 1
TCA_ACT_TAB = 1

U32_KIND = "u32"
MIRRED_KIND = "mirred"


@dataclass
class U32Key:
    """One match key of a u32 selector."""

    mask: int = 0
    val: int = 0
    off: int = 0
    offmask: int = 0


@dataclass
class U32Sel:
    """A u32 selector: how to walk the packet and which keys to match."""

    flags: int = 0
    offshift: int = 0
    nkeys: int = 0
    offmask: int = 0
    off: int = 0
    offoff: int = 0
    hoff: int = 0
    hmask: int = 0
    keys: list[U32Key] = field(default_factory=list)


@dataclass
class TcMirred:
    """Parameters of a mirred (mirror/redirect) action."""

    index: int = 0
    capab: int = 0
    action: int = 0
    refcnt: int = 0
    bindcnt: int = 0
    eaction: int = 0
    ifindex: int = 0


@dataclass
class TcAction:
    """A filter action: its table slot and attributes."""

    tab: int = 0
    nlas: list[Nla] = field(default_factory=list)


def _signed32(value: int) -> int:
    return value - (1 << 32) if value >= (1 << 31) else value


class TrafficFilterNewRequest:
    """A request to create or change a filter; ``flags`` pick the mode."""

    def __init__(self, handle: Any, ifindex: int, flags: int) -> None:
        self._handle = handle
        self.message = TcMessage.with_index(ifindex)
        self.flags = NLM_F_REQUEST | _check_uint("flags", flags, 16)

    def index(self, index: int) -> TrafficFilterNewRequest:
        """Set the interface index; exclusive with ``block``."""
        index = _check_int("index", index, 32)
        if self.message.header.index != 0:
            raise RequestAssertionError("interface index or block is already set")
        self.message.header.index = index
        return self

    def block(self, block_index: int) -> TrafficFilterNewRequest:
        """Attach the filter to a shared block instead of an interface."""
        block_index = _check_uint("block_index", block_index, 32)
        if self.message.header.index != 0:
            raise RequestAssertionError("interface index or block is already set")
        self.message.header.index = _signed32(TCM_IFINDEX_MAGIC_BLOCK)
        self.message.header.parent = block_index
        return self

    def parent(self, parent: int) -> TrafficFilterNewRequest:
        parent = _check_uint("parent", parent, 32)
        _require_unset_parent(self.message)
        self.message.header.parent = parent
        return self

    def root(self) -> TrafficFilterNewRequest:
        _require_unset_parent(self.message)
        self.message.header.parent = TC_H_ROOT
        return self

    def ingress(self) -> TrafficFilterNewRequest:
        _require_unset_parent(self.message)
        self.message.header.parent = tc_h_make(TC_H_CLSACT, TC_H_MIN_INGRESS)
        return self

    def egress(self) -> TrafficFilterNewRequest:
        _require_unset_parent(self.message)
        self.message.header.parent = tc_h_make(TC_H_CLSACT, TC_H_MIN_EGRESS)
        return self

    def priority(self, priority: int) -> TrafficFilterNewRequest:
        """Set the filter priority (the major half of ``info``)."""
        priority = _check_uint("priority", priority, 16)
        info = self.message.header.info
        if info & TC_H_MAJ_MASK:
            raise RequestAssertionError("priority is already set")
        self.message.header.info = tc_h_make(priority << 16, info)
        return self

    def protocol(self, protocol: int) -> TrafficFilterNewRequest:
        """Set the link-layer protocol (the minor half of ``info``)."""
        protocol = _check_uint("protocol", protocol, 16)
        info = self.message.header.info
        if info & TC_H_MIN_MASK:
            raise RequestAssertionError("protocol is already set")
        self.message.header.info = tc_h_make(info, protocol)
        return self

    def u32(self, data: Iterable[Nla]) -> TrafficFilterNewRequest:
        """Make this a u32 filter with the given u32 attributes."""
        if any(nla.kind == "kind" for nla in self.message.nlas):
            raise RequestAssertionError("filter kind is already set")
        self.message.nlas.append(Nla("kind", U32_KIND))
        self.message.nlas.append(Nla("options", list(data)))
        return self

    def redirect(self, dst_index: int) -> TrafficFilterNewRequest:
        """Redirect every matched packet to the egress of ``dst_index``."""
        dst_index = _check_uint("dst_index", dst_index, 32)
        if self.message.nlas:
            raise RequestAssertionError("filter attributes are already set")
        selector = U32Sel(flags=TC_U32_TERMINAL, nkeys=1, keys=[U32Key()])
        mirred = TcMirred(
            action=TC_ACT_STOLEN, eaction=TCA_EGRESS_REDIR, ifindex=dst_index
        )
        action = TcAction(
            tab=TCA_ACT_TAB,
            nlas=[
                Nla("kind", MIRRED_KIND),
                Nla("options", [Nla("parms", mirred)]),
            ],
        )
        return self.u32([Nla("sel", selector), Nla("act", [action])])

    async def execute(self) -> None:
        """Send the request and wait for the kernel's acknowledgement."""
        request = NetlinkMessage(
            "NewTrafficFilter", self.message, NLM_F_ACK | self.flags
        )
        await execute_ack(self._handle, request)