"""Neighbour table requests: list, add and delete neighbour and fdb entries."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from rtnlreq.core import (
    AF_BRIDGE,
    AF_INET,
    AF_INET6,
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_DUMP,
    NLM_F_EXCL,
    NLM_F_REPLACE,
    NLM_F_REQUEST,
    Address,
    IpVersion,
    NetlinkMessage,
    Nla,
    _check_uint,
    execute_ack,
    execute_dump,
)

IFA_F_PERMANENT = 0x80
NUD_PERMANENT = 0x80
NDA_UNSPEC = 0
NTF_PROXY = 0x08

_DESTINATION = "destination"
_LINK_LOCAL_ADDRESS = "link_local_address"


@dataclass
class NeighbourHeader:
    """Fixed header of a neighbour message."""

    family: int = 0
    ifindex: int = 0
    state: int = 0
    flags: int = 0
    ntype: int = 0


@dataclass
class NeighbourMessage:
    """A neighbour cache entry: its header and attributes."""

    header: NeighbourHeader = field(default_factory=NeighbourHeader)
    nlas: list[Nla] = field(default_factory=list)

    def _set_nla(self, kind: str, value: Any) -> None:
        """Replace the first attribute of ``kind`` or append a new one."""
        position = next(
            (pos for pos, nla in enumerate(self.nlas) if nla.kind == kind), None
        )
        if position is None:
            self.nlas.append(Nla(kind, value))
        else:
            self.nlas[position] = Nla(kind, value)


def _ip(addr: Address) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    return ipaddress.ip_address(addr)


class NeighbourAddRequest:
    """A request to create a neighbour entry, like ``ip neighbour add``."""

    def __init__(self, handle: Any, message: NeighbourMessage) -> None:
        self._handle = handle
        self._replace = False
        self.message = message

    @classmethod
    def for_destination(
        cls, handle: Any, index: int, destination: Address
    ) -> NeighbourAddRequest:
        """Build a permanent entry for an IP destination on interface ``index``."""
        ip = _ip(destination)
        header = NeighbourHeader(
            family=AF_INET if ip.version == 4 else AF_INET6,
            ifindex=_check_uint("index", index, 32),
            state=IFA_F_PERMANENT,
            ntype=NDA_UNSPEC,
        )
        return cls(handle, NeighbourMessage(header, [Nla(_DESTINATION, ip.packed)]))

    @classmethod
    def for_bridge(cls, handle: Any, index: int, lla: bytes) -> NeighbourAddRequest:
        """Build a permanent bridge fdb entry for link-layer address ``lla``."""
        header = NeighbourHeader(
            family=AF_BRIDGE,
            ifindex=_check_uint("index", index, 32),
            state=NUD_PERMANENT,
            ntype=NDA_UNSPEC,
        )
        return cls(handle, NeighbourMessage(header, [Nla(_LINK_LOCAL_ADDRESS, bytes(lla))]))

    def state(self, state: int) -> NeighbourAddRequest:
        """Set the bitmask of ``NUD_*`` states."""
        self.message.header.state = _check_uint("state", state, 16)
        return self

    def flags(self, flags: int) -> NeighbourAddRequest:
        """Set the ``NTF_*`` flags."""
        self.message.header.flags = _check_uint("flags", flags, 8)
        return self

    def ntype(self, ntype: int) -> NeighbourAddRequest:
        """Set the entry type (one of the ``NDA_*`` constants)."""
        self.message.header.ntype = _check_uint("ntype", ntype, 8)
        return self

    def link_local_address(self, addr: bytes) -> NeighbourAddRequest:
        """Set the link-layer address, replacing any already set."""
        self.message._set_nla(_LINK_LOCAL_ADDRESS, bytes(addr))
        return self

    def destination(self, addr: Address) -> NeighbourAddRequest:
        """Set the destination address, replacing any already set."""
        self.message._set_nla(_DESTINATION, _ip(addr).packed)
        return self

    def replace(self) -> NeighbourAddRequest:
        """Replace an existing matching neighbour instead of failing."""
        self._replace = True
        return self

    async def execute(self) -> None:
        """Send the request and wait for the kernel's acknowledgement."""
        mode = NLM_F_REPLACE if self._replace else NLM_F_EXCL
        request = NetlinkMessage(
            "NewNeighbour",
            self.message,
            NLM_F_REQUEST | NLM_F_ACK | mode | NLM_F_CREATE,
        )
        await execute_ack(self._handle, request)


class NeighbourDelRequest:
    """A request to delete a neighbour entry, like ``ip neighbour delete``."""

    def __init__(self, handle: Any, message: NeighbourMessage) -> None:
        self._handle = handle
        self.message = message

    async def execute(self) -> None:
        request = NetlinkMessage(
            "DelNeighbour", self.message, NLM_F_REQUEST | NLM_F_ACK
        )
        await execute_ack(self._handle, request)


class NeighbourGetRequest:
    """A request to dump the neighbour table, like ``ip neighbour show``."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle
        self.message = NeighbourMessage()

    def proxies(self) -> NeighbourGetRequest:
        """List neighbour proxies only, like ``ip neighbour show proxy``."""
        self.message.header.flags |= NTF_PROXY
        return self

    def set_family(self, ip_version: IpVersion) -> NeighbourGetRequest:
        self.message.header.family = ip_version.family()
        return self

    def execute(self) -> AsyncIterator[NeighbourMessage]:
        request = NetlinkMessage(
            "GetNeighbour", self.message, NLM_F_REQUEST | NLM_F_DUMP
        )
        return execute_dump(self._handle, request, "NewNeighbour")


class NeighbourHandle:
    """Entry point for neighbour requests over a connection handle."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    def get(self) -> NeighbourGetRequest:
        return NeighbourGetRequest(self._handle)

    def add(self, index: int, destination: Address) -> NeighbourAddRequest:
        return NeighbourAddRequest.for_destination(self._handle, index, destination)

    def add_bridge(self, index: int, lla: bytes) -> NeighbourAddRequest:
        """Add a bridge fdb entry, like ``bridge fdb add``."""
        return NeighbourAddRequest.for_bridge(self._handle, index, lla)

    def delete(self, message: NeighbourMessage) -> NeighbourDelRequest:
        return NeighbourDelRequest(self._handle, message)