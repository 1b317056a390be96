"""Routing table requests: list, add and delete routes."""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from rtnlreq.core import (
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
    _address_bytes,
    _check_uint,
    execute_ack,
    execute_dump,
)

RT_TABLE_UNSPEC = 0
RT_TABLE_MAIN = 254
RTPROT_UNSPEC = 0
RTPROT_STATIC = 4
RT_SCOPE_UNIVERSE = 0
RTN_UNSPEC = 0
RTN_UNICAST = 1


@dataclass
class RouteHeader:
    """Fixed header of a route message."""

    address_family: int = 0
    destination_prefix_length: int = 0
    source_prefix_length: int = 0
    tos: int = 0
    table: int = RT_TABLE_UNSPEC
    protocol: int = RTPROT_UNSPEC
    scope: int = RT_SCOPE_UNIVERSE
    kind: int = RTN_UNSPEC
    flags: int = 0


@dataclass
class RouteMessage:
    """A route: its header and attributes."""

    header: RouteHeader = field(default_factory=RouteHeader)
    nlas: list[Nla] = field(default_factory=list)


class RouteAddRequest:
    """A request to create a route, like ``ip route add``."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle
        self._replace = False
        self.message = RouteMessage(
            RouteHeader(
                table=RT_TABLE_MAIN,
                protocol=RTPROT_STATIC,
                scope=RT_SCOPE_UNIVERSE,
                kind=RTN_UNICAST,
            )
        )

    def input_interface(self, index: int) -> RouteAddRequest:
        """Set the input interface index."""
        self.message.nlas.append(Nla("iif", _check_uint("index", index, 32)))
        return self

    def output_interface(self, index: int) -> RouteAddRequest:
        """Set the output interface index."""
        self.message.nlas.append(Nla("oif", _check_uint("index", index, 32)))
        return self

    def table(self, table: int) -> RouteAddRequest:
        """Set the route table in the header (deprecated, use ``table_id``)."""
        warnings.warn("use table_id() instead", DeprecationWarning, stacklevel=2)
        self.message.header.table = _check_uint("table", table, 8)
        return self

    def table_id(self, table: int) -> RouteAddRequest:
        """Set the route table; ids above 255 go into an attribute."""
        _check_uint("table", table, 32)
        if table > 255:
            self.message.nlas.append(Nla("table", table))
        else:
            self.message.header.table = table
        return self

    def protocol(self, protocol: int) -> RouteAddRequest:
        self.message.header.protocol = _check_uint("protocol", protocol, 8)
        return self

    def scope(self, scope: int) -> RouteAddRequest:
        self.message.header.scope = _check_uint("scope", scope, 8)
        return self

    def kind(self, kind: int) -> RouteAddRequest:
        self.message.header.kind = _check_uint("kind", kind, 8)
        return self

    def v4(self) -> RouteAddRequest:
        """Make this an IPv4 route; clears an earlier ``replace()``."""
        self.message.header.address_family = AF_INET
        self._replace = False
        return self

    def v6(self) -> RouteAddRequest:
        """Make this an IPv6 route; clears an earlier ``replace()``."""
        self.message.header.address_family = AF_INET6
        self._replace = False
        return self

    def replace(self) -> RouteAddRequest:
        """Replace an existing matching route instead of failing."""
        self._replace = True
        return self

    def _address(self, addr: Address) -> bytes:
        return _address_bytes(addr, self.message.header.address_family)

    def source_prefix(self, addr: Address, prefix_length: int) -> RouteAddRequest:
        src = self._address(addr)
        self.message.header.source_prefix_length = _check_uint(
            "prefix_length", prefix_length, 8
        )
        self.message.nlas.append(Nla("source", src))
        return self

    def pref_source(self, addr: Address) -> RouteAddRequest:
        self.message.nlas.append(Nla("pref_source", self._address(addr)))
        return self

    def destination_prefix(self, addr: Address, prefix_length: int) -> RouteAddRequest:
        dst = self._address(addr)
        self.message.header.destination_prefix_length = _check_uint(
            "prefix_length", prefix_length, 8
        )
        self.message.nlas.append(Nla("destination", dst))
        return self

    def gateway(self, addr: Address) -> RouteAddRequest:
        self.message.nlas.append(Nla("gateway", self._address(addr)))
        return self

    async def execute(self) -> None:
        """Send the request and wait for the kernel's acknowledgement."""
        mode = NLM_F_REPLACE if self._replace else NLM_F_EXCL
        request = NetlinkMessage(
            "NewRoute",
            self.message,
            NLM_F_REQUEST | NLM_F_ACK | mode | NLM_F_CREATE,
        )
        await execute_ack(self._handle, request)


class RouteDelRequest:
    """A request to delete a route, like ``ip route del``."""

    def __init__(self, handle: Any, message: RouteMessage) -> None:
        self._handle = handle
        self.message = message

    async def execute(self) -> None:
        request = NetlinkMessage("DelRoute", self.message, NLM_F_REQUEST | NLM_F_ACK)
        await execute_ack(self._handle, request)


class RouteGetRequest:
    """A request to dump the routing tables, like ``ip route show``."""

    def __init__(self, handle: Any, ip_version: IpVersion) -> None:
        self._handle = handle
        # Zero prefix lengths and unspecified table/protocol select every route.
        self.message = RouteMessage(
            RouteHeader(
                address_family=ip_version.family(),
                destination_prefix_length=0,
                source_prefix_length=0,
                scope=RT_SCOPE_UNIVERSE,
                kind=RTN_UNSPEC,
                table=RT_TABLE_UNSPEC,
                protocol=RTPROT_UNSPEC,
            )
        )

    def execute(self) -> AsyncIterator[RouteMessage]:
        request = NetlinkMessage("GetRoute", self.message, NLM_F_REQUEST | NLM_F_DUMP)
        return execute_dump(self._handle, request, "NewRoute")


class RouteHandle:
    """Entry point for route requests over a connection handle."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    def get(self, ip_version: IpVersion) -> RouteGetRequest:
        return RouteGetRequest(self._handle, ip_version)

    def add(self) -> RouteAddRequest:
        return RouteAddRequest(self._handle)

    def delete(self, route: RouteMessage) -> RouteDelRequest:
        return RouteDelRequest(self._handle, route)