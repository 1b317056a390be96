"""Routing policy rule requests: list, add and delete rules."""

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
from rtnlreq.route import RT_TABLE_MAIN, RT_TABLE_UNSPEC

FR_ACT_UNSPEC = 0


@dataclass
class RuleHeader:
    """Fixed header of a rule message."""

    family: int = 0
    dst_len: int = 0
    src_len: int = 0
    tos: int = 0
    table: int = RT_TABLE_UNSPEC
    action: int = FR_ACT_UNSPEC
    flags: int = 0


@dataclass
class RuleMessage:
    """A policy rule: its header and attributes."""

    header: RuleHeader = field(default_factory=RuleHeader)
    nlas: list[Nla] = field(default_factory=list)


class RuleAddRequest:
    """A request to create a rule, like ``ip rule add``."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle
        self._replace = False
        self.message = RuleMessage(RuleHeader(table=RT_TABLE_MAIN, action=FR_ACT_UNSPEC))

    def input_interface(self, ifname: str) -> RuleAddRequest:
        self.message.nlas.append(Nla("iifname", str(ifname)))
        return self

    def output_interface(self, ifname: str) -> RuleAddRequest:
        self.message.nlas.append(Nla("oifname", str(ifname)))
        return self

    def table(self, table: int) -> RuleAddRequest:
        """Set the rule table in the header (deprecated, use ``table_id``)."""
        warnings.warn("use table_id() instead", DeprecationWarning, stacklevel=2)
        self.message.header.table = _check_uint("table", table, 8)
        return self

    def table_id(self, table: int) -> RuleAddRequest:
        """Set the rule table; ids above 255 go into an attribute."""
        _check_uint("table", table, 32)
        if table > 255:
            self.message.nlas.append(Nla("table", table))
        else:
            self.message.header.table = table
        return self

    def tos(self, tos: int) -> RuleAddRequest:
        self.message.header.tos = _check_uint("tos", tos, 8)
        return self

    def action(self, action: int) -> RuleAddRequest:
        self.message.header.action = _check_uint("action", action, 8)
        return self

    def priority(self, priority: int) -> RuleAddRequest:
        self.message.nlas.append(Nla("priority", _check_uint("priority", priority, 32)))
        return self

    def v4(self) -> RuleAddRequest:
        """Make this an IPv4 rule; clears an earlier ``replace()``."""
        self.message.header.family = AF_INET
        self._replace = False
        return self

    def v6(self) -> RuleAddRequest:
        """Make this an IPv6 rule; clears an earlier ``replace()``."""
        self.message.header.family = AF_INET6
        self._replace = False
        return self

    def replace(self) -> RuleAddRequest:
        """Replace an existing matching rule instead of failing."""
        self._replace = True
        return self

    def source_prefix(self, addr: Address, prefix_length: int) -> RuleAddRequest:
        src = _address_bytes(addr, self.message.header.family)
        self.message.header.src_len = _check_uint("prefix_length", prefix_length, 8)
        self.message.nlas.append(Nla("source", src))
        return self

    def destination_prefix(self, addr: Address, prefix_length: int) -> RuleAddRequest:
        dst = _address_bytes(addr, self.message.header.family)
        self.message.header.dst_len = _check_uint("prefix_length", prefix_length, 8)
        self.message.nlas.append(Nla("destination", dst))
        return self

    async def execute(self) -> None:
        """Send the request and wait for the kernel's acknowledgement."""
        mode = NLM_F_REPLACE if self._replace else NLM_F_EXCL
        request = NetlinkMessage(
            "NewRule",
            self.message,
            NLM_F_REQUEST | NLM_F_ACK | mode | NLM_F_CREATE,
        )
        await execute_ack(self._handle, request)


class RuleDelRequest:
    """A request to delete a rule, like ``ip rule del``."""

    def __init__(self, handle: Any, message: RuleMessage) -> None:
        self._handle = handle
        self.message = message

    async def execute(self) -> None:
        request = NetlinkMessage("DelRule", self.message, NLM_F_REQUEST | NLM_F_ACK)
        await execute_ack(self._handle, request)


class RuleGetRequest:
    """A request to dump the policy rules, like ``ip rule show``."""

    def __init__(self, handle: Any, ip_version: IpVersion) -> None:
        self._handle = handle
        self.message = RuleMessage(
            RuleHeader(
                family=ip_version.family(),
                dst_len=0,
                src_len=0,
                tos=0,
                action=FR_ACT_UNSPEC,
                table=RT_TABLE_UNSPEC,
            )
        )

    def execute(self) -> AsyncIterator[RuleMessage]:
        request = NetlinkMessage("GetRule", self.message, NLM_F_REQUEST | NLM_F_DUMP)
        return execute_dump(self._handle, request, "NewRule")


class RuleHandle:
    """Entry point for rule requests over a connection handle."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    def get(self, ip_version: IpVersion) -> RuleGetRequest:
        return RuleGetRequest(self._handle, ip_version)

    def add(self) -> RuleAddRequest:
        return RuleAddRequest(self._handle)

    def delete(self, rule: RuleMessage) -> RuleDelRequest:
        return RuleDelRequest(self._handle, rule)