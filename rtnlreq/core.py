"""Netlink message model and the request/response plumbing shared by all requests."""

from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol, Union

AF_UNSPEC = 0
AF_INET = 2
AF_BRIDGE = 7
AF_INET6 = 10

NLM_F_REQUEST = 0x01
NLM_F_ACK = 0x04
NLM_F_ROOT = 0x100
NLM_F_MATCH = 0x200
NLM_F_DUMP = NLM_F_ROOT | NLM_F_MATCH
NLM_F_REPLACE = 0x100
NLM_F_EXCL = 0x200
NLM_F_CREATE = 0x400

Address = Union[str, bytes, int, ipaddress.IPv4Address, ipaddress.IPv6Address]


class IpVersion(enum.Enum):
    """Internet Protocol version."""

    V4 = 4
    V6 = 6

    def family(self) -> int:
        """Return the address family number for this version."""
        return AF_INET if self is IpVersion.V4 else AF_INET6


@dataclass(frozen=True)
class Nla:
    """A netlink attribute: a named value attached to a message."""

    kind: str
    value: Any


@dataclass
class ErrorMessage:
    """An error (or, with code 0, an acknowledgement) sent back by the kernel."""

    code: int
    header: bytes = b""

    @property
    def is_ack(self) -> bool:
        return self.code == 0

    def __str__(self) -> str:
        return f"netlink error {self.code}"


@dataclass
class NetlinkMessage:
    """A netlink message: its kind (e.g. ``NewRoute``), flags and payload."""

    kind: str
    payload: Any
    flags: int = 0


class RtnlError(Exception):
    """Base class for errors raised by requests."""


class NetlinkError(RtnlError):
    """The kernel answered a request with an error."""

    def __init__(self, error: ErrorMessage) -> None:
        super().__init__(str(error))
        self.error = error


class UnexpectedMessageError(RtnlError):
    """A reply of an unexpected kind arrived."""

    def __init__(self, message: NetlinkMessage) -> None:
        super().__init__(f"unexpected message: {message.kind}")
        self.message = message


class RequestAssertionError(RtnlError, AssertionError):
    """A request was built in a way that contradicts an earlier setting."""


class _Handle(Protocol):
    def request(self, message: NetlinkMessage) -> AsyncIterator[NetlinkMessage]:
        ...


def _check_uint(name: str, value: int, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} must fit in {bits} unsigned bits, got {value}")
    return value


def _check_int(name: str, value: int, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"{name} must fit in {bits} signed bits, got {value}")
    return value


def _address_bytes(addr: Address, family: int) -> bytes:
    """Pack ``addr``, requiring it to match the address family already chosen."""
    expected = {AF_INET: 4, AF_INET6: 6}.get(family)
    if expected is None:
        raise ValueError("choose v4() or v6() before setting addresses")
    ip = ipaddress.ip_address(addr)
    if ip.version != expected:
        raise ValueError(f"expected an IPv{expected} address, got {ip}")
    return ip.packed


async def execute_ack(handle: _Handle, message: NetlinkMessage) -> None:
    """Send ``message`` and drain the replies, raising on a kernel error."""
    async for reply in handle.request(message):
        payload = reply.payload
        if isinstance(payload, ErrorMessage) and not payload.is_ack:
            raise NetlinkError(payload)


async def execute_dump(
    handle: _Handle, message: NetlinkMessage, expected_kind: str
) -> AsyncIterator[Any]:
    """Send a dump request and yield the payload of each ``expected_kind`` reply."""
    async for reply in handle.request(message):
        payload = reply.payload
        if isinstance(payload, ErrorMessage):
            if payload.is_ack:
                continue
            raise NetlinkError(payload)
        if reply.kind != expected_kind:
            raise UnexpectedMessageError(reply)
        yield payload