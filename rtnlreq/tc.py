"""Traffic control requests: qdiscs, classes, filters and chains."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, TypeVar

from rtnlreq.core import (
    NLM_F_ACK,
    NLM_F_DUMP,
    NLM_F_REQUEST,
    NetlinkMessage,
    Nla,
    RequestAssertionError,
    _check_int,
    _check_uint,
    execute_ack,
    execute_dump,
)

TC_H_UNSPEC = 0
TC_H_ROOT = 0xFFFFFFFF
TC_H_INGRESS = 0xFFFFFFF1
TC_H_CLSACT = TC_H_INGRESS
TC_H_MAJ_MASK = 0xFFFF0000
TC_H_MIN_MASK = 0x0000FFFF
TC_H_MIN_INGRESS = 0xFFF2
TC_H_MIN_EGRESS = 0xFFF3

INGRESS_HANDLE = 0xFFFF0000

_R = TypeVar("_R", bound="_TcRequest")


def tc_h_make(major: int, minor: int) -> int:
    """Combine the major half of ``major`` with the minor half of ``minor``."""
    return (major & TC_H_MAJ_MASK) | (minor & TC_H_MIN_MASK)


@dataclass
class TcHeader:
    """Fixed header of a traffic control message."""

    family: int = 0
    index: int = 0
    handle: int = 0
    parent: int = TC_H_UNSPEC
    info: int = 0


@dataclass
class TcMessage:
    """A traffic control object: its header and attributes."""

    header: TcHeader = field(default_factory=TcHeader)
    nlas: list[Nla] = field(default_factory=list)

    @classmethod
    def with_index(cls, index: int) -> TcMessage:
        """Return an empty message for interface ``index``."""
        return cls(TcHeader(index=_check_int("index", index, 32)))


def _require_unset_parent(message: TcMessage) -> None:
    if message.header.parent != TC_H_UNSPEC:
        raise RequestAssertionError(
            f"parent is already set to {message.header.parent:#x}"
        )


class _TcRequest:
    """Common state of every traffic control request."""

    def __init__(self, handle: Any, message: TcMessage) -> None:
        self._handle = handle
        self.message = message

    def _set_parent(self: _R, parent: int) -> _R:
        _require_unset_parent(self.message)
        self.message.header.parent = parent
        return self


class _TcDumpRequest(_TcRequest):
    """A dump request; subclasses name the request and reply kinds."""

    _request_kind = ""
    _reply_kind = ""

    def __init__(self, handle: Any, ifindex: int = 0) -> None:
        super().__init__(handle, TcMessage.with_index(ifindex))

    def execute(self) -> AsyncIterator[TcMessage]:
        request = NetlinkMessage(
            self._request_kind, self.message, NLM_F_REQUEST | NLM_F_DUMP
        )
        return execute_dump(self._handle, request, self._reply_kind)


class QDiscGetRequest(_TcDumpRequest):
    """A request to dump queueing disciplines, like ``tc qdisc show``."""

    _request_kind = "GetQueueDiscipline"
    _reply_kind = "NewQueueDiscipline"

    def __init__(self, handle: Any) -> None:
        super().__init__(handle)

    def index(self, index: int) -> QDiscGetRequest:
        self.message.header.index = _check_int("index", index, 32)
        return self

    def ingress(self) -> QDiscGetRequest:
        """Select the ingress qdisc."""
        return self._set_parent(TC_H_INGRESS)

    def execute(self) -> AsyncIterator[TcMessage]:
        return super().execute()


class TrafficClassGetRequest(_TcDumpRequest):
    """A request to dump traffic classes, like ``tc class show dev IFACE``."""

    _request_kind = "GetTrafficClass"
    _reply_kind = "NewTrafficClass"

    def execute(self) -> AsyncIterator[TcMessage]:
        return super().execute()


class TrafficFilterGetRequest(_TcDumpRequest):
    """A request to dump filters, like ``tc filter show dev IFACE``."""

    _request_kind = "GetTrafficFilter"
    _reply_kind = "NewTrafficFilter"

    def root(self) -> TrafficFilterGetRequest:
        return self._set_parent(TC_H_ROOT)

    def execute(self) -> AsyncIterator[TcMessage]:
        return super().execute()


class TrafficChainGetRequest(_TcDumpRequest):
    """A request to dump filter chains, like ``tc chain show dev IFACE``."""

    _request_kind = "GetTrafficChain"
    _reply_kind = "NewTrafficChain"

    def execute(self) -> AsyncIterator[TcMessage]:
        return super().execute()


class QDiscNewRequest(_TcRequest):
    """A request to create or change a qdisc; ``flags`` pick the mode."""

    def __init__(self, handle: Any, message: TcMessage, flags: int) -> None:
        super().__init__(handle, message)
        self.flags = NLM_F_REQUEST | _check_uint("flags", flags, 16)

    def handle(self, major: int, minor: int) -> QDiscNewRequest:
        """Set the qdisc handle to ``major:minor``."""
        major = _check_uint("major", major, 16)
        minor = _check_uint("minor", minor, 16)
        self.message.header.handle = tc_h_make(major << 16, minor)
        return self

    def root(self) -> QDiscNewRequest:
        return self._set_parent(TC_H_ROOT)

    def parent(self, parent: int) -> QDiscNewRequest:
        return self._set_parent(_check_uint("parent", parent, 32))

    def ingress(self) -> QDiscNewRequest:
        """Make this an ingress qdisc."""
        self._set_parent(TC_H_INGRESS)
        self.message.header.handle = INGRESS_HANDLE
        self.message.nlas.append(Nla("kind", "ingress"))
        return self

    async def execute(self) -> None:
        await execute_ack(
            self._handle,
            NetlinkMessage("NewQueueDiscipline", self.message, NLM_F_ACK | self.flags),
        )


class QDiscDelRequest(_TcRequest):
    """A request to delete a qdisc, like ``tc qdisc del``."""

    async def execute(self) -> None:
        await execute_ack(
            self._handle,
            NetlinkMessage(
                "DelQueueDiscipline", self.message, NLM_F_REQUEST | NLM_F_ACK
            ),
        )