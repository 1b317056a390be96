"""Entry points for traffic control requests over a connection handle."""

from __future__ import annotations

from typing import Any

from rtnlreq.core import NLM_F_CREATE, NLM_F_EXCL, NLM_F_REPLACE
from rtnlreq.tc import (
    QDiscDelRequest,
    QDiscGetRequest,
    QDiscNewRequest,
    TcMessage,
    TrafficChainGetRequest,
    TrafficClassGetRequest,
    TrafficFilterGetRequest,
)
from rtnlreq.tc_filter import TrafficFilterNewRequest


class QDiscHandle:
    """Requests on queueing disciplines."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    def get(self) -> QDiscGetRequest:
        """List qdiscs, like ``tc qdisc show``."""
        return QDiscGetRequest(self._handle)

    def add(self, index: int) -> QDiscNewRequest:
        """Create a qdisc, failing if it exists, like ``tc qdisc add``."""
        return QDiscNewRequest(
            self._handle, TcMessage.with_index(index), NLM_F_EXCL | NLM_F_CREATE
        )

    def change(self, index: int) -> QDiscNewRequest:
        """Change a qdisc in place, like ``tc qdisc change``."""
        return QDiscNewRequest(self._handle, TcMessage.with_index(index), 0)

    def replace(self, index: int) -> QDiscNewRequest:
        """Replace or create a qdisc, like ``tc qdisc replace``."""
        return QDiscNewRequest(
            self._handle, TcMessage.with_index(index), NLM_F_CREATE | NLM_F_REPLACE
        )

    def link(self, index: int) -> QDiscNewRequest:
        """Replace a qdisc that must already exist, like ``tc qdisc link``."""
        return QDiscNewRequest(self._handle, TcMessage.with_index(index), NLM_F_REPLACE)

    def delete(self, index: int) -> QDiscDelRequest:
        """Delete a qdisc, like ``tc qdisc del``."""
        return QDiscDelRequest(self._handle, TcMessage.with_index(index))


class TrafficClassHandle:
    """Requests on the traffic classes of one interface."""

    def __init__(self, handle: Any, ifindex: int) -> None:
        self._handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficClassGetRequest:
        """List classes, like ``tc class show dev IFACE``."""
        return TrafficClassGetRequest(self._handle, self.ifindex)


class TrafficFilterHandle:
    """Requests on the filters of one interface."""

    def __init__(self, handle: Any, ifindex: int) -> None:
        self._handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficFilterGetRequest:
        """List filters, like ``tc filter show dev IFACE``."""
        return TrafficFilterGetRequest(self._handle, self.ifindex)

    def add(self) -> TrafficFilterNewRequest:
        """Add a filter, failing if it exists, like ``tc filter add``."""
        return TrafficFilterNewRequest(
            self._handle, self.ifindex, NLM_F_EXCL | NLM_F_CREATE
        )

    def change(self) -> TrafficFilterNewRequest:
        """Change a filter in place, like ``tc filter change``."""
        return TrafficFilterNewRequest(self._handle, self.ifindex, 0)

    def replace(self) -> TrafficFilterNewRequest:
        """Replace or create a filter, like ``tc filter replace``."""
        return TrafficFilterNewRequest(self._handle, self.ifindex, NLM_F_CREATE)


class TrafficChainHandle:
    """Requests on the filter chains of one interface."""

    def __init__(self, handle: Any, ifindex: int) -> None:
        self._handle = handle
        self.ifindex = ifindex

    def get(self) -> TrafficChainGetRequest:
        """List chains, like ``tc chain show dev IFACE``."""
        return TrafficChainGetRequest(self._handle, self.ifindex)