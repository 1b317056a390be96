import pytest

from rtnlreq.core import (
    AF_INET,
    AF_INET6,
    ErrorMessage,
    IpVersion,
    NetlinkError,
    NetlinkMessage,
    Nla,
    RtnlError,
    UnexpectedMessageError,
    execute_ack,
    execute_dump,
)

GET_ROUTE = NetlinkMessage("GetRoute", None)


class Recorder:
    """Handle that records requests and replays canned replies, or fails."""

    def __init__(self, *replies, failure=None):
        self.replies = replies
        self.failure = failure
        self.sent = []

    def request(self, message):
        if self.failure is not None:
            raise self.failure
        self.sent.append(message)
        return self._replay()

    async def _replay(self):
        for reply in self.replies:
            yield reply


def error_reply(code):
    return NetlinkMessage("Error", ErrorMessage(code))


async def dump_into(sink, handle):
    async for payload in execute_dump(handle, GET_ROUTE, "NewRoute"):
        sink.append(payload)
    return sink


@pytest.mark.parametrize(
    "version, family, number",
    [(IpVersion.V4, AF_INET, 2), (IpVersion.V6, AF_INET6, 10)],
)
def test_ip_version_family(version, family, number):
    assert version.family() == family == number


def test_nla_equality():
    assert Nla("oif", 3) == Nla("oif", 3)
    assert Nla("oif", 3) != Nla("iif", 3)


@pytest.mark.asyncio
async def test_execute_ack_sends_message():
    handle = Recorder(error_reply(0))
    request = NetlinkMessage("NewRoute", "payload", flags=1)
    await execute_ack(handle, request)
    assert handle.sent == [request]


@pytest.mark.asyncio
async def test_execute_ack_raises_on_error():
    with pytest.raises(NetlinkError) as info:
        await execute_ack(Recorder(error_reply(-17)), NetlinkMessage("NewRoute", None))
    assert info.value.error.code == -17


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "run",
    [
        lambda h: execute_ack(h, NetlinkMessage("NewRoute", None)),
        lambda h: dump_into([], h),
    ],
)
async def test_request_failure_propagates(run):
    with pytest.raises(RtnlError, match="no socket"):
        await run(Recorder(failure=RtnlError("no socket")))


@pytest.mark.asyncio
async def test_execute_dump_yields_payloads():
    handle = Recorder(NetlinkMessage("NewRoute", "a"), NetlinkMessage("NewRoute", "b"))
    assert await dump_into([], handle) == ["a", "b"]


@pytest.mark.asyncio
async def test_execute_dump_unexpected_kind():
    reply = NetlinkMessage("NewRule", "x")
    with pytest.raises(UnexpectedMessageError) as info:
        await dump_into([], Recorder(reply))
    assert info.value.message is reply


@pytest.mark.asyncio
async def test_execute_dump_error():
    handle = Recorder(NetlinkMessage("NewRoute", "a"), error_reply(-95))
    got = []
    with pytest.raises(NetlinkError) as info:
        await dump_into(got, handle)
    assert got == ["a"]
    assert info.value.error.code == -95