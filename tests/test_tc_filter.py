import pytest

from rtnlreq.core import (
    NLM_F_ACK,
    NLM_F_CREATE,
    NLM_F_EXCL,
    NLM_F_REQUEST,
    ErrorMessage,
    NetlinkError,
    NetlinkMessage,
    Nla,
    RequestAssertionError,
)
from rtnlreq.tc import (
    TC_H_CLSACT,
    TC_H_MAJ_MASK,
    TC_H_MIN_EGRESS,
    TC_H_MIN_INGRESS,
    TC_H_MIN_MASK,
    TC_H_ROOT,
    tc_h_make,
)
from rtnlreq.tc_filter import (
    TC_ACT_STOLEN,
    TC_U32_TERMINAL,
    TCA_ACT_TAB,
    TCA_EGRESS_REDIR,
    TCM_IFINDEX_MAGIC_BLOCK,
    TcAction,
    TrafficFilterNewRequest,
    U32Key,
    U32Sel,
)


class FakeHandle:
    def __init__(self, replies=()):
        self.sent = []
        self.replies = list(replies)

    async def request(self, message):
        self.sent.append(message)
        for reply in self.replies:
            yield reply


def new_request(handle=None, ifindex=0):
    return TrafficFilterNewRequest(handle or FakeHandle(), ifindex, NLM_F_EXCL | NLM_F_CREATE)


def test_flags_include_request():
    req = new_request()
    assert req.flags == NLM_F_REQUEST | NLM_F_EXCL | NLM_F_CREATE


def test_ifindex_from_constructor():
    req = new_request(ifindex=7)
    assert req.message.header.index == 7


def test_index_sets_interface():
    req = new_request().index(5)
    assert req.message.header.index == 5


def test_index_twice_rejected():
    with pytest.raises(RequestAssertionError):
        new_request(ifindex=3).index(4)


def test_block_sets_magic_index_and_parent():
    req = new_request().block(12)
    assert req.message.header.index & 0xFFFFFFFF == TCM_IFINDEX_MAGIC_BLOCK
    assert req.message.header.parent == 12


def test_block_after_index_rejected():
    with pytest.raises(RequestAssertionError):
        new_request(ifindex=2).block(1)


def test_parent_values():
    assert new_request().parent(0xFFFF0000).message.header.parent == 0xFFFF0000
    assert new_request().root().message.header.parent == TC_H_ROOT
    assert new_request().ingress().message.header.parent == tc_h_make(
        TC_H_CLSACT, TC_H_MIN_INGRESS
    )
    assert new_request().egress().message.header.parent == tc_h_make(
        TC_H_CLSACT, TC_H_MIN_EGRESS
    )


def test_ingress_and_egress_differ_in_minor_only():
    ing = new_request().ingress().message.header.parent
    eg = new_request().egress().message.header.parent
    assert ing & TC_H_MAJ_MASK == eg & TC_H_MAJ_MASK
    assert ing & TC_H_MIN_MASK == TC_H_MIN_INGRESS
    assert eg & TC_H_MIN_MASK == TC_H_MIN_EGRESS


@pytest.mark.parametrize("second", ["root", "ingress", "egress"])
def test_parent_set_twice_rejected(second):
    req = new_request().parent(0xFFFF0000)
    with pytest.raises(RequestAssertionError):
        getattr(req, second)()
    assert req.message.header.parent == 0xFFFF0000


def test_priority_and_protocol_share_info():
    req = new_request().priority(49152).protocol(0x0003)
    info = req.message.header.info
    assert info >> 16 == 49152
    assert info & TC_H_MIN_MASK == 0x0003


def test_protocol_then_priority_same_result():
    a = new_request().priority(10).protocol(0x0800).message.header.info
    b = new_request().protocol(0x0800).priority(10).message.header.info
    assert a == b


def test_priority_twice_rejected():
    with pytest.raises(RequestAssertionError):
        new_request().priority(1).priority(2)


def test_protocol_twice_rejected():
    with pytest.raises(RequestAssertionError):
        new_request().protocol(3).protocol(3)


def test_priority_out_of_range():
    with pytest.raises(ValueError):
        new_request().priority(1 << 16)


def test_u32_adds_kind_and_options():
    data = [Nla("sel", U32Sel())]
    req = new_request().u32(data)
    assert req.message.nlas[0] == Nla("kind", "u32")
    assert req.message.nlas[1] == Nla("options", data)


def test_u32_twice_rejected():
    req = new_request().u32([])
    with pytest.raises(RequestAssertionError):
        req.u32([])


def test_redirect_builds_u32_selector():
    req = new_request().parent(0xFFFF0000).protocol(0x0003).redirect(9)
    nlas = req.message.nlas
    assert nlas[0] == Nla("kind", "u32")
    options = nlas[1]
    assert options.kind == "options"
    sel_nla, act_nla = options.value
    assert sel_nla.kind == "sel"
    sel = sel_nla.value
    assert sel.flags == TC_U32_TERMINAL
    assert sel.nkeys == 1
    assert len(sel.keys) == 1
    assert sel.keys[0] == U32Key()


def test_redirect_builds_mirred_action():
    req = new_request().redirect(9)
    act_nla = req.message.nlas[1].value[1]
    assert act_nla.kind == "act"
    (action,) = act_nla.value
    assert isinstance(action, TcAction)
    assert action.tab == TCA_ACT_TAB
    assert action.nlas[0] == Nla("kind", "mirred")
    (parms,) = action.nlas[1].value
    assert parms.kind == "parms"
    assert parms.value.action == TC_ACT_STOLEN
    assert parms.value.eaction == TCA_EGRESS_REDIR
    assert parms.value.ifindex == 9


def test_redirect_with_existing_nlas_rejected():
    req = new_request().u32([])
    with pytest.raises(RequestAssertionError):
        req.redirect(1)


@pytest.mark.asyncio
async def test_execute_sends_new_filter():
    handle = FakeHandle([NetlinkMessage("Error", ErrorMessage(0))])
    req = new_request(handle, ifindex=4).root()
    await req.execute()
    (sent,) = handle.sent
    assert sent.kind == "NewTrafficFilter"
    assert sent.flags == NLM_F_ACK | NLM_F_REQUEST | NLM_F_EXCL | NLM_F_CREATE
    assert sent.payload.header.index == 4


@pytest.mark.asyncio
async def test_execute_raises_on_error():
    handle = FakeHandle([NetlinkMessage("Error", ErrorMessage(-17))])
    with pytest.raises(NetlinkError) as info:
        await new_request(handle).execute()
    assert info.value.error.code == -17