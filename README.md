# rtnlreq

Request builders for the Linux rtnetlink interface. They cover the operations
behind `ip route`, `ip rule`, `ip neighbour`, `bridge fdb` and `tc`.

Each request starts from a handle and is set up with chained calls. Every
builder call returns the request, so calls can be strung together. `execute()`
then passes a `rtnlreq.core.NetlinkMessage` to the handle's transport.

## The handle

Every request takes a `handle`, which must supply one method:

```python
def request(self, message: NetlinkMessage) -> AsyncIterator[NetlinkMessage]: ...
```

It sends `message` and yields the replies. A `NetlinkMessage` has three parts:

- `kind`, such as `"NewRoute"` or `"GetQueueDiscipline"`.
- `payload`, which is the request's message dataclass.
- `flags`, the `NLM_F_*` bits from `rtnlreq.core`.

A kernel error comes back as a reply whose payload is an
`rtnlreq.core.ErrorMessage`. An acknowledgement is an `ErrorMessage` with
`code == 0`.

## What the package does not do

- **No transport.** There is no netlink socket and no encoding of messages to
  bytes. Messages are plain dataclasses holding `Nla(kind, value)` attributes.
  You supply the handle that talks to the kernel.
- **No namespaces.** The package does not create or delete network namespaces.
- **No command-line tool.**

## Results and errors

- **Add, change and delete requests.** Their `execute()` is awaited. It reads
  every reply. It raises `NetlinkError` for an `ErrorMessage` with a non-zero
  code; the `.error` attribute holds that `ErrorMessage`.
- **Get requests.** Their `execute()` returns an async iterator over the
  payloads of the expected reply kind. It skips acknowledgements. It raises
  `NetlinkError` on an error. A reply of any other kind raises
  `UnexpectedMessageError`.
- **Conflicting builder calls.** A call that conflicts with an earlier one
  raises `RequestAssertionError`, which is also an `AssertionError`. Setting a
  tc parent twice is one example.
- **Bad integer arguments.** An integer argument outside its field width
  raises `ValueError`. A value that is not an integer raises `TypeError`.

All of these errors derive from `RtnlError`.

## Routes

```python
from rtnlreq.core import IpVersion
from rtnlreq.route import RouteHandle

routes = RouteHandle(handle)

await (
    routes.add()
    .v4()
    .destination_prefix("10.0.0.0", 24)
    .gateway("192.0.2.1")
    .output_interface(2)
    .execute()
)

async for route in routes.get(IpVersion.V4).execute():
    print(route.header, route.nlas)

await routes.delete(route).execute()
```

A new route starts with these defaults: table main, protocol static, scope
universe and kind unicast.

**Address family.** Call `v4()` or `v6()` before you set any address. This
applies to `source_prefix`, `pref_source`, `destination_prefix` and `gateway`.
The address must match the chosen family, or `ValueError` is raised.

**Address forms.** An address may be given in any form that
`ipaddress.ip_address` accepts.

**Tables.** `table_id()` stores a table up to 255 in the header. A larger ID
goes into a `table` attribute. `table()` is deprecated and emits a
`DeprecationWarning`.

**Replacing.** Call `replace()` to overwrite a matching route instead of
failing when one exists. `v4()` and `v6()` clear an earlier `replace()`.

## Rules

```python
from rtnlreq.rule import RuleHandle

rules = RuleHandle(handle)
await rules.add().v4().table_id(100).priority(1000).execute()
```

`RuleAddRequest` offers the following calls:

- `input_interface`
- `output_interface`
- `tos`
- `action`
- `priority`
- `source_prefix`
- `destination_prefix`
- `table_id`
- `replace`

`RuleHandle.get(ip_version)` lists the rules, and `RuleHandle.delete(rule)`
removes one.

## Neighbours

```python
from rtnlreq.core import IpVersion
from rtnlreq.neighbour import NeighbourHandle

neighbours = NeighbourHandle(handle)

# ip neighbour add
await neighbours.add(2, "192.0.2.10").link_local_address(
    bytes.fromhex("020000000001")
).execute()

# bridge fdb add
await neighbours.add_bridge(3, bytes.fromhex("020000000002")).execute()

async for entry in neighbours.get().set_family(IpVersion.V4).proxies().execute():
    print(entry)
```

`add()` takes the address family from the destination address. `add_bridge()`
builds a permanent `AF_BRIDGE` entry. `destination()` and
`link_local_address()` replace an attribute that is already set instead of
adding a second one.

## Traffic control

```python
from rtnlreq.tc_handle import QDiscHandle, TrafficFilterHandle

# tc qdisc add dev <index> ingress
await QDiscHandle(handle).add(4).ingress().execute()

# tc filter add dev <index> parent ffff: protocol all u32 match u8 0 0 \
#     action mirred egress redirect dev <dst>
await (
    TrafficFilterHandle(handle, 4)
    .add()
    .parent(0xFFFF0000)
    .protocol(0x0003)
    .redirect(5)
    .execute()
)
```

### QDiscs

`QDiscHandle` offers `get`, `add`, `change`, `replace`, `link` and `delete`,
after the matching `tc qdisc` subcommands.

### Filters

`TrafficFilterHandle` offers `get`, `add`, `change` and `replace`.

A filter request can be placed and given a priority and protocol with these
calls:

- `index` or `block` choose where the filter is attached; the two exclude each
  other.
- `parent`, `root`, `ingress` or `egress` choose the parent; these exclude each
  other.
- `priority` and `protocol` fill the two halves of the header's `info` field.

`u32(data)` makes the filter a u32 filter. `redirect(dst_index)` builds a u32
filter with one mirred action that redirects to the egress of `dst_index`. It
uses the `U32Sel`, `U32Key`, `TcMirred` and `TcAction` dataclasses from
`rtnlreq.tc_filter`.

### Listings

Traffic class, filter and chain listings come from:

- `TrafficClassHandle(handle, ifindex).get()`
- `TrafficFilterHandle(handle, ifindex).get()`, which takes `.root()`
- `TrafficChainHandle(handle, ifindex).get()`

`rtnlreq.tc.tc_h_make(major, minor)` combines the major half of one handle with
the minor half of another.

## Testing

```
pip install "rtnlreq[test]"
pytest
```