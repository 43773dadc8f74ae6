"""Data model of flows, events and server status as received from a server."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any

_MIN_SECONDS = -62135596800  # 0001-01-01T00:00:00Z
_MAX_SECONDS = 253402300799  # 9999-12-31T23:59:59Z
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Timestamp:
    """A point in time as seconds and nanoseconds since the Unix epoch."""

    seconds: int = 0
    nanos: int = 0

    def is_valid(self) -> bool:
        return (
            _MIN_SECONDS <= self.seconds <= _MAX_SECONDS
            and 0 <= self.nanos < 1_000_000_000
        )

    def as_datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def to_json(self) -> str:
        base = (_EPOCH + timedelta(seconds=self.seconds)).strftime("%Y-%m-%dT%H:%M:%S")
        frac = f"{self.nanos:09d}"
        while frac.endswith("000"):
            frac = frac[:-3]
        return f"{base}.{frac}Z" if frac else f"{base}Z"


class Verdict(enum.IntEnum):
    VERDICT_UNKNOWN = 0
    FORWARDED = 1
    DROPPED = 2
    ERROR = 3
    AUDIT = 4
    REDIRECTED = 5


class L7FlowType(enum.IntEnum):
    UNKNOWN_L7_TYPE = 0
    REQUEST = 1
    RESPONSE = 2
    SAMPLE = 3


class NodeState(enum.IntEnum):
    UNKNOWN_NODE_STATE = 0
    NODE_CONNECTED = 1
    NODE_UNAVAILABLE = 2
    NODE_GONE = 3
    NODE_ERROR = 4


class AgentEventType(enum.IntEnum):
    AGENT_EVENT_UNKNOWN = 0
    AGENT_STARTED = 2
    POLICY_UPDATED = 3
    POLICY_DELETED = 4
    ENDPOINT_REGENERATE_SUCCESS = 5
    ENDPOINT_REGENERATE_FAILURE = 6
    ENDPOINT_CREATED = 7
    ENDPOINT_DELETED = 8
    IPCACHE_UPSERTED = 9
    IPCACHE_DELETED = 10
    SERVICE_UPSERTED = 11
    SERVICE_DELETED = 12


class DebugCapturePoint(enum.IntEnum):
    DBG_CAPTURE_POINT_UNKNOWN = 0
    DBG_CAPTURE_DELIVERY = 4
    DBG_CAPTURE_FROM_LB = 5
    DBG_CAPTURE_AFTER_V46 = 6
    DBG_CAPTURE_AFTER_V64 = 7
    DBG_CAPTURE_PROXY_PRE = 8
    DBG_CAPTURE_PROXY_POST = 9
    DBG_CAPTURE_SNAT_PRE = 10
    DBG_CAPTURE_SNAT_POST = 11


def _field(name: str | None = None, *, keep: bool = False, quoted: bool = False, **kwargs):
    """A field with its JSON name; ``keep`` writes set zero values, ``quoted`` writes a string."""
    return field(metadata={"json": name, "keep": keep, "quoted": quoted}, **kwargs)


def _encode(value: Any) -> Any:
    if isinstance(value, Timestamp):
        return value.to_json()
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, _Message):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


class _Message:
    """JSON mapping shared by the messages: unset and default fields are left out."""

    def to_dict(self) -> dict:
        out: dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            meta = f.metadata
            if not meta.get("keep") and (
                value == f.default or (isinstance(value, (str, int, list, dict)) and not value)
            ):
                continue
            out[meta.get("json") or f.name] = str(value) if meta.get("quoted") else _encode(value)
        return out


@dataclass
class IP(_Message):
    source: str = ""
    destination: str = ""


@dataclass
class Ethernet(_Message):
    source: str = ""
    destination: str = ""


@dataclass
class Endpoint(_Message):
    id: int = _field("ID", default=0)
    identity: int = 0
    namespace: str = ""
    labels: list[str] = field(default_factory=list)
    pod_name: str = ""


@dataclass
class Service(_Message):
    name: str = ""
    namespace: str = ""


@dataclass
class TCP(_Message):
    source_port: int = 0
    destination_port: int = 0


@dataclass
class UDP(_Message):
    source_port: int = 0
    destination_port: int = 0


@dataclass
class Layer4(_Message):
    """Transport layer of a flow; at most one protocol is set."""

    tcp: TCP | None = _field("TCP", default=None)
    udp: UDP | None = _field("UDP", default=None)


@dataclass
class Layer7(_Message):
    """Application layer of a flow; ``record`` is 'http', 'dns', 'kafka' or None."""

    type: L7FlowType = L7FlowType.UNKNOWN_L7_TYPE
    record: str | None = None

    def to_dict(self) -> dict:
        out = {"type": self.type.name} if self.type else {}
        if self.record:
            out[self.record] = {}
        return out


@dataclass
class CiliumEventType(_Message):
    type: int = 0
    sub_type: int = 0


@dataclass
class Flow(_Message):
    time: Timestamp | None = None
    verdict: Verdict = Verdict.VERDICT_UNKNOWN
    drop_reason: int = 0
    ethernet: Ethernet | None = None
    ip: IP | None = _field("IP", default=None)
    l4: Layer4 | None = None
    source: Endpoint | None = None
    destination: Endpoint | None = None
    type: str = _field("Type", default="UNKNOWN_TYPE")
    node_name: str = ""
    source_names: list[str] = field(default_factory=list)
    destination_names: list[str] = field(default_factory=list)
    l7: Layer7 | None = None
    event_type: CiliumEventType | None = None
    source_service: Service | None = None
    destination_service: Service | None = None
    policy_match_type: int = 0
    is_reply: bool | None = _field(keep=True, default=None)
    debug_capture_point: DebugCapturePoint = DebugCapturePoint.DBG_CAPTURE_POINT_UNKNOWN
    summary: str = _field("Summary", default="")

    def to_dict(self) -> dict:
        """The flow as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class NodeStatusEvent(_Message):
    state_change: NodeState = NodeState.UNKNOWN_NODE_STATE
    node_names: list[str] = field(default_factory=list)
    message: str = ""


@dataclass
class GetFlowsResponse(_Message):
    """A flow or a node status event, tagged with node name and time."""

    flow: Flow | None = None
    node_status: NodeStatusEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None

    def to_dict(self) -> dict:
        """The response as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class ServiceAddr(_Message):
    ip: str = _field(keep=True, default="")
    port: int = _field(keep=True, default=0)


@dataclass
class AgentEvent(_Message):
    """An agent event; at most one notification dictionary is set.

    Keys of the notifications: ``unknown`` (type, notification),
    ``agent_start`` (time), ``policy_update`` (labels, revision, rule_count),
    ``endpoint_regenerate`` (id, labels, error), ``endpoint_update``
    (id, labels, error, pod_name, namespace), ``ipcache_update`` (cidr,
    identity, old_identity, host_ip, old_host_ip, encrypt_key, namespace,
    pod_name), ``service_upsert`` (id, frontend_address, backend_addresses,
    type, traffic_policy, name, namespace), ``service_delete`` (id).
    """

    type: AgentEventType = AgentEventType.AGENT_EVENT_UNKNOWN
    unknown: dict | None = _field(keep=True, default=None)
    agent_start: dict | None = _field(keep=True, default=None)
    policy_update: dict | None = _field(keep=True, default=None)
    endpoint_regenerate: dict | None = _field(keep=True, default=None)
    endpoint_update: dict | None = _field(keep=True, default=None)
    ipcache_update: dict | None = _field(keep=True, default=None)
    service_upsert: dict | None = _field(keep=True, default=None)
    service_delete: dict | None = _field(keep=True, default=None)

    def to_dict(self) -> dict:
        """The event as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class GetAgentEventsResponse(_Message):
    agent_event: AgentEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None

    def to_dict(self) -> dict:
        """The response as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class DebugEvent(_Message):
    type: str = "DBG_EVENT_UNKNOWN"
    source: Endpoint | None = None
    hash: int | None = _field(keep=True, default=None)
    arg1: int | None = _field(keep=True, default=None)
    arg2: int | None = _field(keep=True, default=None)
    arg3: int | None = _field(keep=True, default=None)
    message: str = ""
    cpu: int | None = _field(keep=True, default=None)

    def to_dict(self) -> dict:
        """The event as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class GetDebugEventsResponse(_Message):
    debug_event: DebugEvent | None = None
    node_name: str = ""
    time: Timestamp | None = None

    def to_dict(self) -> dict:
        """The response as a JSON-ready dictionary."""
        return super().to_dict()


@dataclass
class ServerStatusResponse(_Message):
    num_flows: int = _field(quoted=True, default=0)
    max_flows: int = _field(quoted=True, default=0)
    seen_flows: int = _field(quoted=True, default=0)
    uptime_ns: int = _field(quoted=True, default=0)
    num_connected_nodes: int | None = _field(keep=True, default=None)
    num_unavailable_nodes: int | None = _field(keep=True, default=None)
    unavailable_nodes: list[str] = field(default_factory=list)
    version: str = ""

    def to_dict(self) -> dict:
        """The status as a JSON-ready dictionary."""
        return super().to_dict()