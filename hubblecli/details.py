"""Formatting helpers for flows and agent and debug events."""

from __future__ import annotations

from collections.abc import Sequence

from hubblecli.models import (
    AgentEvent,
    AgentEventType,
    DebugCapturePoint,
    Endpoint,
    Flow,
    ServiceAddr,
    Timestamp,
    Verdict,
)
from hubblecli.timeutil import format_time

MESSAGE_TYPE_DROP = 1
MESSAGE_TYPE_DEBUG = 2
MESSAGE_TYPE_CAPTURE = 3
MESSAGE_TYPE_TRACE = 4
MESSAGE_TYPE_POLICY_VERDICT = 5
MESSAGE_TYPE_ACCESS_LOG = 129

_RESERVED_IDENTITIES = {
    0: "unknown",
    1: "host",
    2: "world",
    3: "unmanaged",
    4: "health",
    5: "init",
    6: "remote-node",
    7: "kube-apiserver",
    8: "ingress",
}

_TRACE_POINTS = [
    "to-endpoint", "to-proxy", "to-host", "to-stack", "to-overlay",
    "from-endpoint", "from-proxy", "from-host", "from-stack", "from-overlay",
    "from-network", "to-network",
]

_DROP_REASONS = {
    130: "Invalid source mac",
    131: "Invalid destination mac",
    132: "Invalid source ip",
    133: "Policy denied",
    134: "Invalid packet",
    135: "CT: Truncated or invalid header",
    136: "Fragmentation needed",
    137: "CT: Unknown L4 protocol",
    138: "CT: Can't create entry from packet",
    139: "Unsupported L3 protocol",
    140: "Missed tail call",
    141: "Error writing to packet",
    142: "Unknown L4 protocol",
    143: "Unknown ICMPv4 code",
    144: "Unknown ICMPv4 type",
    145: "Unknown ICMPv6 code",
    146: "Unknown ICMPv6 type",
    147: "Error retrieving tunnel key",
    148: "Error retrieving tunnel options",
    149: "Invalid Geneve option",
    150: "Unknown L3 target address",
    151: "Stale or unroutable IP",
    152: "No matching local container found",
    153: "Error while correcting L3 checksum",
    154: "Error while correcting L4 checksum",
    155: "CT: Map insertion failed",
    156: "Invalid IPv6 extension header",
    157: "IP fragmentation not supported",
    158: "Service backend not found",
    160: "No tunnel/encapsulation endpoint (datapath BUG!)",
    161: "Failed to insert into proxymap",
    162: "Policy denied (CIDR)",
    163: "Unknown connection tracking state",
    164: "Local host is unreachable",
    165: "No configuration available to perform policy decision",
    166: "Unsupported L2 protocol",
    167: "No mapping for NAT masquerade",
    168: "Unsupported protocol for NAT masquerade",
    169: "FIB lookup failed",
    170: "Encapsulation traffic is prohibited",
    171: "Invalid identity",
    172: "Unknown sender",
    173: "NAT not needed",
    174: "Is a ClusterIP",
    175: "First logical datagram fragment not found",
    176: "Forbidden ICMPv6 message",
    177: "Denied by LB src range check",
    178: "Socket lookup failed",
    179: "Socket assign failed",
    180: "Proxy redirection not supported for protocol",
    181: "Policy denied by denylist",
    182: "VLAN traffic disallowed by VLAN filter",
    183: "Incorrect VNI from VTEP",
    184: "Failed to update or lookup TC buffer",
    185: "No SID was found for the IP address",
    186: "SRv6 state was removed during tail call",
}

_POLICY_MATCH_TYPES = {
    0: "none",
    1: "L3-Only",
    2: "L3-L4",
    3: "L4-Only",
    4: "all",
    5: "L3-Proto",
    6: "Proto-Only",
}


def fmt_timestamp(layout: str, ts: Timestamp | None) -> str:
    """Format a timestamp with ``layout``, or 'N/A' if it is missing or invalid."""
    if ts is None or not ts.is_valid():
        return "N/A"
    return format_time(ts.as_datetime(), layout)


def fmt_identity_label(identity: int) -> str:
    """Label a security identity: '(health)' for reserved ones, else '(identity:N)'."""
    name = _RESERVED_IDENTITIES.get(identity)
    if name is not None:
        return f"({name})"
    return f"(identity:{identity})"


def _trace_point(code: int) -> str:
    return _TRACE_POINTS[code] if 0 <= code < len(_TRACE_POINTS) else str(code)


def _drop_reason(code: int) -> str:
    return _DROP_REASONS.get(code, str(code))


def get_flow_type(flow: Flow | None) -> str:
    """Describe the type of a flow, e.g. 'http-request' or 'to-host'."""
    if flow is None:
        return "UNKNOWN"
    if flow.l7 is not None:
        return f"{flow.l7.record or 'l7'}-{flow.l7.type.name.lower()}"

    event = flow.event_type
    kind = event.type if event else 0
    sub_type = (event.sub_type if event else 0) & 0xFF
    if kind == MESSAGE_TYPE_TRACE:
        return _trace_point(sub_type)
    if kind == MESSAGE_TYPE_DROP:
        return _drop_reason(sub_type)
    if kind == MESSAGE_TYPE_POLICY_VERDICT:
        if flow.verdict in (Verdict.FORWARDED, Verdict.AUDIT, Verdict.REDIRECTED):
            return _POLICY_MATCH_TYPES.get(flow.policy_match_type, "unknown")
        if flow.verdict == Verdict.DROPPED:
            return _drop_reason(flow.drop_reason & 0xFF)
    elif kind == MESSAGE_TYPE_CAPTURE:
        return DebugCapturePoint(flow.debug_capture_point).name
    return "UNKNOWN"


def join_with_cut_off(elems: Sequence[str], sep: str, target_len: int) -> str:
    """Join ``elems`` but omit trailing ones once ``target_len`` is exceeded.

    At least one element is always kept; omitted ones are counted as
    ' (and N more)'.
    """
    end = len(elems)
    length = 0
    for i, elem in enumerate(elems):
        length += len(elem) + len(sep)
        if length > target_len and i > 0:
            end = i
            break
    joined = sep.join(elems[:end])
    omitted = len(elems) - end
    if omitted == 0:
        return joined
    return f"{joined} (and {omitted} more)"


def format_service_addr(addr: ServiceAddr) -> str:
    """Join IP and port, bracketing IPv6 addresses."""
    host = f"[{addr.ip}]" if ":" in addr.ip else addr.ip
    return f"{host}:{addr.port}"


def _endpoint_details(ep: dict) -> str:
    text = f"id: {ep.get('id', 0)}"
    if ep.get("namespace"):
        text += f", namespace: {ep['namespace']}"
    if ep.get("pod_name"):
        text += f", pod name: {ep['pod_name']}"
    return text


def _ipcache_details(cache: dict) -> str:
    text = f"cidr: {cache.get('cidr', '')}, identity: {cache.get('identity', 0)}"
    if cache.get("old_identity") is not None:
        text += f", old identity: {cache['old_identity']}"
    if cache.get("host_ip"):
        text += f", host ip: {cache['host_ip']}"
    if cache.get("old_host_ip"):
        text += f", old host ip: {cache['old_host_ip']}"
    return text + f", encrypt key: {cache.get('encrypt_key', 0)}"


def _service_details(svc: dict) -> str:
    text = f"id: {svc.get('id', 0)}"
    if svc.get("frontend_address") is not None:
        text += f", frontend: {format_service_addr(svc['frontend_address'])}"
    backends = svc.get("backend_addresses") or []
    if backends:
        text += f", backends: [{','.join(format_service_addr(a) for a in backends)}]"
    for key, label in (
        ("type", "type"),
        ("traffic_policy", "traffic policy"),
        ("namespace", "namespace"),
        ("name", "name"),
    ):
        if svc.get(key):
            text += f", {label}: {svc[key]}"
    return text


def get_agent_event_details(event: AgentEvent | None, time_layout: str) -> str:
    """Describe the notification carried by an agent event."""
    if event is None:
        return "UNKNOWN"
    kind = event.type
    if kind == AgentEventType.AGENT_EVENT_UNKNOWN and event.unknown is not None:
        u = event.unknown
        return f"type: {u.get('type', '')}, notification: {u.get('notification', '')}"
    if kind == AgentEventType.AGENT_STARTED and event.agent_start is not None:
        return f"start time: {fmt_timestamp(time_layout, event.agent_start.get('time'))}"
    if kind in (AgentEventType.POLICY_UPDATED, AgentEventType.POLICY_DELETED):
        p = event.policy_update
        if p is not None:
            return (
                f"labels: [{','.join(p.get('labels') or [])}], "
                f"revision: {p.get('revision', 0)}, count: {p.get('rule_count', 0)}"
            )
    if kind in (
        AgentEventType.ENDPOINT_REGENERATE_SUCCESS,
        AgentEventType.ENDPOINT_REGENERATE_FAILURE,
    ):
        r = event.endpoint_regenerate
        if r is not None:
            text = f"id: {r.get('id', 0)}, labels: [{','.join(r.get('labels') or [])}]"
            if r.get("error"):
                text += f", error: {r['error']}"
            return text
    if kind in (AgentEventType.ENDPOINT_CREATED, AgentEventType.ENDPOINT_DELETED):
        if event.endpoint_update is not None:
            return _endpoint_details(event.endpoint_update)
    if kind in (AgentEventType.IPCACHE_UPSERTED, AgentEventType.IPCACHE_DELETED):
        if event.ipcache_update is not None:
            return _ipcache_details(event.ipcache_update)
    if kind == AgentEventType.SERVICE_UPSERTED and event.service_upsert is not None:
        return _service_details(event.service_upsert)
    if kind == AgentEventType.SERVICE_DELETED and event.service_delete is not None:
        return f"id: {event.service_delete.get('id', 0)}"
    return "UNKNOWN"


def fmt_hex_uint32(value: int | None) -> str:
    return "N/A" if value is None else f"0x{value:x}"


def fmt_cpu(cpu: int | None) -> str:
    return "N/A" if cpu is None else f"{cpu:02d}"


def fmt_endpoint_short(endpoint: Endpoint | None) -> str:
    """Short description of an endpoint: 'ns/pod (ID: n)' when known."""
    if endpoint is None:
        return "N/A"
    text = f"ID: {endpoint.id}"
    if endpoint.namespace and endpoint.pod_name:
        return f"{endpoint.namespace}/{endpoint.pod_name} ({text})"
    labels = endpoint.labels
    if len(labels) == 1 and "reserved:".startswith(labels[0]):
        return f"{labels[0]} ({text})"
    return text