import pytest

from hubblecli.details import (
    fmt_cpu,
    fmt_endpoint_short,
    fmt_hex_uint32,
    fmt_identity_label,
    fmt_timestamp,
    format_service_addr,
    get_agent_event_details,
    get_flow_type,
    join_with_cut_off,
)
from hubblecli.models import (
    AgentEvent,
    AgentEventType,
    CiliumEventType,
    DebugCapturePoint,
    Endpoint,
    Flow,
    L7FlowType,
    Layer7,
    ServiceAddr,
    Timestamp,
    Verdict,
)
from hubblecli.timeutil import STAMP_MILLI


@pytest.mark.parametrize("ts,want", [
    (Timestamp(0, 0), "Jan  1 00:00:00.000"),
    (Timestamp(1530984600, 123000000), "Jul  7 17:30:00.123"),
    (Timestamp(-1, -1), "N/A"),
    (None, "N/A"),
])
def test_fmt_timestamp(ts, want):
    assert fmt_timestamp(STAMP_MILLI, ts) == want


def _access_log(l7):
    return Flow(l7=l7, event_type=CiliumEventType(129))


@pytest.mark.parametrize("flow,want", [
    (_access_log(Layer7(L7FlowType.REQUEST)), "l7-request"),
    (_access_log(Layer7(L7FlowType.RESPONSE, "http")), "http-response"),
    (_access_log(Layer7(L7FlowType.REQUEST, "kafka")), "kafka-request"),
    (_access_log(Layer7(L7FlowType.REQUEST, "dns")), "dns-request"),
    (Flow(event_type=CiliumEventType(4, 2)), "to-host"),
    (Flow(verdict=Verdict.FORWARDED, event_type=CiliumEventType(5), policy_match_type=2), "L3-L4"),
    (Flow(verdict=Verdict.DROPPED, event_type=CiliumEventType(5), drop_reason=153),
     "Error while correcting L3 checksum"),
    (Flow(event_type=CiliumEventType(3), debug_capture_point=DebugCapturePoint.DBG_CAPTURE_FROM_LB),
     "DBG_CAPTURE_FROM_LB"),
    (Flow(event_type=CiliumEventType(4, 123)), "123"),
    (None, "UNKNOWN"),
    (Flow(), "UNKNOWN"),
    (Flow(event_type=CiliumEventType(1, 133)), "Policy denied"),
])
def test_get_flow_type(flow, want):
    assert get_flow_type(flow) == want


def test_identity_labels():
    assert fmt_identity_label(4) == "(health)"
    assert fmt_identity_label(12345) == "(identity:12345)"


START = Timestamp(1234, 567800000)


@pytest.mark.parametrize("ev,want", [
    (None, "UNKNOWN"),
    (AgentEvent(), "UNKNOWN"),
    (AgentEvent(AgentEventType.AGENT_STARTED), "UNKNOWN"),
    (AgentEvent(AgentEventType.AGENT_STARTED, agent_start={"time": START}),
     "start time: Jan  1 00:20:34.567"),
    (AgentEvent(AgentEventType.POLICY_UPDATED, policy_update={
        "labels": ["foo=bar", "baz=foo"], "revision": 1, "rule_count": 2}),
     "labels: [foo=bar,baz=foo], revision: 1, count: 2"),
    (AgentEvent(AgentEventType.POLICY_DELETED, policy_update={"revision": 42, "rule_count": 1}),
     "labels: [], revision: 42, count: 1"),
    (AgentEvent(AgentEventType.ENDPOINT_REGENERATE_SUCCESS, endpoint_regenerate={
        "id": 42, "labels": ["baz=bar", "some=label"]}),
     "id: 42, labels: [baz=bar,some=label]"),
    (AgentEvent(AgentEventType.ENDPOINT_REGENERATE_FAILURE, endpoint_regenerate={
        "id": 42, "labels": ["baz=bar", "some=label"], "error": "some error"}),
     "id: 42, labels: [baz=bar,some=label], error: some error"),
    (AgentEvent(AgentEventType.ENDPOINT_CREATED, endpoint_update={
        "id": 1027, "namespace": "kube-system", "pod_name": "cilium-xyz"}),
     "id: 1027, namespace: kube-system, pod name: cilium-xyz"),
    (AgentEvent(AgentEventType.IPCACHE_UPSERTED, ipcache_update={
        "cidr": "10.1.2.3/32", "identity": 42, "old_identity": 23,
        "host_ip": "192.168.3.9", "encrypt_key": 3}),
     "cidr: 10.1.2.3/32, identity: 42, old identity: 23, host ip: 192.168.3.9, encrypt key: 3"),
    (AgentEvent(AgentEventType.IPCACHE_DELETED, ipcache_update={
        "cidr": "10.0.1.2/32", "identity": 42, "old_host_ip": "192.168.1.23"}),
     "cidr: 10.0.1.2/32, identity: 42, old host ip: 192.168.1.23, encrypt key: 0"),
    (AgentEvent(AgentEventType.SERVICE_UPSERTED, service_upsert={
        "id": 42,
        "frontend_address": ServiceAddr("10.0.0.42", 8008),
        "backend_addresses": [ServiceAddr("192.168.1.23", 80),
                              ServiceAddr("2001:db8:85a3:::8a2e:370:1337", 8080)],
        "type": "foobar", "traffic_policy": "pol1", "namespace": "bar", "name": "foo"}),
     "id: 42, frontend: 10.0.0.42:8008, backends: [192.168.1.23:80,"
     "[2001:db8:85a3:::8a2e:370:1337]:8080], type: foobar, traffic policy: pol1, "
     "namespace: bar, name: foo"),
    (AgentEvent(AgentEventType.SERVICE_DELETED, service_delete={"id": 42}), "id: 42"),
])
def test_agent_event_details(ev, want):
    assert get_agent_event_details(ev, STAMP_MILLI) == want


def test_join_with_cut_off():
    assert join_with_cut_off(["a", "b"], ", ", 50) == "a, b"
    long = ["x" * 30, "y" * 30, "z"]
    assert join_with_cut_off(long, ", ", 50) == "x" * 30 + " (and 2 more)"
    assert join_with_cut_off(["w" * 80], ", ", 50) == "w" * 80


def test_format_service_addr():
    assert format_service_addr(ServiceAddr("10.0.0.42", 8008)) == "10.0.0.42:8008"


def test_debug_field_formatting():
    assert fmt_hex_uint32(180354257) == "0xabffcd1"
    assert fmt_hex_uint32(None) == "N/A"
    assert fmt_cpu(1) == "01"
    assert fmt_cpu(None) == "N/A"


def test_fmt_endpoint_short():
    ep = Endpoint(id=690, namespace="cilium-test", pod_name="pod-to-a-denied-cnp-75cb89dfd-vqhd9")
    assert fmt_endpoint_short(ep) == "cilium-test/pod-to-a-denied-cnp-75cb89dfd-vqhd9 (ID: 690)"
    assert fmt_endpoint_short(None) == "N/A"
    assert fmt_endpoint_short(Endpoint(id=7)) == "ID: 7"