"""Printing of flows, events and server status in several output formats."""

from __future__ import annotations

import enum
import json
import posixpath
import sys
from typing import Any, TextIO

from hubblecli.details import (
    fmt_cpu,
    fmt_endpoint_short,
    fmt_hex_uint32,
    fmt_identity_label,
    fmt_timestamp,
    get_agent_event_details,
    get_flow_type,
    join_with_cut_off,
)
from hubblecli.formatter import format_duration_ns, uint64_grouping
from hubblecli.models import (
    Flow,
    GetAgentEventsResponse,
    GetDebugEventsResponse,
    GetFlowsResponse,
    NodeState,
    ServerStatusResponse,
    Verdict,
)
from hubblecli.options import Colorer, Options, Output
from hubblecli.timeutil import STAMP_MILLI

TAB = "\t"
NEWLINE = "\n"
SPACE = " "
DICT_SEPARATOR = "------------"
NODE_NAMES_CUT_OFF = 50

_EMPTY_FLOW = Flow()


class _TabWriter:
    """Buffers tab-separated cells and aligns them into columns on flush.

    Cells terminated by a tab form columns; the last cell of a line does not.
    A column spans a block of consecutive lines that all have a cell in it.
    """

    def __init__(self, out: TextIO, minwidth: int = 2, padding: int = 3) -> None:
        self._out = out
        self._minwidth = minwidth
        self._padding = padding
        self._chunks: list[str] = []

    def write(self, text: str) -> None:
        self._chunks.append(text)

    def flush(self) -> None:
        text = "".join(self._chunks)
        self._chunks.clear()
        if not text:
            return
        rows = text.split(NEWLINE)
        terminated = rows[-1] == ""
        if terminated:
            rows.pop()
        lines = [row.split(TAB) for row in rows]
        formatted = self._layout(lines)
        result = NEWLINE.join(formatted)
        if terminated:
            result += NEWLINE
        self._out.write(result)

    def _layout(self, lines: list[list[str]]) -> list[str]:
        out: list[str] = []
        widths: list[int] = []

        def write_lines(start: int, end: int) -> None:
            for line in lines[start:end]:
                cells = []
                for j, cell in enumerate(line):
                    if j < len(widths):
                        cells.append(cell + SPACE * max(widths[j] - len(cell), 0))
                    else:
                        cells.append(cell)
                out.append("".join(cells))

        def fmt(line0: int, line1: int) -> None:
            column = len(widths)
            this = line0
            while this < line1:
                if column >= len(lines[this]) - 1:
                    this += 1
                    continue
                write_lines(line0, this)
                line0 = this
                width = self._minwidth
                while this < line1 and column < len(lines[this]) - 1:
                    width = max(width, len(lines[this][column]) + self._padding)
                    this += 1
                widths.append(width)
                fmt(line0, this)
                widths.pop()
                line0 = this
            write_lines(line0, line1)

        fmt(0, len(lines))
        return out


def _name(value: Any) -> str:
    if isinstance(value, enum.Enum):
        return value.name
    return str(value)


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _path_join(*parts: str) -> str:
    joined = "/".join(p for p in parts if p)
    return posixpath.normpath(joined) if joined else ""


def _go_quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _encode_json(stream: TextIO, obj: Any) -> None:
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    text = (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    stream.write(text + NEWLINE)


def _emit(stream: Any, text: str, what: str) -> None:
    try:
        stream.write(text)
    except OSError as err:
        raise OSError(f"failed to write out {what}: {err}") from err


class Printer:
    """Writes flows, events and server status in the configured format."""

    def __init__(
        self,
        output: Output = Output.TAB,
        writer: TextIO | None = None,
        err_writer: TextIO | None = None,
        debug: bool = False,
        ip_translation: bool = False,
        node_name: bool = False,
        time_format: str = STAMP_MILLI,
        color: str = "",
    ) -> None:
        self.options = Options(
            output=output,
            writer=writer,
            err_writer=err_writer,
            enable_debug=debug,
            enable_ip_translation=ip_translation,
            node_name=node_name,
            time_format=time_format,
            color=color,
        )
        self._out: TextIO = writer if writer is not None else sys.stdout
        self._err: TextIO = err_writer if err_writer is not None else sys.stderr
        self._line = 0
        self._color = Colorer(color, self._out)
        self._tw: _TabWriter | None = None
        if output is Output.TAB:
            self._tw = _TabWriter(self._out)
            self._color.disable()

    def close(self) -> None:
        """Flush any buffered tabular output."""
        if self._tw is not None:
            self._tw.flush()

    def __enter__(self) -> Printer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def write_err(self, msg: str) -> None:
        """Write ``msg`` and a newline to the error writer."""
        self._err.write(msg + NEWLINE)

    def get_ports(self, flow: Flow | None) -> tuple[str, str]:
        """Source and destination port of a TCP or UDP flow, else empty strings."""
        l4 = flow.l4 if flow is not None else None
        if l4 is None:
            return "", ""
        if l4.tcp is not None:
            return str(l4.tcp.source_port), str(l4.tcp.destination_port)
        if l4.udp is not None:
            return str(l4.udp.source_port), str(l4.udp.destination_port)
        return "", ""

    def get_host_names(self, flow: Flow | None) -> tuple[str, str]:
        """Source and destination host names of a flow."""
        if flow is None:
            return "", ""
        if flow.ip is None:
            if flow.ethernet is not None:
                return (
                    self._color.host(flow.ethernet.source),
                    self._color.host(flow.ethernet.destination),
                )
            return "", ""

        src_ns = dst_ns = src_pod = dst_pod = src_svc = dst_svc = ""
        if flow.source is not None:
            src_ns, src_pod = flow.source.namespace, flow.source.pod_name
        if flow.destination is not None:
            dst_ns, dst_pod = flow.destination.namespace, flow.destination.pod_name
        if flow.source_service is not None:
            src_ns, src_svc = flow.source_service.namespace, flow.source_service.name
        if flow.destination_service is not None:
            dst_ns = flow.destination_service.namespace
            dst_svc = flow.destination_service.name
        src_port, dst_port = self.get_ports(flow)
        src = self.hostname(
            flow.ip.source, src_port, src_ns, src_pod, src_svc, flow.source_names
        )
        dst = self.hostname(
            flow.ip.destination, dst_port, dst_ns, dst_pod, dst_svc,
            flow.destination_names,
        )
        return self._color.host(src), self._color.host(dst)

    def get_security_identities(self, flow: Flow | None) -> tuple[str, str]:
        """Source and destination security identities formatted as labels."""
        if flow is None:
            return "", ""
        src = flow.source.identity if flow.source is not None else 0
        dst = flow.destination.identity if flow.destination is not None else 0
        return (
            self._color.identity(fmt_identity_label(src)),
            self._color.identity(fmt_identity_label(dst)),
        )

    def hostname(
        self, ip: str, port: str, ns: str, pod: str, svc: str, names: list[str]
    ) -> str:
        """Return 'host:port', or just the host when the port is empty or '0'.

        With IP translation the host is the pod or service name, or the
        comma-separated domain names, when known; otherwise the IP.
        """
        host = ip
        if self.options.enable_ip_translation:
            if pod:
                host = _path_join(ns, pod)
            elif svc:
                host = _path_join(ns, svc)
            elif names:
                host = ",".join(names)
        if port and port != "0":
            return _join_host_port(host, self._color.port(port))
        return host

    def _verdict(self, flow: Flow) -> str:
        verdict = Verdict(flow.verdict)
        text = verdict.name
        if verdict in (Verdict.FORWARDED, Verdict.REDIRECTED):
            return self._color.verdict_forwarded(text)
        if verdict in (Verdict.DROPPED, Verdict.ERROR):
            return self._color.verdict_dropped(text)
        if verdict is Verdict.AUDIT:
            return self._color.verdict_audit(text)
        return text

    def _ts(self, ts: Any) -> str:
        return fmt_timestamp(self.options.time_format, ts)

    def write_flow(self, response: GetFlowsResponse) -> None:
        """Write the flow carried by ``response``."""
        flow = response.flow
        data = flow if flow is not None else _EMPTY_FLOW
        output = self.options.output
        show_node = self.options.node_name

        if output is Output.TAB:
            src, dst = self.get_host_names(flow)
            parts: list[str] = []
            if self._line == 0:
                parts += ["TIMESTAMP", TAB]
                if show_node:
                    parts += ["NODE", TAB]
                parts += ["SOURCE", TAB, "DESTINATION", TAB, "TYPE", TAB,
                          "VERDICT", TAB, "SUMMARY", NEWLINE]
            parts += [self._ts(data.time), TAB]
            if show_node:
                parts += [data.node_name, TAB]
            parts += [src, TAB, dst, TAB, get_flow_type(flow), TAB,
                      self._verdict(data), TAB, data.summary, NEWLINE]
            _emit(self._tw, "".join(parts), "packet")
        elif output is Output.DICT:
            src, dst = self.get_host_names(flow)
            parts = []
            if self._line != 0:
                parts += [DICT_SEPARATOR, NEWLINE]
            parts += ["  TIMESTAMP: ", self._ts(data.time), NEWLINE]
            if show_node:
                parts += ["       NODE: ", data.node_name, NEWLINE]
            parts += [
                "     SOURCE: ", src, NEWLINE,
                "DESTINATION: ", dst, NEWLINE,
                "       TYPE: ", get_flow_type(flow), NEWLINE,
                "    VERDICT: ", self._verdict(data), NEWLINE,
                "    SUMMARY: ", data.summary, NEWLINE,
            ]
            _emit(self._out, "".join(parts), "packet")
        elif output is Output.COMPACT:
            src, dst = self.get_host_names(flow)
            src_id, dst_id = self.get_security_identities(flow)
            node = f" [{data.node_name}]" if show_node else ""
            if data.is_reply is None:
                arrow = "<>"
            elif data.is_reply:
                src, dst = dst, src
                src_id, dst_id = dst_id, src_id
                arrow = "<-"
            else:
                arrow = "->"
            line = (
                f"{self._ts(data.time)}{node}: {src} {src_id} {arrow} {dst} {dst_id} "
                f"{get_flow_type(flow)} {self._verdict(data)} ({data.summary})\n"
            )
            _emit(self._out, line, "packet")
        elif output is Output.JSON:
            _encode_json(self._out, data.to_dict())
            return
        elif output is Output.JSONPB:
            _encode_json(self._out, response.to_dict())
            return
        self._line += 1

    def write_node_status_event(self, response: GetFlowsResponse) -> None:
        """Write a node status event to the error writer.

        Outside debug mode only error and unavailability events are shown.
        """
        status = response.node_status
        if status is None:
            raise ValueError("not a node status event")

        state = NodeState(status.state_change)
        if not self.options.enable_debug and state not in (
            NodeState.NODE_ERROR, NodeState.NODE_UNAVAILABLE
        ):
            return

        output = self.options.output
        if output in (Output.JSON, Output.JSONPB):
            _encode_json(self._err, response.to_dict())
        elif output is Output.DICT:
            if self._line != 0:
                self._out.write(DICT_SEPARATOR + NEWLINE)
            else:
                self._line += 1
            node_names = join_with_cut_off(status.node_names, ", ", NODE_NAMES_CUT_OFF)
            message = _go_quote(status.message) if status.message else "N/A"
            text = (
                f"  TIMESTAMP: {self._ts(response.time)}\n"
                f"      STATE: {state.name}\n"
                f"      NODES: {node_names}\n"
                f"    MESSAGE: {message}\n"
            )
            _emit(self._err, text, "node status")
        else:
            num_nodes = len(status.node_names)
            node_names = join_with_cut_off(status.node_names, ", ", NODE_NAMES_CUT_OFF)
            prefix = f"{self._ts(response.time)} [{response.node_name}]"
            if state is NodeState.NODE_CONNECTED:
                msg = f"{prefix}: Receiving flows from {num_nodes} nodes: {node_names}"
            elif state is NodeState.NODE_UNAVAILABLE:
                msg = f"{prefix}: {num_nodes} nodes are unavailable: {node_names}"
            elif state is NodeState.NODE_GONE:
                msg = f"{prefix}: {num_nodes} nodes removed from cluster: {node_names}"
            elif state is NodeState.NODE_ERROR:
                msg = (
                    f"{prefix}: Error {_go_quote(status.message)} "
                    f"on {num_nodes} nodes: {node_names}"
                )
            else:
                msg = (
                    f"{prefix}: unknown node status event: "
                    f"{{state_change:{state.name} "
                    f"node_names:[{' '.join(status.node_names)}] "
                    f"message:{status.message}}}"
                )
            self.write_err(msg)

    def write_agent_event(self, response: GetAgentEventsResponse) -> None:
        """Write the agent event carried by ``response``."""
        event = response.agent_event
        if event is None:
            raise ValueError("not an agent event")

        output = self.options.output
        show_node = self.options.node_name
        layout = self.options.time_format
        kind = _name(event.type)

        if output is Output.JSON:
            _encode_json(self._out, event.to_dict())
            return
        if output is Output.JSONPB:
            _encode_json(self._out, response.to_dict())
            return
        if output is Output.DICT:
            parts: list[str] = []
            if self._line != 0:
                parts.append(DICT_SEPARATOR)
            parts += ["  TIMESTAMP: ", self._ts(response.time), NEWLINE]
            if show_node:
                parts += ["       NODE: ", response.node_name, NEWLINE]
            parts += [
                "       TYPE: ", kind, NEWLINE,
                "    DETAILS: ", get_agent_event_details(event, layout), NEWLINE,
            ]
            _emit(self._out, "".join(parts), "agent event")
        elif output is Output.TAB:
            parts = []
            if self._line == 0:
                parts += ["TIMESTAMP", TAB]
                if show_node:
                    parts += ["NODE", TAB]
                parts += ["TYPE", TAB, "DETAILS", NEWLINE]
            parts += [self._ts(response.time), TAB]
            if show_node:
                parts += [response.node_name, TAB]
            parts += [kind, TAB, get_agent_event_details(event, layout), NEWLINE]
            _emit(self._tw, "".join(parts), "agent event")
        elif output is Output.COMPACT:
            node = f" [{response.node_name}]" if show_node else ""
            line = (
                f"{self._ts(response.time)}{node}: {kind} "
                f"({get_agent_event_details(event, layout)})\n"
            )
            _emit(self._out, line, "agent event")
        self._line += 1

    def write_debug_event(self, response: GetDebugEventsResponse) -> None:
        """Write the debug event carried by ``response``."""
        event = response.debug_event
        if event is None:
            raise ValueError("not a debug event")

        output = self.options.output
        show_node = self.options.node_name
        kind = _name(event.type)

        if output is Output.JSON:
            _encode_json(self._out, event.to_dict())
            return
        if output is Output.JSONPB:
            _encode_json(self._out, response.to_dict())
            return
        if output is Output.DICT:
            parts: list[str] = []
            if self._line != 0:
                parts.append(DICT_SEPARATOR)
            parts += ["  TIMESTAMP: ", self._ts(response.time), NEWLINE]
            if show_node:
                parts += ["       NODE: ", response.node_name, NEWLINE]
            parts += [
                "       TYPE: ", kind, NEWLINE,
                "       FROM: ", fmt_endpoint_short(event.source), NEWLINE,
                "       MARK: ", fmt_hex_uint32(event.hash), NEWLINE,
                "        CPU: ", fmt_cpu(event.cpu), NEWLINE,
                "    MESSAGE: ", event.message, NEWLINE,
            ]
            _emit(self._out, "".join(parts), "debug event")
        elif output is Output.TAB:
            parts = []
            if self._line == 0:
                parts += ["TIMESTAMP", TAB]
                if show_node:
                    parts += ["NODE", TAB]
                parts += ["FROM", TAB, TAB, "TYPE", TAB, "CPU/MARK", TAB,
                          "MESSAGE", NEWLINE]
            parts += [self._ts(response.time), TAB]
            if show_node:
                parts += [response.node_name, TAB]
            parts += [
                fmt_endpoint_short(event.source), TAB, TAB,
                kind, TAB,
                fmt_cpu(event.cpu), SPACE, fmt_hex_uint32(event.hash), TAB,
                event.message, NEWLINE,
            ]
            _emit(self._tw, "".join(parts), "debug event")
        elif output is Output.COMPACT:
            node = f" [{response.node_name}]" if show_node else ""
            line = (
                f"{self._ts(response.time)}{node}: {fmt_endpoint_short(event.source)} "
                f"{kind} MARK: {fmt_hex_uint32(event.hash)} CPU: {fmt_cpu(event.cpu)} "
                f"({event.message})\n"
            )
            _emit(self._out, line, "debug event")
        self._line += 1

    def write_get_flows_response(self, response: GetFlowsResponse) -> None:
        """Write a flow or a node status event, whichever ``response`` holds."""
        if response.flow is not None:
            self.write_flow(response)
        elif response.node_status is not None:
            self.write_node_status_event(response)

    def write_server_status_response(self, response: ServerStatusResponse | None) -> None:
        """Write the server status."""
        if response is None:
            return

        connected = response.num_connected_nodes
        unavailable = response.num_unavailable_nodes
        connected_text = "N/A" if connected is None else str(connected)
        unavailable_text = "N/A" if unavailable is None else str(unavailable)
        output = self.options.output

        if output is Output.TAB:
            text = TAB.join([
                "NUM FLOWS", "MAX FLOWS", "SEEN FLOWS", "UPTIME",
                "NUM CONNECTED NODES", "NUM UNAVAILABLE NODES", "VERSION",
            ]) + NEWLINE + TAB.join([
                uint64_grouping(response.num_flows),
                uint64_grouping(response.max_flows),
                uint64_grouping(response.seen_flows),
                format_duration_ns(response.uptime_ns),
                connected_text,
                unavailable_text,
                response.version,
            ]) + NEWLINE
            _emit(self._tw, text, "server status")
        elif output is Output.DICT:
            text = (
                f"          NUM FLOWS: {uint64_grouping(response.num_flows)}\n"
                f"          MAX FLOWS: {uint64_grouping(response.max_flows)}\n"
                f"         SEEN FLOWS: {uint64_grouping(response.seen_flows)}\n"
                f"             UPTIME: {format_duration_ns(response.uptime_ns)}\n"
                f"NUM CONNECTED NODES: {connected_text}\n"
                f" NUM UNAVAIL. NODES: {unavailable_text}\n"
                f"            VERSION: {response.version}\n"
            )
            _emit(self._out, text, "server status")
        elif output is Output.COMPACT:
            _emit(self._out, self._compact_status(response), "server status")
        else:
            _encode_json(self._out, response.to_dict())

    @staticmethod
    def _compact_status(response: ServerStatusResponse) -> str:
        lines: list[str] = []
        ratio = ""
        if response.max_flows > 0:
            ratio = f" ({response.num_flows / response.max_flows * 100:.2f}%)"
        lines.append(
            f"Current/Max Flows: {uint64_grouping(response.num_flows)}/"
            f"{uint64_grouping(response.max_flows)}{ratio}"
        )

        seconds, nanos = divmod(response.uptime_ns, 1_000_000_000)
        uptime = seconds + nanos / 1e9
        per_sec = f"{response.seen_flows / uptime:.2f}" if uptime > 0 else "N/A"
        lines.append(f"Flows/s: {per_sec}")

        connected = response.num_connected_nodes
        unavailable = response.num_unavailable_nodes
        if connected is not None:
            total = f"/{unavailable + connected}" if unavailable is not None else ""
            lines.append(f"Connected Nodes: {connected}{total}")
        if unavailable is not None and unavailable > 0:
            names = sorted(response.unavailable_nodes)
            if names:
                if unavailable > len(names):
                    names.append(f"and {unavailable - len(names)} more...")
                lines.append(f"Unavailable Nodes: {unavailable}")
                lines.append("  - " + "\n  - ".join(names))
            else:
                lines.append(f"Unavailable Nodes: {unavailable}")
        return NEWLINE.join(lines) + NEWLINE