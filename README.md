# hubblecli

A formatting library for network flows, node status events, agent events,
debug events and server status as reported by a Hubble server, with a small
command-line front end.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Output formats

`hubblecli.printer.Printer` writes events in one of the formats of
`hubblecli.options.Output`:

- `COMPACT`: one line per event
- `DICT`: each event as `KEY: VALUE` lines, separated by `------------`
- `TAB`: tab-aligned columns, written when the printer is closed
- `JSON`: the flow or event itself as JSON, one object per line
- `JSONPB`: the whole response as JSON, one object per line

Its methods are `write_flow`, `write_node_status_event`, `write_agent_event`,
`write_debug_event`, `write_get_flows_response` and
`write_server_status_response`. Node status events go to the error writer and,
unless `debug=True`, only error and unavailability events are shown. Other
options are `ip_translation` (show pod, service or DNS names instead of IPs),
`node_name`, `time_format` and `color` (`"always"`, `"never"` or `"auto"`;
colour is never used for table output).

```python
import io

from hubblecli.models import Flow, GetFlowsResponse, IP, Timestamp
from hubblecli.options import Output
from hubblecli.printer import Printer

out = io.StringIO()
flow = Flow(
    time=Timestamp(seconds=1234, nanos=567800000),
    ip=IP(source="1.1.1.1", destination="2.2.2.2"),
    summary="TCP Flags: SYN",
)
with Printer(output=Output.COMPACT, writer=out, color="never") as printer:
    printer.write_flow(GetFlowsResponse(flow=flow))
print(out.getvalue())
```

The data classes live in `hubblecli.models` (`Flow`, `GetFlowsResponse`,
`AgentEvent`, `DebugEvent`, `ServerStatusResponse` and others); each response
has a `to_dict()` giving the JSON form.

## Helpers

- `hubblecli.formatter.uint64_grouping(1000000)` gives `"1,000,000"`;
  `format_duration_ns(100_000_000_000)` gives `"1m40s"`.
- `hubblecli.timeutil.from_string(text, now)` accepts a duration such as `"5m"`
  (meaning that long before `now`) or an RFC 3339 style time such as
  `"2019-06-30T18:45Z"`, and raises `TimeParseError` otherwise.
  `format_name_to_layout` and `format_time` select and apply time layouts
  named in `FORMAT_NAMES`.
- `hubblecli.status.run_status(client, output, out)` runs a health check and
  prints the server status, given any object with a `target` attribute and
  `check(service, timeout)` and `server_status(timeout)` methods; it raises
  `StatusError` on failure.
- `hubblecli.peer.run_peer(notifications, out)` prints each
  `ChangeNotification` from an iterable.

## Command line

```
hubblecli --help
hubblecli --version
hubblecli version
```

Global options are `--config FILE`, `-D/--debug`, `--server ADDRESS` (default
`localhost:4245`) and `--timeout DURATION` (such as `5s`). A configuration
file is read from `config.yaml` under the user configuration directory
(`hubble/`), falling back to `~/.hubble/`; its top-level `debug`, `server` and
`timeout` keys are used. The `HUBBLE_DEFAULT_SOCKET_PATH` environment variable
is returned by `hubblecli.defaults.get_socket_path()`.

## What it does not do

The package has no network transport. The `status` and `watch peers`
commands exist, but they stop with a connection error instead of contacting a
server. There is no command to observe, record or list flows; to show data,
build the model objects yourself and pass them to a `Printer`, or pass your
own client object to `run_status` or an iterable of notifications to
`run_peer`.