"""Health check and server status reporting."""

from __future__ import annotations

import enum
import sys
from typing import Protocol, TextIO

from hubblecli.defaults import REQUEST_TIMEOUT
from hubblecli.models import ServerStatusResponse
from hubblecli.options import Output
from hubblecli.printer import Printer

OBSERVER_SERVICE_NAME = "observer.Observer"

_OUTPUTS = {
    "compact": Output.COMPACT,
    "dict": Output.DICT,
    "json": Output.JSON,
    "JSON": Output.JSON,
    "jsonpb": Output.JSONPB,
    "tab": Output.TAB,
    "table": Output.TAB,
}


class HealthStatus(enum.IntEnum):
    """Serving status reported by the standard health check."""

    UNKNOWN = 0
    SERVING = 1
    NOT_SERVING = 2
    SERVICE_UNKNOWN = 3


class StatusError(Exception):
    """Raised when the server status cannot be obtained or shown."""


class StatusClient(Protocol):
    """What the status command needs from a server connection."""

    target: str

    def check(self, service: str, timeout: float) -> HealthStatus: ...

    def server_status(self, timeout: float) -> ServerStatusResponse: ...


def check_health(client: StatusClient) -> tuple[bool, str]:
    """Run the health check; return whether the server serves and a description."""
    status = HealthStatus(client.check(OBSERVER_SERVICE_NAME, REQUEST_TIMEOUT))
    if status is not HealthStatus.SERVING:
        return False, f"Unavailable: {status.name}"
    return True, "Ok"


def run_status(client: StatusClient, output: str = "compact", out: TextIO | None = None) -> None:
    """Check the server health, then print its status in the ``output`` format."""
    stream = out if out is not None else sys.stdout
    try:
        healthy, description = check_health(client)
    except Exception as err:
        raise StatusError(f"failed getting status: {err}") from err
    if output == "compact":
        stream.write(f"Healthcheck (via {client.target}): {description}\n")
    if not healthy:
        raise StatusError("not healthy")

    try:
        response = client.server_status(REQUEST_TIMEOUT)
    except Exception as err:
        raise StatusError(f"failed to get hubble server status: {err}") from err

    try:
        fmt = _OUTPUTS[output]
    except KeyError:
        raise StatusError(f"invalid output format: {output}") from None
    with Printer(output=fmt, writer=stream) as printer:
        printer.write_server_status_response(response)