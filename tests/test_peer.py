import io

import pytest

from hubblecli.peer import (
    ChangeNotification,
    ChangeNotificationType,
    process_response,
    run_peer,
)


def _interrupted_stream():
    yield ChangeNotification("foo.bar", "1.2.3.4", ChangeNotificationType.PEER_ADDED)
    raise KeyboardInterrupt


def _broken_stream():
    yield None
    raise ConnectionError("stream broken")


@pytest.mark.parametrize(
    "notification, expected",
    [
        (
            ChangeNotification(
                name="foo.bar",
                address="1.2.3.4",
                type=ChangeNotificationType.PEER_ADDED,
                tls_server_name="tls.foo.bar",
            ),
            "PEER_ADDED   1.2.3.4 foo.bar (TLS.ServerName: tls.foo.bar)\n",
        ),
        (
            ChangeNotification(
                name="foo.bar",
                address="1.2.3.4",
                type=ChangeNotificationType.PEER_ADDED,
            ),
            "PEER_ADDED   1.2.3.4 foo.bar\n",
        ),
        (None, "UNKNOWN       \n"),
    ],
    ids=["happy path with tls", "happy path with no tls", "unknown notification"],
)
def test_process_response(notification, expected):
    buf = io.StringIO()
    process_response(buf, notification)
    assert buf.getvalue() == expected


def test_run_peer_prints_each_notification():
    buf = io.StringIO()
    notes = [
        ChangeNotification("foo.bar", "1.2.3.4", ChangeNotificationType.PEER_ADDED),
        ChangeNotification("foo.bar", "1.2.3.4", ChangeNotificationType.PEER_DELETED),
    ]
    run_peer(notes, buf)
    lines = buf.getvalue().splitlines()
    assert lines == [
        "PEER_ADDED   1.2.3.4 foo.bar",
        "PEER_DELETED 1.2.3.4 foo.bar",
    ]


def test_run_peer_stops_quietly_on_interrupt():
    buf = io.StringIO()
    run_peer(_interrupted_stream(), buf)
    assert buf.getvalue() == "PEER_ADDED   1.2.3.4 foo.bar\n"


def test_run_peer_propagates_stream_errors():
    buf = io.StringIO()
    with pytest.raises(ConnectionError, match="stream broken"):
        run_peer(_broken_stream(), buf)
    assert buf.getvalue() == "UNKNOWN       \n"