"""Watching peer change notifications."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TextIO


class ChangeNotificationType(enum.IntEnum):
    """Kind of change a peer notification reports."""

    UNKNOWN = 0
    PEER_ADDED = 1
    PEER_DELETED = 2
    PEER_UPDATED = 3


@dataclass
class ChangeNotification:
    """A peer change; ``tls_server_name`` is None when the peer has no TLS."""

    name: str = ""
    address: str = ""
    type: ChangeNotificationType = ChangeNotificationType.UNKNOWN
    tls_server_name: str | None = None


def process_response(out: TextIO, notification: ChangeNotification | None) -> None:
    """Write one line describing ``notification`` to ``out``."""
    if notification is None:
        notification = ChangeNotification()
    tls = ""
    if notification.tls_server_name is not None:
        tls = f" (TLS.ServerName: {notification.tls_server_name})"
    kind = ChangeNotificationType(notification.type).name
    out.write(f"{kind:<12} {notification.address} {notification.name}{tls}\n")


def run_peer(
    notifications: Iterable[ChangeNotification | None], out: TextIO | None = None
) -> None:
    """Print every notification until the stream ends or is interrupted."""
    stream = out if out is not None else sys.stdout
    try:
        for notification in notifications:
            process_response(stream, notification)
    except KeyboardInterrupt:
        return